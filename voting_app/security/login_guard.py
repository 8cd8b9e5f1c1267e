# voting_app/security/login_guard.py

import threading
from collections import defaultdict
from datetime import datetime, timedelta

# Failed login tracking per client: progressive delay, then a short lockout.
# One instance is shared by all request threads of the process.


class LoginGuard:
    def __init__(self, max_attempts=5, window_minutes=15, lockout_minutes=5,
                 base_delay_seconds=1, max_delay_seconds=60):
        """
        max_attempts: failures within `window_minutes` that trigger a lockout
        window_minutes: sliding window used to count failures
        lockout_minutes: how long a client is refused after max_attempts
        base_delay_seconds: suggested wait after the first failure
        max_delay_seconds: cap for the exponential backoff
        """
        self.failures = defaultdict(list)  # client -> list[datetime]
        self.max_attempts = max_attempts
        self.window = timedelta(minutes=window_minutes)
        self.lockout_duration = timedelta(minutes=lockout_minutes)
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.locks = {}  # client -> locked_until
        self._lock = threading.Lock()
        self._last_sweep = None

    def _now(self):
        return datetime.utcnow()

    def record_failure(self, client):
        """
        Record a failed login for `client`.

        Returns the number of seconds the client should wait before retrying;
        while locked out this is the remaining lockout time.
        """
        with self._lock:
            now = self._now()
            # Stale clients are dropped at most once per window
            if self._last_sweep is None or now - self._last_sweep >= self.window:
                self._prune(now)
                self._last_sweep = now

            locked_until = self.locks.get(client)
            if locked_until and now < locked_until:
                return int((locked_until - now).total_seconds())

            attempts = [t for t in self.failures[client] if now - t <= self.window]
            attempts.append(now)
            self.failures[client] = attempts

            if len(attempts) >= self.max_attempts:
                self.locks[client] = now + self.lockout_duration
                self.failures[client] = []
                return int(self.lockout_duration.total_seconds())

            return int(min(self.base_delay_seconds * (2 ** (len(attempts) - 1)), self.max_delay_seconds))

    def record_success(self, client):
        with self._lock:
            self.failures.pop(client, None)
            self.locks.pop(client, None)

    def is_locked(self, client):
        with self._lock:
            locked_until = self.locks.get(client)
            return bool(locked_until and self._now() < locked_until)

    def retry_after(self, client):
        with self._lock:
            locked_until = self.locks.get(client)
            if not locked_until:
                return 0
            return max(int((locked_until - self._now()).total_seconds()), 0)

    def clear_old_records(self):
        with self._lock:
            self._prune(self._now())

    def _prune(self, now):
        for client, attempts in list(self.failures.items()):
            pruned = [t for t in attempts if now - t <= self.window]
            if pruned:
                self.failures[client] = pruned
            else:
                del self.failures[client]
        for client, locked_until in list(self.locks.items()):
            if now >= locked_until:
                del self.locks[client]
