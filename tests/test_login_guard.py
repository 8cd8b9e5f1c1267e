import threading
import types
from datetime import datetime, timedelta

import pytest

from voting_app.security.login_guard import LoginGuard


class FrozenDateTime:
    """Helper to monkeypatch datetime.utcnow()"""
    def __init__(self, start):
        self._now = start

    def advance(self, **kwargs):
        self._now += timedelta(**kwargs)

    def utcnow(self):
        return self._now


@pytest.fixture
def frozen_datetime(monkeypatch):
    fd = FrozenDateTime(datetime(2026, 3, 1, 8, 0, 0))
    import voting_app.security.login_guard as guard_mod
    monkeypatch.setattr(guard_mod, 'datetime', types.SimpleNamespace(utcnow=fd.utcnow))
    return fd


def test_progressive_delay_then_lockout(frozen_datetime):
    guard = LoginGuard(max_attempts=3, window_minutes=15, lockout_minutes=5)
    client = '1.2.3.4'

    d1 = guard.record_failure(client)
    d2 = guard.record_failure(client)
    assert d1 == 1
    assert d2 == 2
    assert guard.is_locked(client) is False

    d3 = guard.record_failure(client)
    assert d3 == 300
    assert guard.is_locked(client) is True
    assert guard.retry_after(client) == 300


def test_lockout_expires(frozen_datetime):
    guard = LoginGuard(max_attempts=2, lockout_minutes=5)
    guard.record_failure('a')
    guard.record_failure('a')
    assert guard.is_locked('a') is True

    frozen_datetime.advance(minutes=6)
    assert guard.is_locked('a') is False
    assert guard.retry_after('a') == 0


def test_failures_outside_window_are_forgotten(frozen_datetime):
    guard = LoginGuard(max_attempts=3, window_minutes=10)
    guard.record_failure('a')
    guard.record_failure('a')
    frozen_datetime.advance(minutes=11)
    guard.record_failure('a')
    assert guard.is_locked('a') is False


def test_success_resets_counter(frozen_datetime):
    guard = LoginGuard(max_attempts=3)
    guard.record_failure('a')
    guard.record_failure('a')
    guard.record_success('a')
    guard.record_failure('a')
    guard.record_failure('a')
    assert guard.is_locked('a') is False


def test_clients_are_isolated(frozen_datetime):
    guard = LoginGuard(max_attempts=2)
    guard.record_failure('10.0.0.1')
    guard.record_failure('10.0.0.2')
    guard.record_failure('10.0.0.1')
    assert guard.is_locked('10.0.0.1') is True
    assert guard.is_locked('10.0.0.2') is False


def test_clear_old_records(frozen_datetime):
    guard = LoginGuard(max_attempts=2, window_minutes=15, lockout_minutes=5)
    guard.record_failure('a')
    guard.record_failure('a')
    guard.record_failure('b')
    frozen_datetime.advance(minutes=16)

    guard.clear_old_records()
    assert 'a' not in guard.locks
    assert 'b' not in guard.failures


def test_stale_clients_are_swept_on_new_failures(frozen_datetime):
    guard = LoginGuard(max_attempts=3, window_minutes=15, lockout_minutes=5)
    guard.record_failure('10.0.0.1')
    guard.record_failure('10.0.0.2')
    guard.record_failure('10.0.0.2')
    guard.record_failure('10.0.0.2')
    assert '10.0.0.1' in guard.failures
    assert '10.0.0.2' in guard.locks

    frozen_datetime.advance(minutes=16)
    guard.record_failure('10.0.0.3')

    assert '10.0.0.1' not in guard.failures
    assert '10.0.0.2' not in guard.locks
    assert '10.0.0.3' in guard.failures


def test_concurrent_failures_are_all_counted():
    guard = LoginGuard(max_attempts=1000)
    threads = [
        threading.Thread(target=lambda: [guard.record_failure('a') for _ in range(50)])
        for _ in range(8)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(guard.failures['a']) == 400
    assert guard.is_locked('a') is False


def test_concurrent_failures_reach_lockout():
    guard = LoginGuard(max_attempts=5)
    barrier = threading.Barrier(5)

    def fail_once():
        barrier.wait()
        guard.record_failure('b')

    threads = [threading.Thread(target=fail_once) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert guard.is_locked('b') is True
