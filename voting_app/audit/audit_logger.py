# voting_app/audit/audit_logger.py

import base64
import hashlib
import json
import logging
import os
from datetime import datetime

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

logger = logging.getLogger(__name__)

# Append-only audit trail: each JSON line carries the previous entry's hash and an Ed25519 signature


class AuditLogger:
    def __init__(self, log_dir='logs', signing_key_hex=None):
        self.log_dir = log_dir
        self.log_file = os.path.join(log_dir, 'audit.log')
        self.previous_hash = None

        os.makedirs(log_dir, exist_ok=True)

        if signing_key_hex:
            self.signing_key = Ed25519PrivateKey.from_private_bytes(bytes.fromhex(signing_key_hex))
        else:
            self.signing_key = Ed25519PrivateKey.generate()
        self._load_previous_hash()

    def _load_previous_hash(self):
        if not os.path.exists(self.log_file):
            return
        with open(self.log_file, 'r') as f:
            lines = [line for line in f if line.strip()]
        if lines:
            try:
                self.previous_hash = json.loads(lines[-1]).get('hash')
            except json.JSONDecodeError:
                logger.warning("Last audit entry in %s is not valid JSON", self.log_file)
                self.previous_hash = None

    def log_event(self, event_type, data, user_id=None):
        try:
            log_entry = {
                "timestamp": datetime.utcnow().isoformat(),
                "event_type": event_type,
                "data": data,
                "user_id": user_id,
                "previous_hash": self.previous_hash,
            }
            entry_json = json.dumps(log_entry, sort_keys=True)
            entry_hash = hashlib.sha256(entry_json.encode()).hexdigest()
            signature = self.signing_key.sign(entry_json.encode())
            log_entry['hash'] = entry_hash
            log_entry['signature'] = base64.b64encode(signature).decode()

            with open(self.log_file, 'a') as f:
                f.write(json.dumps(log_entry) + "\n")

            self.previous_hash = entry_hash
        except (OSError, TypeError, ValueError) as e:
            logger.error("Audit log error for %s: %s", event_type, e)

    def read_entries(self, newest_first=True):
        entries = []
        if not os.path.exists(self.log_file):
            return entries
        with open(self.log_file, 'r') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    entries.append({'raw': line})
        return list(reversed(entries)) if newest_first else entries

    def verify_log_integrity(self):
        public_key = self.signing_key.public_key()
        previous_hash = None
        for entry in self.read_entries(newest_first=False):
            if 'signature' not in entry or 'hash' not in entry:
                return False
            if entry.get('previous_hash') != previous_hash:
                return False
            body = {k: v for k, v in entry.items() if k not in ('hash', 'signature')}
            body_json = json.dumps(body, sort_keys=True).encode()
            if hashlib.sha256(body_json).hexdigest() != entry['hash']:
                return False
            try:
                public_key.verify(base64.b64decode(entry['signature']), body_json)
            except (InvalidSignature, ValueError):
                return False
            previous_hash = entry['hash']
        return True
