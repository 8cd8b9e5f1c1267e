# voting_app/security/credential_hashing.py

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

# National IDs double as login secrets, so only Argon2id hashes are stored


class CredentialHashingService:
    def __init__(self):
        self.ph = PasswordHasher(
            time_cost=3,
            memory_cost=65536,
            parallelism=4,
            hash_len=32,
            salt_len=16,
        )

    @staticmethod
    def normalize(secret: str) -> str:
        return secret.strip().upper()

    def hash_secret(self, secret: str) -> str:
        if not secret or not secret.strip():
            raise ValueError("Secret must not be empty")
        try:
            return self.ph.hash(self.normalize(secret))
        except HashingError as e:
            raise ValueError(f"Credential hashing failed: {str(e)}")

    def verify_secret(self, secret: str, hash_value: str) -> bool:
        if not secret:
            return False
        try:
            return self.ph.verify(hash_value, self.normalize(secret))
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash_value: str) -> bool:
        return self.ph.check_needs_rehash(hash_value)
