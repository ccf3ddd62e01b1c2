from passlib.context import CryptContext

from src.core.service.account.interfaces import CredentialHasher


class PasswordHasherService(CredentialHasher):
    """Argon2 password hashing through passlib"""

    def __init__(self, context: CryptContext = None):
        self.context = context or CryptContext(schemes=["argon2"], deprecated="auto")

    def hash(self, plaintext: str) -> str:
        return self.context.hash(plaintext)

    def verify(self, plaintext: str, hashed: str) -> bool:
        # Unrecognised or corrupt hashes count as a mismatch
        try:
            return self.context.verify(plaintext, hashed)
        except ValueError:
            return False
