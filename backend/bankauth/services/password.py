"""
Password hashing.

bcrypt through passlib; hashes are opaque to the rest of the package.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class BcryptPasswordHasher:
    def __init__(self, context: CryptContext = pwd_context):
        self.context = context

    def hash_password(self, password: str) -> str:
        if not isinstance(password, str) or len(password) == 0:
            raise ValueError("Password must be a non-empty string")
        return self.context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """
        Verify a plaintext password against a stored hash.

        Empty input and hashes passlib cannot identify verify as False.
        """
        if not password or not password_hash:
            return False
        try:
            return self.context.verify(password, password_hash)
        except ValueError:
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        return self.context.needs_update(password_hash)
