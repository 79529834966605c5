"""Password hashing and verification using Argon2id."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, hash_string: str) -> bool:
    """Return True if ``password`` matches the stored Argon2 hash.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        return _hasher.verify(hash_string, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
