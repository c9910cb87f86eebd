from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()


def _salted(username: str, raw_password: str) -> str:
    return f"{username.strip().lower()}.{raw_password}"


def encrypt_password(username: str, raw_password: str) -> str:
    """
    One-way encode *raw_password* with argon2, keyed by the (normalised) username.

    Every call draws a fresh salt, so equal inputs give different encodings;
    compare with :func:`verify_password`, never by string equality.
    """
    return _hasher.hash(_salted(username, raw_password))


def verify_password(username: str, raw_password: str, encoded: str) -> bool:
    """Check *raw_password* against a stored argon2 encoding."""
    try:
        return _hasher.verify(encoded, _salted(username, raw_password))
    except (VerificationError, InvalidHashError):
        return False
