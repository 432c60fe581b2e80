"""
Salted password hashing built on bcrypt.

The salt is generated and stored separately from the hash so that
verification can recompute ``bcrypt(candidate, stored_salt)`` and compare
the result with the stored hash in constant time.
"""
import hmac

import bcrypt

from blog.config import settings
from blog.exceptions import HashError, SaltGenerationError


def generate_salt(rounds: int | None = None) -> bytes:
    """Return a fresh bcrypt salt using *rounds* (defaults to ``settings.BCRYPT_ROUNDS``)."""
    try:
        return bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    except ValueError as exc:
        raise SaltGenerationError(f"could not generate salt: {exc}") from exc


def hash_password(password: str, salt: bytes) -> bytes:
    try:
        return bcrypt.hashpw(password.encode("utf-8"), salt)
    except (TypeError, ValueError) as exc:
        raise HashError(f"could not hash password: {exc}") from exc


def check_password(password: str, salt: bytes, hashed: bytes) -> bool:
    """True when *password* hashed with *salt* equals *hashed*."""
    candidate = hash_password(password, salt)
    return hmac.compare_digest(candidate, hashed)
