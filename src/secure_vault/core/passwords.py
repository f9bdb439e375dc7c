"""
Account password hashing.

Login passwords are stored as salted bcrypt hashes. bcrypt only considers
the first 72 bytes of its input, so longer passwords are pre-hashed with
SHA-256 before hashing and verification.
"""

import hashlib
import logging

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72
MIN_PASSWORD_LENGTH = 6


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        password_bytes = hashlib.sha256(password_bytes).hexdigest().encode("utf-8")
    return password_bytes


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a login password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a login password against its stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash: treat as a failed match, never as a server error
        logger.warning("Stored password hash is malformed")
        return False
