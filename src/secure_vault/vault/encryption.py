# Vault - Field Encryption
#
# Login password -> encryption key (SHA-256 digest, client side only)
# Field encryption (AES-256-GCM), one fresh salt + nonce per call
#
# Ciphertext layout (base64): salt(16) || nonce(12) || ciphertext || tag(16)
# The per-call AES key is HKDF-SHA256(key string, salt), so the same field
# encrypted twice under the same key never yields the same ciphertext.

import base64
import binascii
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

logger = logging.getLogger(__name__)

KEY_LENGTH = 32  # 256 bits for AES-256
SALT_LENGTH = 16
NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)
TAG_LENGTH = 16
HKDF_INFO = b"secure-vault field encryption v1"

# Returned by decrypt() when a field cannot be recovered. Observably the same
# as a genuinely empty field; use try_decrypt() to tell them apart.
DECRYPT_FAILED = ""

# Vault entry fields, each encrypted independently before it leaves the client
VAULT_FIELDS = ("title", "username", "password", "url", "notes")


@dataclass(frozen=True)
class DecryptResult:
    """
    Outcome of a decryption attempt.

    Attributes:
        ok: True if the ciphertext authenticated under the key
        plaintext: Recovered text ("" when ok is False)
        reason: Short failure category (never contains key or plaintext)
    """
    ok: bool
    plaintext: Any = DECRYPT_FAILED
    reason: Optional[str] = None


def derive_encryption_key(password: str) -> str:
    """
    Derive the client encryption key from a login password.

    Deterministic: the same password always yields the same 64-character
    hex digest, so ciphertext written in one session can be read in the next.
    """
    digest = hashes.Hash(hashes.SHA256())
    digest.update(password.encode("utf-8"))
    return digest.finalize().hex()


def _field_key(key: str, salt: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        info=HKDF_INFO,
    )
    return hkdf.derive(key.encode("utf-8"))


def encrypt(plaintext: Any, key: str) -> Any:
    """
    Encrypt one field value.

    Values that are not a non-empty string (None, "", numbers) pass through
    unchanged so optional fields need no special casing by callers.

    Args:
        plaintext: Field value to encrypt
        key: Encryption key string (from derive_encryption_key)

    Returns:
        Base64 ciphertext, or the input unchanged
    """
    if not isinstance(plaintext, str) or plaintext == "":
        return plaintext

    salt = os.urandom(SALT_LENGTH)
    nonce = os.urandom(NONCE_LENGTH)
    aesgcm = AESGCM(_field_key(key, salt))
    ciphertext = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(salt + nonce + ciphertext).decode("ascii")


def try_decrypt(ciphertext: Any, key: str) -> DecryptResult:
    """
    Decrypt one field value, reporting failure instead of raising.

    Non-string or empty input passes through as a successful result.
    """
    if not isinstance(ciphertext, str) or ciphertext == "":
        return DecryptResult(ok=True, plaintext=ciphertext)

    try:
        blob = base64.b64decode(ciphertext.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError):
        return DecryptResult(ok=False, reason="malformed")

    if len(blob) < SALT_LENGTH + NONCE_LENGTH + TAG_LENGTH:
        return DecryptResult(ok=False, reason="truncated")

    salt = blob[:SALT_LENGTH]
    nonce = blob[SALT_LENGTH:SALT_LENGTH + NONCE_LENGTH]
    body = blob[SALT_LENGTH + NONCE_LENGTH:]

    try:
        plaintext_bytes = AESGCM(_field_key(key, salt)).decrypt(nonce, body, None)
    except InvalidTag:
        return DecryptResult(ok=False, reason="authentication failed")

    try:
        return DecryptResult(ok=True, plaintext=plaintext_bytes.decode("utf-8"))
    except UnicodeDecodeError:
        return DecryptResult(ok=False, reason="not utf-8")


def decrypt(ciphertext: Any, key: str) -> Any:
    """
    Decrypt one field value.

    Never raises on a wrong key or corrupted input: the failure is logged
    and DECRYPT_FAILED ("") is returned. Callers must read that as "field
    unavailable", not "field empty".
    """
    result = try_decrypt(ciphertext, key)
    if not result.ok:
        logger.warning("Decryption failed: %s", result.reason)
        return DECRYPT_FAILED
    return result.plaintext
