# Vault Module - Client-Side Field Encryption
#
# Every vault field is encrypted with AES-256-GCM before it leaves the
# client. The key is a digest of the login password and is never sent to
# the server.

from .encryption import (
    DECRYPT_FAILED,
    VAULT_FIELDS,
    DecryptResult,
    decrypt,
    derive_encryption_key,
    encrypt,
    try_decrypt,
)
from .password_generator import generate_password

__all__ = [
    "DECRYPT_FAILED",
    "VAULT_FIELDS",
    "DecryptResult",
    "decrypt",
    "derive_encryption_key",
    "encrypt",
    "try_decrypt",
    "generate_password",
]
