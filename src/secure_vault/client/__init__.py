# Client Module - Session-side vault controller
#
# Encrypts before send, decrypts after fetch; the key never leaves here.

from .key_store import KeyDestroyedError, KeyStore, SessionKey
from .vault_client import (
    AuthenticationError,
    DecryptedEntry,
    VaultClient,
    VaultClientError,
    VaultLockedError,
    filter_entries,
)

__all__ = [
    "KeyDestroyedError",
    "KeyStore",
    "SessionKey",
    "AuthenticationError",
    "DecryptedEntry",
    "VaultClient",
    "VaultClientError",
    "VaultLockedError",
    "filter_entries",
]
