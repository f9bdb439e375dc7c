# Secure Vault - Main Package
#
# Personal password vault. Entries are encrypted on the client with a key
# derived from the login password; the server stores ciphertext only.

__version__ = "0.1.0"
__author__ = "Secure Vault Team"
__description__ = "Personal password vault with client-side encryption"

from .core import (
    EventSeverity,
    EventType,
    Settings,
    get_audit_logger,
    get_settings,
)

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "Settings",
    "get_audit_logger",
    "get_settings",
]
