# Core Module - Shared Utilities
#
# - Configuration (environment + .env)
# - Audit logging
# - Account password hashing

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
)
from .config import ConfigurationError, Settings, get_settings
from .passwords import hash_password, verify_password

__all__ = [
    # Configuration
    "ConfigurationError",
    "Settings",
    "get_settings",
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "configure_audit_logger",
    "get_audit_logger",
    # Passwords
    "hash_password",
    "verify_password",
]
