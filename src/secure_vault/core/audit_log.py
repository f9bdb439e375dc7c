# Core - Audit Logging
#
# Append-only audit trail for account and vault events.
# Every authentication decision and every vault mutation is recorded with a
# timestamp, the acting account and the request origin.
#
# Never pass passwords, tokens, encryption keys or field plaintext into
# details: the trail holds identifiers and emails only.

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog


class EventType(str, Enum):
    """Types of events written to the audit trail."""
    # Account Events
    USER_SIGNUP = "user.signup"
    USER_LOGIN = "user.login"
    USER_LOGIN_FAILED = "user.login.failed"
    USER_LOGOUT = "user.logout"
    AUTH_REJECTED = "auth.rejected"

    # Vault Events
    VAULT_ENTRY_ADDED = "vault.entry.added"
    VAULT_ENTRY_UPDATED = "vault.entry.updated"
    VAULT_ENTRY_DELETED = "vault.entry.deleted"

    # System Events
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"
    SYSTEM_ERROR = "system.error"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: Normal activity (signup, login, CRUD)
    - WARNING: Rejected credentials or tokens
    - CRITICAL: Server-side failures
    """
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only JSON audit logger.

    Features:
    - Structured JSON lines (structlog)
    - Automatic timestamp and event ID
    - One file per day under log_dir
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._file_handler = self._setup_file_handler()
        self.logger = structlog.get_logger("secure_vault.audit")

    def _setup_file_handler(self) -> logging.Handler:
        """Attach a daily file handler to the audit logger."""
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog renders JSON

        audit_std_logger = logging.getLogger("secure_vault.audit")
        audit_std_logger.addHandler(file_handler)
        audit_std_logger.setLevel(logging.INFO)
        return file_handler

    def close(self) -> None:
        """Detach and close the file handler."""
        logging.getLogger("secure_vault.audit").removeHandler(self._file_handler)
        self._file_handler.close()

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log an audit event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (ids only, never secrets)
            user_context: Acting account (account_id, email, client address)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())
        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
            "user_context": user_context or {},
        }

        if severity == EventSeverity.INFO:
            self.logger.info("audit_event", **event_data)
        elif severity == EventSeverity.WARNING:
            self.logger.warning("audit_event", **event_data)
        else:
            self.logger.critical("audit_event", **event_data)

        return event_id

    def log_account_event(
        self,
        event_type: EventType,
        message: str,
        account_id: Optional[str] = None,
        email: Optional[str] = None,
        severity: EventSeverity = EventSeverity.INFO,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Log an account/authentication event."""
        context = {}
        if account_id:
            context["account_id"] = account_id
        if email:
            context["email"] = email
        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Account: {message}",
            details=details,
            user_context=context,
        )

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        account_id: str,
        entry_id: Optional[str] = None,
    ) -> str:
        """
        Log a vault mutation.

        Vault events carry the entry id only. The server never sees field
        plaintext, and ciphertext is not copied into the trail either.
        """
        details = {"entry_id": entry_id} if entry_id else {}
        return self.log_event(
            event_type=event_type,
            severity=EventSeverity.INFO,
            message=f"Vault: {message}",
            details=details,
            user_context={"account_id": account_id},
        )


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Path) -> AuditLogger:
    """Replace the global audit logger with one writing to log_dir."""
    global _audit_logger
    if _audit_logger is not None and _audit_logger.log_dir == Path(log_dir):
        return _audit_logger
    if _audit_logger is not None:
        _audit_logger.close()
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger
