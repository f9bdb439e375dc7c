"""
Tests for the audit trail (core/audit_log.py).

The autouse fixture in conftest points the global logger at tmp_path.
"""

import json

from secure_vault.core.audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
)


def _read_events(log_dir):
    events = []
    for path in sorted(log_dir.glob("audit_*.log")):
        for line in path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                events.append(json.loads(line))
    return events


class TestAuditLogger:

    def test_log_event_writes_json(self, tmp_path):
        log_dir = tmp_path / "trail"
        audit = AuditLogger(log_dir=log_dir)
        try:
            event_id = audit.log_event(
                event_type=EventType.SYSTEM_START,
                severity=EventSeverity.INFO,
                message="starting",
                details={"version": "0.1.0"},
            )
        finally:
            audit.close()

        (event,) = _read_events(log_dir)
        assert event["event_id"] == event_id
        assert event["event_type"] == "system.start"
        assert event["severity"] == "info"
        assert event["details"] == {"version": "0.1.0"}

    def test_account_event_context(self, tmp_path):
        log_dir = tmp_path / "trail"
        audit = AuditLogger(log_dir=log_dir)
        try:
            audit.log_account_event(
                EventType.USER_LOGIN_FAILED, "login rejected",
                email="a@x.com", severity=EventSeverity.WARNING,
            )
        finally:
            audit.close()

        (event,) = _read_events(log_dir)
        assert event["severity"] == "warning"
        assert event["user_context"] == {"email": "a@x.com"}

    def test_configure_replaces_global(self, tmp_path):
        first = configure_audit_logger(tmp_path / "one")
        assert get_audit_logger() is first
        assert configure_audit_logger(tmp_path / "one") is first
        second = configure_audit_logger(tmp_path / "two")
        assert second is not first
        assert get_audit_logger() is second


class TestRequestAuditTrail:

    def test_flow_is_audited_without_secrets(self, client, login_as, settings):
        login_as(client)
        client.post("/api/vault", json={
            "title": "ct-title", "username": "ct-user", "password": "ct-pass",
        })
        client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong-pw"})
        client.post("/api/auth/logout")

        events = _read_events(settings.audit_log_dir)
        types = [e["event_type"] for e in events]
        for expected in ("system.start", "user.signup", "user.login",
                         "vault.entry.added", "user.login.failed", "user.logout"):
            assert expected in types

        raw = "\n".join(json.dumps(e) for e in events)
        assert "secret1" not in raw
        assert "wrong-pw" not in raw
        assert "ct-pass" not in raw

    def test_rejected_token_is_audited(self, client, settings):
        client.cookies.set("auth_token", "garbage")
        client.get("/api/vault")
        events = _read_events(settings.audit_log_dir)
        rejected = [e for e in events if e["event_type"] == "auth.rejected"]
        assert len(rejected) == 1
        assert rejected[0]["severity"] == "warning"

    def test_logout_names_account(self, client, login_as, settings, repos):
        login_as(client)
        client.post("/api/auth/logout")

        (account,) = repos.accounts.accounts.values()
        events = _read_events(settings.audit_log_dir)
        (logout,) = [e for e in events if e["event_type"] == "user.logout"]
        assert logout["user_context"] == {"account_id": account["id"], "email": "a@x.com"}

    def test_logout_without_session_is_anonymous(self, client, settings):
        client.cookies.set("auth_token", "garbage")
        assert client.post("/api/auth/logout").status_code == 200

        events = _read_events(settings.audit_log_dir)
        (logout,) = [e for e in events if e["event_type"] == "user.logout"]
        assert logout["user_context"] == {}
