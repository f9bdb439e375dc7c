"""Tests for identity token issue/verify (api/security.py)."""

import pytest
from jose import jwt

from secure_vault.api.security import (
    TOKEN_ALGORITHM,
    AccountIdentity,
    IdentityService,
    InvalidToken,
)


@pytest.fixture
def identity():
    return IdentityService("test-signing-secret", ttl_seconds=3600)


class TestIdentityService:

    def test_issue_and_verify(self, identity):
        token = identity.issue("acct-1", "a@x.com")
        assert identity.verify(token) == AccountIdentity(account_id="acct-1", email="a@x.com")

    def test_claims(self, identity):
        token = identity.issue("acct-1", "a@x.com")
        claims = jwt.get_unverified_claims(token)
        assert claims["account_id"] == "acct-1"
        assert claims["email"] == "a@x.com"
        assert claims["exp"] - claims["iat"] == 3600

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            IdentityService("")

    def test_expired(self):
        expired = IdentityService("test-signing-secret", ttl_seconds=-10)
        token = expired.issue("acct-1", "a@x.com")
        with pytest.raises(InvalidToken):
            expired.verify(token)

    def test_wrong_secret(self, identity):
        token = IdentityService("another-secret").issue("acct-1", "a@x.com")
        with pytest.raises(InvalidToken):
            identity.verify(token)

    def test_tampered_payload(self, identity):
        header, payload, signature = identity.issue("acct-1", "a@x.com").split(".")
        forged = jwt.encode({"account_id": "acct-2", "email": "b@x.com"},
                            "test-signing-secret", algorithm=TOKEN_ALGORITHM)
        forged_payload = forged.split(".")[1]
        with pytest.raises(InvalidToken):
            identity.verify(".".join([header, forged_payload, signature]))

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed(self, identity, token):
        with pytest.raises(InvalidToken):
            identity.verify(token)

    def test_missing_account_claim(self, identity):
        token = jwt.encode({"email": "a@x.com"}, "test-signing-secret",
                           algorithm=TOKEN_ALGORITHM)
        with pytest.raises(InvalidToken, match="missing claims"):
            identity.verify(token)
