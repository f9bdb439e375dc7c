# API Security - Identity tokens and cookie authentication
#
# Login issues a signed, time-bounded identity token (HS256 JWT) carrying the
# account id and email. The token travels only in the `auth_token` cookie:
# HttpOnly, SameSite=Strict, Secure outside development.
#
# Every vault route depends on get_current_account(). A missing cookie and a
# cookie that fails verification (expired, bad signature, malformed) produce
# the same 401 so clients learn nothing about why a token was refused.

import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Cookie, HTTPException, Request, Response, status
from jose import JWTError, jwt

from ..core import EventSeverity, EventType, get_audit_logger
from ..db import RepositoryFactory

AUTH_COOKIE_NAME = "auth_token"
TOKEN_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_SECONDS = 3600

NOT_AUTHENTICATED = "Not authenticated."


class InvalidToken(Exception):
    """Raised when an identity token is malformed, forged or expired."""


@dataclass(frozen=True)
class AccountIdentity:
    """Verified identity carried by a token."""
    account_id: str
    email: str


class IdentityService:
    """
    Issues and verifies identity tokens.

    The signing secret never leaves the server. Tokens expire after
    ttl_seconds; there is no refresh, the user logs in again.
    """

    def __init__(self, secret: str, ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds

    def issue(self, account_id: str, email: str) -> str:
        """Sign a token for account_id/email, valid for ttl_seconds."""
        now = int(time.time())
        claims = {
            "account_id": account_id,
            "email": email,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> AccountIdentity:
        """
        Verify a token and return the identity it carries.

        Raises:
            InvalidToken: Bad signature, malformed, expired or missing claims
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[TOKEN_ALGORITHM])
        except JWTError as e:
            raise InvalidToken(type(e).__name__) from None

        account_id = claims.get("account_id")
        email = claims.get("email")
        if not isinstance(account_id, str) or not account_id or not isinstance(email, str):
            raise InvalidToken("missing claims")
        return AccountIdentity(account_id=account_id, email=email)


# ── Cookies ─────────────────────────────────────────────────────────

def set_auth_cookie(response: Response, token: str, *, secure: bool, max_age: int) -> None:
    """Attach the identity token cookie to a response."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="strict",
    )


def clear_auth_cookie(response: Response, *, secure: bool) -> None:
    """Overwrite the identity cookie with an empty value that expires immediately."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value="",
        max_age=-1,
        path="/",
        secure=secure,
        httponly=True,
        samesite="strict",
    )


# ── Dependencies ────────────────────────────────────────────────────
# The composition root (main.create_app) stores shared services on
# app.state; handlers reach them only through these dependencies.

def get_repositories(request: Request) -> RepositoryFactory:
    """FastAPI dependency returning the process-wide repository factory."""
    return request.app.state.repositories


def get_identity_service(request: Request) -> IdentityService:
    """FastAPI dependency returning the identity token service."""
    return request.app.state.identity


def _client_address(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


async def get_current_account(
    request: Request,
    auth_token: Optional[str] = Cookie(None),
) -> AccountIdentity:
    """
    FastAPI dependency resolving the caller's verified identity.

    Usage in routes:
        @router.get("/api/vault")
        async def list_entries(account: AccountIdentity = Depends(get_current_account)):

    Raises:
        HTTPException: 401 if the cookie is absent or fails verification
    """
    if not auth_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=NOT_AUTHENTICATED,
        )

    try:
        return get_identity_service(request).verify(auth_token)
    except InvalidToken as e:
        get_audit_logger().log_event(
            event_type=EventType.AUTH_REJECTED,
            severity=EventSeverity.WARNING,
            message="Identity token rejected",
            details={"reason": str(e), "path": request.url.path},
            user_context={"client": _client_address(request)},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=NOT_AUTHENTICATED,
        )
