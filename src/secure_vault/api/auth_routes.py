# Auth API - Signup, login, logout
#
# POST /api/auth/signup     create an account (bcrypt password hash)
# POST /api/auth/login      verify credentials, set the auth_token cookie
# GET|POST /api/auth/logout expire the auth_token cookie
#
# The encryption key is never part of these exchanges: the client derives it
# from the password locally after a successful login.

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field

from ..core import (
    EventSeverity,
    EventType,
    get_audit_logger,
    hash_password,
    verify_password,
)
from ..core.passwords import MIN_PASSWORD_LENGTH
from ..db import AccountExistsError, RepositoryFactory
from .security import (
    IdentityService,
    InvalidToken,
    clear_auth_cookie,
    get_identity_service,
    get_repositories,
    set_auth_cookie,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials."


# Request Models
class SignupRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)


# Endpoints

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    request: Request,
    repos: RepositoryFactory = Depends(get_repositories),
):
    """
    Create a new account.

    Rejects (422) passwords shorter than 6 characters and emails that are
    already registered.
    """
    existing = await repos.accounts.get_by_email(payload.email)
    if existing:
        raise HTTPException(
            status_code=422,
            detail="User already exists!",
        )

    rounds = request.app.state.settings.bcrypt_rounds
    password_hash = await asyncio.to_thread(hash_password, payload.password, rounds)

    try:
        account = await repos.accounts.create(payload.email, password_hash)
    except AccountExistsError:
        # Lost a race with a concurrent signup for the same email
        raise HTTPException(
            status_code=422,
            detail="User already exists!",
        )

    get_audit_logger().log_account_event(
        EventType.USER_SIGNUP,
        "account created",
        account_id=account["id"],
        email=account["email"],
    )
    return {"message": "User created!"}


@router.post("/login")
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    repos: RepositoryFactory = Depends(get_repositories),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Verify credentials and set the identity cookie.

    Unknown email and wrong password give the same 401.
    """
    account = await repos.accounts.get_by_email(payload.email)
    is_valid = account is not None and await asyncio.to_thread(
        verify_password, payload.password, account["password_hash"]
    )

    if not is_valid:
        get_audit_logger().log_account_event(
            EventType.USER_LOGIN_FAILED,
            "login rejected",
            email=payload.email,
            severity=EventSeverity.WARNING,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )

    settings = request.app.state.settings
    token = identity.issue(account["id"], account["email"])
    set_auth_cookie(
        response,
        token,
        secure=settings.secure_cookies,
        max_age=identity.ttl_seconds,
    )

    get_audit_logger().log_account_event(
        EventType.USER_LOGIN,
        "logged in",
        account_id=account["id"],
        email=account["email"],
    )
    return {"message": "Logged in successfully!"}


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(
    request: Request,
    response: Response,
    auth_token: Optional[str] = Cookie(None),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Expire the identity cookie. Always succeeds, with or without a session.

    A still-valid cookie only names the account in the audit trail.
    """
    account = None
    if auth_token:
        try:
            account = identity.verify(auth_token)
        except InvalidToken as e:
            logger.debug("Logout with an unverifiable token: %s", e)

    clear_auth_cookie(response, secure=request.app.state.settings.secure_cookies)
    get_audit_logger().log_account_event(
        EventType.USER_LOGOUT,
        "logged out",
        account_id=account.account_id if account else None,
        email=account.email if account else None,
    )
    return {"message": "Successfully logged out."}
