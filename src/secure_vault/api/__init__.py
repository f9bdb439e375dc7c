# Secure Vault API Module
#
# FastAPI application factory, identity tokens and routers.

from .main import create_app, start_api_server
from .security import AccountIdentity, IdentityService, InvalidToken

__all__ = [
    "create_app",
    "start_api_server",
    "AccountIdentity",
    "IdentityService",
    "InvalidToken",
]
