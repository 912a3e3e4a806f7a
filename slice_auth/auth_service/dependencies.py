"""
FastAPI dependencies shared by the routers.
"""
import logging
from typing import Optional

from fastapi import Header, Request

from .accounts import AccountManager
from .errors import CredentialError, Unauthorized

logger = logging.getLogger(__name__)


def get_accounts(request: Request) -> AccountManager:
    return request.app.state.accounts


def get_current_claim(
    request: Request,
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> dict:
    """
    Authenticate the caller from "Authorization: Bearer <token>".

    Every failure is a 401; the message says whether the token was missing,
    expired or invalid.
    """
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning(
            "Authentication failed: missing or malformed token route=%s method=%s",
            request.url.path, request.method,
        )
        raise Unauthorized("Unauthorized: Missing or malformed token")

    token = authorization[len("Bearer "):].strip()
    try:
        return request.app.state.accounts.tokens.verify(token)
    except CredentialError as exc:
        logger.warning(
            "Authentication failed: %s route=%s method=%s",
            exc, request.url.path, request.method,
        )
        raise Unauthorized(f"Unauthorized: {exc}") from exc
