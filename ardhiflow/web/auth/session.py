"""Request authentication against Clerk session tokens."""

from __future__ import annotations

import httpx
import jwt
import structlog
from fastapi import Request

from ardhiflow.auth.claims import ANONYMOUS, AuthState
from ardhiflow.exceptions import ConfigError
from ardhiflow.web.auth.clerk import verify_clerk_token

logger = structlog.get_logger(__name__)

# Clerk keeps same-origin session tokens in this cookie
SESSION_COOKIE = "__session"


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None
    return request.cookies.get(SESSION_COOKIE) or None


async def authenticate(request: Request) -> AuthState:
    """Identify the caller. Missing or invalid tokens yield an anonymous state."""
    token = _extract_token(request)
    if token is None:
        return ANONYMOUS

    try:
        return await verify_clerk_token(token)
    except (jwt.PyJWTError, httpx.HTTPError, ConfigError, KeyError, ValueError) as exc:
        logger.warning("clerk_token_invalid", error=str(exc))
        return ANONYMOUS


def get_auth(request: Request) -> AuthState:
    """FastAPI dependency: the identity resolved by the tenant gate."""
    state = getattr(request.state, "auth", None)
    if isinstance(state, AuthState):
        return state
    return ANONYMOUS
