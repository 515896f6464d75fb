import logging
from typing import Optional

from fastapi import Header, Request

from todo_api.errors import unauthenticated
from todo_api.utils.auth import InvalidToken, TokenService

logger = logging.getLogger(__name__)


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


def get_settings(request: Request):
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_current_user_id(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """Authorization gate for protected routes.

    Resolves the bearer token to a user id and records it on ``request.state``;
    anything else fails with 401 before the route handler runs.
    """
    token = _extract_token(authorization)
    if not token:
        raise unauthenticated("Missing Bearer token")
    try:
        user_id = get_token_service(request).verify(token)
    except InvalidToken as exc:
        logger.info("rejected token on %s: %s", request.url.path, exc)
        raise unauthenticated(str(exc))
    request.state.user_id = user_id
    return user_id
