from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..utils.error_handlers import UnauthorizedError, get_error_message
from .jwt import decode_access_token

_bearer = HTTPBearer(auto_error=False)


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> dict:
    """
    Resolve the bearer token into the caller's claims: {"sub": "<user id>", "role", "email"}.
    """
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise UnauthorizedError(get_error_message("unauthorized"))

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub") or not claims.get("role"):
        raise UnauthorizedError("Invalid or expired token")

    try:
        int(claims["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid or expired token")
    return claims


def current_user_id(user: dict) -> int:
    return int(user.get("sub"))
