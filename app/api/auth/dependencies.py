import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, Request

from app.config import settings
from app.errors import AuthenticationError, AuthorizationError

from .security import decode_access_token

logger = logging.getLogger(__name__)

Principal = Dict[str, Any]


async def get_current_user(request: Request) -> Optional[Principal]:
    """Principal from the auth cookie, or None when missing/invalid/expired."""
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        return None
    principal = decode_access_token(token)
    if principal is None:
        logger.info("rejected invalid auth token")
    return principal


CurrentUserDep = Annotated[Optional[Principal], Depends(get_current_user)]


async def require_admin(user: CurrentUserDep) -> Principal:
    if user is None:
        raise AuthenticationError("Not authenticated")
    if user.get("role") != "admin":
        logger.info("user %s is not an admin", user.get("id"))
        raise AuthorizationError("Unauthorized")
    return user


AdminDep = Annotated[Principal, Depends(require_admin)]
