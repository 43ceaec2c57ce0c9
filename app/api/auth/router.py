# app/api/auth/router.py
import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.user.service import UserService, user_to_dict
from app.config import settings
from app.db.session import get_session
from app.errors import AuthenticationError, ValidationError

from .dependencies import CurrentUserDep
from .schemas import LoginBody, LoginResponse, SessionResponse
from .security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginBody, response: Response, db: AsyncSession = Depends(get_session)):
    if not body.email or not body.password:
        raise ValidationError("Email and password are required")

    user = await UserService(db).authenticate(body.email, body.password)
    if not user:
        raise AuthenticationError("Invalid credentials")

    set_auth_cookie(response, create_access_token(user))
    logger.info("login ok for user %s (role=%s)", user.id, user.role)
    return user_to_dict(user)


@router.post("/logout")
async def logout(response: Response):
    clear_auth_cookie(response)
    return {"success": True}


@router.get("/session", response_model=SessionResponse)
async def session(user: CurrentUserDep):
    return {"user": user}
