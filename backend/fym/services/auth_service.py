"""
Session handling: short-lived bearer access tokens plus an opaque refresh
token kept server-side and delivered in an http-only cookie.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError

from fym.api.deps import get_settings_dep, get_storage
from fym.config import Settings
from fym.models import User
from fym.security import create_access_token, decode_access_token
from fym.storage.base import Storage

logger = logging.getLogger(__name__)

REFRESH_COOKIE = "refresh_token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _unauthorized(detail: str, headers: Optional[dict] = None) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail, headers=headers)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings_dep),
) -> User:
    """
    Resolve the bearer access token to a stored user.

    An expired token gets its own message and WWW-Authenticate description so
    clients know to call /auth/refresh instead of logging in again.
    """
    if not token:
        raise _unauthorized("Access token required")
    try:
        payload = decode_access_token(token, settings)
    except ExpiredSignatureError:
        raise _unauthorized(
            "Token expired",
            headers={"WWW-Authenticate": 'Bearer error="invalid_token", error_description="expired"'},
        )
    except JWTError:
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token")
    user = await storage.get_user(user_id)
    if user is None:
        raise _unauthorized("Invalid token")
    return user


def require_role(*roles: str):
    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user
    return checker


def access_token_for(user: User, settings: Settings) -> str:
    return create_access_token({"sub": user.id, "email": user.email, "role": user.role}, settings)


def set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
        path="/",
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )


def clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
    )


async def issue_session(user: User, response: Response, storage: Storage, settings: Settings) -> str:
    """Store a new refresh token, set its cookie and return a fresh access token."""
    refresh = await storage.create_refresh_token(user.id, settings.refresh_token_expire_days)
    set_refresh_cookie(response, refresh, settings)
    return access_token_for(user, settings)


async def rotate_refresh_token(token: Optional[str], response: Response, storage: Storage,
                               settings: Settings):
    """
    Exchange a refresh token for a new pair. The old token is deleted before
    anything is issued; if another request already consumed it, this one fails.
    """
    if not token:
        raise _unauthorized("Refresh token required")
    user_id = await storage.verify_refresh_token(token)
    if not user_id:
        raise _unauthorized("Invalid or expired refresh token")
    if not await storage.delete_refresh_token(token):
        logger.warning("refresh token for user %s was already rotated", user_id)
        raise _unauthorized("Invalid or expired refresh token")
    user = await storage.get_user(user_id)
    if user is None:
        raise _unauthorized("Invalid or expired refresh token")
    access = await issue_session(user, response, storage, settings)
    return user, access
