import logging
from typing import Optional

from fastapi import APIRouter, Body, Cookie, Depends, HTTPException, Response, status

from fym.api.deps import get_settings_dep, get_storage
from fym.config import Settings
from fym.errors import StorageError
from fym.models import NewUser, User
from fym.schemas import AuthResponse, LoginRequest, Message, RefreshRequest, RegisterRequest, UserPublic
from fym.services.auth_service import (
    REFRESH_COOKIE, clear_refresh_cookie, get_current_user, issue_session, rotate_refresh_token,
)
from fym.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_in: RegisterRequest,
    response: Response,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings_dep),
):
    if await storage.get_user_by_email(user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    # DuplicateEmailError from a concurrent signup is rendered as the same 400
    user = await storage.create_user(NewUser(
        email=user_in.email,
        password=user_in.password,
        display_name=user_in.display_name,
        role=user_in.role,
    ))
    token = await issue_session(user, response, storage, settings)
    logger.info("registered user %s (%s)", user.id, user.role)
    return {"user": user, "token": token}


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings_dep),
):
    user = await storage.verify_password(credentials.email, credentials.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if user.role == "manager" and not credentials.organization_code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Organization code required for managers")
    if user.role == "admin" and not credentials.organization_code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admin access code required")

    token = await issue_session(user, response, storage, settings)
    return {"user": user, "token": token}


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    response: Response,
    body: Optional[RefreshRequest] = Body(None),
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings_dep),
):
    """Rotate the refresh token (cookie first, JSON body for non-browser clients)."""
    token = refresh_cookie or (body.refresh_token if body else None)
    user, access = await rotate_refresh_token(token, response, storage, settings)
    return {"user": user, "token": access}


@router.post("/logout", response_model=Message)
async def logout(
    response: Response,
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings_dep),
):
    if refresh_cookie:
        try:
            await storage.delete_refresh_token(refresh_cookie)
        except StorageError as e:
            # the cookie still goes; the stored token expires on its own
            logger.warning("logout could not revoke refresh token: %s", e.detail or e.message)
    clear_refresh_cookie(response, settings)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
