import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from fym.api.deps import get_settings_dep, get_storage
from fym.config import Settings
from fym.models import User
from fym.schemas import AccountDelete, Message, PasswordChange, PasswordChanged, ProfileUpdate, UserPublic
from fym.security import hash_password
from fym.services.auth_service import clear_refresh_cookie, get_current_user
from fym.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile", response_model=UserPublic)
async def get_user_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserPublic)
async def update_user_profile(
    profile_in: ProfileUpdate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    update_data = profile_in.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No profile fields to update")

    email = update_data.get("email")
    if email and email != current_user.email and await storage.get_user_by_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use")

    user = await storage.update_user(current_user.id, update_data)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.patch("/password", response_model=PasswordChanged)
async def change_password(
    body: PasswordChange,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    if await storage.verify_password(current_user.email, body.current_password) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    await storage.update_user(current_user.id, {"password_hash": hash_password(body.new_password)})
    return {"message": "Password updated", "requires_reauthentication": True}


@router.delete("/account", response_model=Message)
async def delete_account(
    body: AccountDelete,
    response: Response,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings_dep),
    current_user: User = Depends(get_current_user),
):
    """Delete the caller and everything that belongs to them."""
    if await storage.verify_password(current_user.email, body.password) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is incorrect")
    await storage.delete_user(current_user.id)
    clear_refresh_cookie(response, settings)
    logger.info("deleted account %s", current_user.id)
    return {"message": "Account deleted"}
