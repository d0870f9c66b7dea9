from fastapi import APIRouter, Depends

from fym.api.deps import get_storage
from fym.models import User
from fym.schemas import NotificationPreferences
from fym.services.auth_service import get_current_user
from fym.storage.base import Storage

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/preferences", response_model=NotificationPreferences)
async def get_preferences(current_user: User = Depends(get_current_user)):
    # stored under preferences.notifications; missing keys fall back to defaults
    return NotificationPreferences.model_validate(current_user.preferences.get("notifications") or {})


@router.put("/preferences", response_model=NotificationPreferences)
async def update_preferences(
    prefs: NotificationPreferences,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    preferences = dict(current_user.preferences)
    preferences["notifications"] = prefs.model_dump(by_alias=True)
    await storage.update_user(current_user.id, {"preferences": preferences})
    return prefs
