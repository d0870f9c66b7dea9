from typing import List

from fastapi import APIRouter, Depends, Query, status

from fym.api.deps import get_storage
from fym.models import MoodEntry, NewMoodEntry, User
from fym.schemas import MoodCreate, MoodStats
from fym.services.auth_service import get_current_user
from fym.services.mood_service import mood_stats
from fym.storage.base import Storage

router = APIRouter(prefix="/mood", tags=["mood"])


@router.post("", response_model=MoodEntry, status_code=status.HTTP_201_CREATED)
async def create_mood_entry(
    mood_in: MoodCreate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.create_mood_entry(NewMoodEntry(user_id=current_user.id, **mood_in.model_dump()))


@router.get("", response_model=List[MoodEntry])
async def list_mood_entries(
    days: int = Query(30, ge=0, le=3650),
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_user_mood_entries(current_user.id, days)


@router.get("/stats", response_model=MoodStats)
async def get_mood_stats(
    days: int = Query(30, ge=0, le=3650),
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    entries = await storage.get_user_mood_entries(current_user.id, days)
    return mood_stats(entries)
