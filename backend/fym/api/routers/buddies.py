from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fym.api.deps import get_storage
from fym.models import BuddyMatch, BuddySuggestion, User
from fym.schemas import BuddyMatchCreate, BuddyStatusUpdate, Message
from fym.services.auth_service import get_current_user
from fym.storage.base import Storage

router = APIRouter(prefix="/buddies", tags=["buddies"])


@router.get("/suggestions", response_model=List[BuddySuggestion])
async def suggestions(
    limit: int = Query(5, ge=1, le=20),
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.suggest_buddies(current_user.id, limit)


@router.post("/match", response_model=BuddyMatch, status_code=status.HTTP_201_CREATED)
async def request_match(
    match_in: BuddyMatchCreate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    if match_in.buddy_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot match with yourself")
    if await storage.get_user(match_in.buddy_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return await storage.create_buddy_match(current_user.id, match_in.buddy_id, match_in.compatibility_score)


@router.put("/{match_id}/status", response_model=Message)
async def update_match_status(
    match_id: str,
    body: BuddyStatusUpdate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    match = await storage.get_buddy_match(match_id)
    if match is None or current_user.id not in (match.user_a_id, match.user_b_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Match not found")
    await storage.update_buddy_match_status(match_id, body.status)
    return {"message": f"Match {body.status}"}


@router.get("/matches", response_model=List[BuddyMatch])
async def list_matches(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_buddy_matches(current_user.id)
