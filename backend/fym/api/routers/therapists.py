from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import Therapist, User
from fym.services.auth_service import get_current_user
from fym.storage.base import Storage

router = APIRouter(prefix="/therapists", tags=["therapists"])


@router.get("", response_model=List[Therapist])
async def list_therapists(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_therapists()


@router.get("/{therapist_id}", response_model=Therapist)
async def get_therapist(
    therapist_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    therapist = await storage.get_therapist(therapist_id)
    if therapist is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist not found")
    return therapist
