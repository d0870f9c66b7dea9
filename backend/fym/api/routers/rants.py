"""
Anonymous venting. No authentication, and nothing stored or returned here
can be traced back to an account.
"""
import secrets
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import NewAnonymousRant
from fym.schemas import Message, RantCreate, RantPublic
from fym.storage.base import Storage

router = APIRouter(prefix="/rants", tags=["rants"])


@router.post("", response_model=RantPublic, status_code=status.HTTP_201_CREATED)
async def create_rant(rant_in: RantCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_anonymous_rant(NewAnonymousRant(
        anonymous_token=f"anon_{secrets.token_hex(8)}",
        content=rant_in.content,
        sentiment_score=rant_in.sentiment_score,
    ))


@router.get("", response_model=List[RantPublic])
async def list_rants(storage: Storage = Depends(get_storage)):
    return await storage.get_anonymous_rants()


@router.post("/{rant_id}/support", response_model=Message)
async def support_rant(rant_id: str, storage: Storage = Depends(get_storage)):
    if not await storage.support_anonymous_rant(rant_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rant not found")
    return {"message": "Support added"}
