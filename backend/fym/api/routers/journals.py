from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import Journal, NewJournal, User
from fym.schemas import JournalCreate, JournalUpdate, Message
from fym.services.auth_service import get_current_user
from fym.storage.base import Storage

router = APIRouter(prefix="/journals", tags=["journals"])


async def _own_journal(journal_id: str, storage: Storage, user: User) -> Journal:
    # someone else's journal looks exactly like a missing one
    journal = await storage.get_journal(journal_id)
    if journal is None or journal.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal not found")
    return journal


@router.post("", response_model=Journal, status_code=status.HTTP_201_CREATED)
async def create_journal(
    journal_in: JournalCreate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.create_journal(NewJournal(user_id=current_user.id, **journal_in.model_dump()))


@router.get("", response_model=List[Journal])
async def list_journals(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_user_journals(current_user.id)


@router.get("/{journal_id}", response_model=Journal)
async def get_journal(
    journal_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await _own_journal(journal_id, storage, current_user)


@router.put("/{journal_id}", response_model=Journal)
async def update_journal(
    journal_id: str,
    journal_in: JournalUpdate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    await _own_journal(journal_id, storage, current_user)
    journal = await storage.update_journal(journal_id, journal_in.model_dump(exclude_unset=True, exclude_none=True))
    if journal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal not found")
    return journal


@router.delete("/{journal_id}", response_model=Message)
async def delete_journal(
    journal_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    await _own_journal(journal_id, storage, current_user)
    await storage.delete_journal(journal_id)
    return {"message": "Journal deleted"}
