from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import Appointment, NewAppointment, User
from fym.schemas import AppointmentCreate, AppointmentUpdate, Message
from fym.services.auth_service import get_current_user
from fym.storage.base import Storage

router = APIRouter(prefix="/appointments", tags=["appointments"])


async def _own_appointment(appointment_id: str, storage: Storage, user: User) -> Appointment:
    appointment = await storage.get_appointment(appointment_id)
    if appointment is None or appointment.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


@router.post("", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    appointment_in: AppointmentCreate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    if await storage.get_therapist(appointment_in.therapist_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist not found")
    return await storage.create_appointment(NewAppointment(
        user_id=current_user.id,
        therapist_id=appointment_in.therapist_id,
        start_time=appointment_in.start_time,
        end_time=appointment_in.end_time,
        notes=appointment_in.notes,
    ))


@router.get("", response_model=List[Appointment])
async def list_appointments(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_user_appointments(current_user.id)


@router.get("/{appointment_id}", response_model=Appointment)
async def get_appointment(
    appointment_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await _own_appointment(appointment_id, storage, current_user)


@router.put("/{appointment_id}", response_model=Appointment)
async def update_appointment(
    appointment_id: str,
    appointment_in: AppointmentUpdate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    existing = await _own_appointment(appointment_id, storage, current_user)
    changes = appointment_in.model_dump(exclude_unset=True, exclude_none=True)
    start = changes.get("start_time", existing.start_time)
    end = changes.get("end_time", existing.end_time)
    if start and end and end <= start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="endTime must be after startTime")
    appointment = await storage.update_appointment(appointment_id, changes)
    if appointment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


@router.delete("/{appointment_id}", response_model=Message)
async def cancel_appointment(
    appointment_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    await _own_appointment(appointment_id, storage, current_user)
    await storage.delete_appointment(appointment_id)
    return {"message": "Appointment deleted"}
