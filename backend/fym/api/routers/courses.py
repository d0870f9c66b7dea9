from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import Course, CourseProgress, User
from fym.schemas import CourseProgressUpdate
from fym.services.auth_service import get_current_user
from fym.storage.base import Storage

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=List[Course])
async def list_courses(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_courses()


# declared before /{course_id} so "progress" is not taken for an id
@router.get("/progress", response_model=List[CourseProgress])
async def my_progress(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_user_course_progress(current_user.id)


@router.get("/{course_id}", response_model=Course)
async def get_course(
    course_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    course = await storage.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


@router.post("/{course_id}/progress", response_model=CourseProgress)
async def update_progress(
    course_id: str,
    body: CourseProgressUpdate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    if await storage.get_course(course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return await storage.upsert_course_progress(current_user.id, course_id, body.progress)
