import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import AssessmentResponse, NewAssessmentResponse, User, WellnessAssessment
from fym.schemas import AssessmentSubmit
from fym.services.assessment_service import (
    InvalidAssessmentResponse, calculate_assessment_score, validate_responses,
)
from fym.services.auth_service import get_current_user
from fym.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wellness-assessments", tags=["wellness-assessments"])


@router.get("", response_model=List[WellnessAssessment])
async def list_assessments(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    assessments = await storage.get_wellness_assessments(current_user.id)
    if not assessments:
        # accounts created before default provisioning
        await storage.ensure_default_assessment(current_user.id)
        assessments = await storage.get_wellness_assessments(current_user.id)
    return assessments


# the /responses routes must be declared before /{assessment_id}
@router.get("/responses", response_model=List[AssessmentResponse])
async def list_responses(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await storage.get_user_assessment_responses(current_user.id)


@router.get("/responses/latest", response_model=AssessmentResponse)
async def latest_response(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    response = await storage.get_latest_assessment_response(current_user.id)
    if response is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No assessment responses yet")
    return response


async def _visible_assessment(assessment_id: str, storage: Storage, user: User) -> WellnessAssessment:
    assessment = await storage.get_wellness_assessment(assessment_id)
    if assessment is None or assessment.user_id not in (None, user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    return assessment


@router.get("/{assessment_id}", response_model=WellnessAssessment)
async def get_assessment(
    assessment_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return await _visible_assessment(assessment_id, storage, current_user)


@router.post("/{assessment_id}/submit", response_model=AssessmentResponse, status_code=status.HTTP_201_CREATED)
async def submit_assessment(
    assessment_id: str,
    body: AssessmentSubmit,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    assessment = await _visible_assessment(assessment_id, storage, current_user)
    try:
        validate_responses(assessment.questions, body.responses)
    except InvalidAssessmentResponse as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    score = calculate_assessment_score(assessment.questions, body.responses)
    response = await storage.create_assessment_response(NewAssessmentResponse(
        assessment_id=assessment.id,
        user_id=current_user.id,
        responses=body.responses,
        **score,
    ))
    logger.info("assessment %s submitted by %s (score %.1f)", assessment.id, current_user.id, response.total_score)
    return response
