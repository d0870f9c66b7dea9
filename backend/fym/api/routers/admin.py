from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import User
from fym.services.auth_service import require_role
from fym.services.metrics_service import WellnessMetrics
from fym.storage.base import Storage

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/wellness-metrics/{org_id}", response_model=WellnessMetrics)
async def wellness_metrics(
    org_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_role("manager", "admin")),
):
    """Aggregated team wellness for the last 30 days; individuals stay anonymous."""
    if await storage.get_organization(org_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return await storage.get_organization_wellness_metrics(org_id)
