from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fym.api.deps import get_storage
from fym.models import Employee, Organization, User
from fym.schemas import EmployeeCreate, OrganizationCreate, OrganizationUpdate
from fym.services.auth_service import require_role
from fym.storage.base import Storage

router = APIRouter(prefix="/organizations", tags=["organizations"])

require_admin = require_role("admin")
require_manager = require_role("manager", "admin")


async def _get_org(org_id: str, storage: Storage) -> Organization:
    org = await storage.get_organization(org_id)
    if org is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return org


@router.post("", response_model=Organization, status_code=status.HTTP_201_CREATED)
async def create_organization(
    org_in: OrganizationCreate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_admin),
):
    return await storage.create_organization(org_in.name, current_user.id)


@router.get("/{org_id}", response_model=Organization)
async def get_organization(
    org_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_manager),
):
    return await _get_org(org_id, storage)


@router.put("/{org_id}", response_model=Organization)
async def update_organization(
    org_id: str,
    org_in: OrganizationUpdate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_manager),
):
    await _get_org(org_id, storage)
    org = await storage.update_organization(org_id, org_in.model_dump(exclude_unset=True, exclude_none=True))
    if org is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return org


@router.post("/{org_id}/employees", response_model=Employee, status_code=status.HTTP_201_CREATED)
async def add_employee(
    org_id: str,
    employee_in: EmployeeCreate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_manager),
):
    await _get_org(org_id, storage)
    if await storage.get_user(employee_in.user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return await storage.add_employee_to_org(
        employee_in.user_id, org_id, employee_in.job_title, employee_in.department,
    )


@router.get("/{org_id}/employees", response_model=List[Employee])
async def list_employees(
    org_id: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_manager),
):
    await _get_org(org_id, storage)
    return await storage.get_employees_by_org(org_id)
