from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies.database import get_db_session
from api.dependencies.pagination import PaginationDep
from api.dependencies.user import CurrentStaffDep
from db.tables.job_details import JobDetails
from schemas.job_details import (
    CreateJobDetailsSchema,
    UpdateJobDetailsSchema,
    PlacementStatusUpdateSchema,
    ReopenAfterJobLostSchema,
    OutJobDetailsSchema,
    OutJobDetailsWithFeesSchema,
)
from services.authorization import Action, check_capability
from services.placement import PlacementLifecycleManager

router = APIRouter(tags=["Job Details"])


def _job_details_view(current_user, job_details: JobDetails) -> OutJobDetailsSchema:
    """Fee fields are only shown to staff who may write them."""
    if check_capability(current_user, None, Action.WRITE_FEES):
        return OutJobDetailsWithFeesSchema.model_validate(job_details)
    return OutJobDetailsSchema.model_validate(job_details)


@router.get(
    "/job-details",
    response_model=List[OutJobDetailsWithFeesSchema],
    response_model_exclude_unset=True,
)
async def list_placements(
    pagination: PaginationDep,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """List live placements, newest offer first."""
    placements = await PlacementLifecycleManager(db).list_placements(
        current_user, limit=pagination.limit, offset=pagination.offset
    )
    return [_job_details_view(current_user, item) for item in placements]


@router.post(
    "/consultants/{consultant_id}/job-details",
    response_model=OutJobDetailsWithFeesSchema,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_job_details(
    consultant_id: int,
    data: CreateJobDetailsSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Record a placement for a consultant."""
    job_details = await PlacementLifecycleManager(db).create_job_details(current_user, consultant_id, data)
    return _job_details_view(current_user, job_details)


@router.get(
    "/consultants/{consultant_id}/job-details",
    response_model=OutJobDetailsWithFeesSchema,
    response_model_exclude_unset=True,
)
async def get_job_details(
    consultant_id: int,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    job_details = await PlacementLifecycleManager(db).get_job_details(current_user, consultant_id)
    return _job_details_view(current_user, job_details)


@router.patch(
    "/consultants/{consultant_id}/job-details",
    response_model=OutJobDetailsWithFeesSchema,
    response_model_exclude_unset=True,
)
async def update_job_details(
    consultant_id: int,
    data: UpdateJobDetailsSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    job_details = await PlacementLifecycleManager(db).update_job_details(current_user, consultant_id, data)
    return _job_details_view(current_user, job_details)


@router.patch(
    "/consultants/{consultant_id}/job-details/status",
    response_model=OutJobDetailsWithFeesSchema,
    response_model_exclude_unset=True,
)
async def update_placement_status(
    consultant_id: int,
    data: PlacementStatusUpdateSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Move the placement to a new status and re-project the consultant's flags."""
    job_details = await PlacementLifecycleManager(db).update_placement_status(
        current_user, consultant_id, data.placement_status, expected_version=data.expected_version
    )
    return _job_details_view(current_user, job_details)


@router.post(
    "/consultants/{consultant_id}/job-details/reopen",
    response_model=OutJobDetailsWithFeesSchema,
    response_model_exclude_unset=True,
)
async def reopen_after_job_lost(
    consultant_id: int,
    data: ReopenAfterJobLostSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Start over with a new company after the previous job was lost."""
    job_details = await PlacementLifecycleManager(db).update_after_job_lost(current_user, consultant_id, data)
    return _job_details_view(current_user, job_details)


@router.post(
    "/consultants/{consultant_id}/job-details/reset-fees",
    response_model=OutJobDetailsWithFeesSchema,
    response_model_exclude_unset=True,
)
async def reset_fees(
    consultant_id: int,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    job_details = await PlacementLifecycleManager(db).reset_fees(current_user, consultant_id)
    return _job_details_view(current_user, job_details)


@router.delete("/consultants/{consultant_id}/job-details", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job_details(
    consultant_id: int,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Undo a placement together with its agreement and interviews."""
    await PlacementLifecycleManager(db).delete_job_details(current_user, consultant_id)
