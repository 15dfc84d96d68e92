from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies.database import get_db_session
from api.dependencies.pagination import PaginationDep
from api.dependencies.user import CurrentStaffDep
from schemas.consultant import (
    CreateConsultantSchema,
    UpdateConsultantSchema,
    OutConsultantSchema,
    PaginatedConsultantSchema,
    AssignStaffSchema,
    OpenForWorkSchema,
    BgvStatusSchema,
    ResumeStatusSchema,
    DocumentVerificationSchema,
)
from services.consultant import ConsultantService

router = APIRouter(
    prefix="/consultants",
    tags=["Consultants"],
)


@router.post("", response_model=OutConsultantSchema, status_code=status.HTTP_201_CREATED)
async def register_consultant(
    data: CreateConsultantSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Register a new consultant in the pipeline."""
    consultant = await ConsultantService(db).register_consultant(current_user, data)
    return OutConsultantSchema.model_validate(consultant)


@router.get("", response_model=PaginatedConsultantSchema)
async def list_consultants(
    pagination: PaginationDep,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """List consultants visible to the current staff member."""
    return await ConsultantService(db).list_consultants(
        current_user, limit=pagination.limit, offset=pagination.offset
    )


@router.get("/{consultant_id}", response_model=OutConsultantSchema)
async def get_consultant(
    consultant_id: int,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    consultant = await ConsultantService(db).get_consultant(current_user, consultant_id)
    return OutConsultantSchema.model_validate(consultant)


@router.patch("/{consultant_id}", response_model=OutConsultantSchema)
async def update_consultant(
    consultant_id: int,
    data: UpdateConsultantSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Edit a consultant's contact details."""
    consultant = await ConsultantService(db).update_consultant(current_user, consultant_id, data)
    return OutConsultantSchema.model_validate(consultant)


@router.delete("/{consultant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_consultant(
    consultant_id: int,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    await ConsultantService(db).delete_consultant(current_user, consultant_id)


@router.patch("/{consultant_id}/assign-staff", response_model=OutConsultantSchema)
async def assign_staff(
    consultant_id: int,
    data: AssignStaffSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Assign coordinators and a team lead to a consultant."""
    consultant = await ConsultantService(db).assign_staff(current_user, consultant_id, data)
    return OutConsultantSchema.model_validate(consultant)


@router.patch("/{consultant_id}/open-for-work", response_model=OutConsultantSchema)
async def update_open_for_work(
    consultant_id: int,
    data: OpenForWorkSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    consultant = await ConsultantService(db).update_open_for_work(current_user, consultant_id, data.open_for_work)
    return OutConsultantSchema.model_validate(consultant)


@router.patch("/{consultant_id}/bgv", response_model=OutConsultantSchema)
async def update_bgv_status(
    consultant_id: int,
    data: BgvStatusSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    consultant = await ConsultantService(db).update_bgv_status(current_user, consultant_id, data.bgv_verified)
    return OutConsultantSchema.model_validate(consultant)


@router.patch("/{consultant_id}/resume-status", response_model=OutConsultantSchema)
async def update_resume_status(
    consultant_id: int,
    data: ResumeStatusSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    consultant = await ConsultantService(db).update_resume_status(current_user, consultant_id, data.resume_status)
    return OutConsultantSchema.model_validate(consultant)


@router.patch("/{consultant_id}/document-verification", response_model=OutConsultantSchema)
async def update_document_verification(
    consultant_id: int,
    data: DocumentVerificationSchema,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    consultant = await ConsultantService(db).update_document_verification(
        current_user, consultant_id, data.document_verification_status
    )
    return OutConsultantSchema.model_validate(consultant)


@router.post("/{consultant_id}/job-lost-count", response_model=OutConsultantSchema)
async def increment_job_lost_count(
    consultant_id: int,
    current_user: CurrentStaffDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Count one more lost job for the consultant."""
    consultant = await ConsultantService(db).increment_job_lost_count(current_user, consultant_id)
    return OutConsultantSchema.model_validate(consultant)
