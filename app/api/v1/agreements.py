import mimetypes

from fastapi import APIRouter, Depends, UploadFile, File, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies.database import get_db_session
from api.dependencies.file_store import FileStoreDep
from api.dependencies.user import CurrentStaffDep
from schemas.agreement import (
    CreateAgreementSchema,
    RecordPaymentSchema,
    RecordJobLostSchema,
    RefreshOverdueSchema,
    OutAgreementSchema,
    OutInstallmentSchema,
)
from services.agreement import AgreementLedger

router = APIRouter(tags=["Agreements"])


@router.post(
    "/consultants/{consultant_id}/agreement",
    response_model=OutAgreementSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_agreement(
    consultant_id: int,
    data: CreateAgreementSchema,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Create the service-fee agreement and its EMI schedule."""
    agreement = await AgreementLedger(db, file_store).create_agreement(current_user, consultant_id, data)
    return OutAgreementSchema.model_validate(agreement)


@router.get("/consultants/{consultant_id}/agreement", response_model=OutAgreementSchema)
async def get_agreement(
    consultant_id: int,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    db: AsyncSession = Depends(get_db_session),
):
    agreement = await AgreementLedger(db, file_store).get_agreement(current_user, consultant_id)
    return OutAgreementSchema.model_validate(agreement)


@router.delete("/consultants/{consultant_id}/agreement", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agreement(
    consultant_id: int,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    db: AsyncSession = Depends(get_db_session),
):
    await AgreementLedger(db, file_store).delete_agreement(current_user, consultant_id)


@router.post(
    "/consultants/{consultant_id}/agreement/installments/{installment_number}/proof",
    response_model=OutInstallmentSchema,
)
async def upload_installment_proof(
    consultant_id: int,
    installment_number: int,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db_session),
):
    """Upload the payment proof for one installment (PDF or image)."""
    blob = await file.read()
    installment = await AgreementLedger(db, file_store).upload_installment_proof(
        current_user, consultant_id, installment_number, blob, file.filename, file.content_type
    )
    return OutInstallmentSchema.model_validate(installment)


@router.get("/consultants/{consultant_id}/agreement/installments/{installment_number}/proof")
async def get_installment_proof(
    consultant_id: int,
    installment_number: int,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    db: AsyncSession = Depends(get_db_session),
):
    reference, blob = await AgreementLedger(db, file_store).get_installment_proof(
        current_user, consultant_id, installment_number
    )
    media_type = mimetypes.guess_type(reference)[0] or "application/octet-stream"
    return Response(content=blob, media_type=media_type)


@router.post(
    "/agreements/{agreement_id}/installments/{installment_number}/payment",
    response_model=OutAgreementSchema,
)
async def record_payment(
    agreement_id: int,
    installment_number: int,
    data: RecordPaymentSchema,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Record the payment of one installment; its proof must be uploaded first."""
    agreement = await AgreementLedger(db, file_store).record_payment(
        current_user, agreement_id, installment_number, data
    )
    return OutAgreementSchema.model_validate(agreement)


@router.post("/agreements/{agreement_id}/job-lost", response_model=OutAgreementSchema)
async def record_job_lost(
    agreement_id: int,
    data: RecordJobLostSchema,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    db: AsyncSession = Depends(get_db_session),
):
    """Terminate the agreement after the consultant lost the job."""
    agreement = await AgreementLedger(db, file_store).record_job_lost(current_user, agreement_id, data.job_lost_date)
    return OutAgreementSchema.model_validate(agreement)


@router.post("/agreements/{agreement_id}/refresh-overdue", response_model=OutAgreementSchema)
async def refresh_overdue(
    agreement_id: int,
    data: RefreshOverdueSchema,
    current_user: CurrentStaffDep,
    file_store: FileStoreDep,
    db: AsyncSession = Depends(get_db_session),
):
    agreement = await AgreementLedger(db, file_store).refresh_overdue(current_user, agreement_id, data.as_of)
    return OutAgreementSchema.model_validate(agreement)
