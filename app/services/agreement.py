import logging
import os
from datetime import date
from typing import Optional

from asyncer import asyncify
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import Conflict, NotFound, ValidationError, InvalidState, PreconditionFailed
from db.crud.agreement import AgreementCrud
from db.crud.job_details import JobDetailsCrud
from db.tables.agreement import Agreement, AgreementInstallment, InstallmentStatus, PaymentCompletionStatus
from db.tables.job_details import JobDetails
from schemas.agreement import CreateAgreementSchema, RecordPaymentSchema
from services.authorization import Action, require_capability
from services.base import TransactionalService
from services.emi import generate_schedule, next_due_date

logger = logging.getLogger(__name__)


def recompute_totals(agreement: Agreement) -> None:
    """Re-derive the running totals, next due date and completion status from the installments."""
    installments = sorted(agreement.installments, key=lambda item: item.month)
    agreement.total_paid_so_far = round(sum(item.amount_received or 0 for item in installments), 2)
    agreement.remaining_balance = round(agreement.total_service_fee - agreement.total_paid_so_far, 2)
    agreement.next_due_date = next_due_date(
        [item.due_date for item in installments],
        [item.status == InstallmentStatus.PAID for item in installments],
    )
    if agreement.payment_completion_status == PaymentCompletionStatus.TERMINATED:
        return
    if agreement.remaining_balance <= 0:
        agreement.payment_completion_status = PaymentCompletionStatus.COMPLETED
    else:
        agreement.payment_completion_status = PaymentCompletionStatus.IN_PROGRESS


class AgreementLedger(TransactionalService):
    def __init__(
        self,
        db_session: AsyncSession,
        file_store=None,
        service_fee_rate: Optional[float] = None,
        installment_count: Optional[int] = None,
    ):
        super().__init__(db_session)
        self.agreements = AgreementCrud(db_session)
        self.job_details = JobDetailsCrud(db_session)
        self.file_store = file_store
        self.service_fee_rate = settings.SERVICE_FEE_RATE if service_fee_rate is None else service_fee_rate
        self.installment_count = installment_count or settings.EMI_INSTALLMENT_COUNT

    def _check_installment_number(self, month: int) -> None:
        if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= self.installment_count:
            raise ValidationError(
                f"Installment number must be between 1 and {self.installment_count}",
                installment_number=month,
            )

    async def _get_job_details(self, consultant_id: int) -> JobDetails:
        job_details = await self.job_details.get_by_consultant_id(consultant_id)
        if job_details is None:
            raise NotFound("Job details not found for this consultant", consultant_id=consultant_id)
        return job_details

    async def _get_agreement(self, agreement_id: int) -> Agreement:
        agreement = await self.agreements.get_by_id(agreement_id)
        if agreement is None:
            raise NotFound("Agreement not found", agreement_id=agreement_id)
        return agreement

    async def _get_active_agreement(self, consultant_id: int) -> Agreement:
        job_details = await self._get_job_details(consultant_id)
        agreement = await self.agreements.get_active_by_job_details_id(job_details.id)
        if agreement is None:
            raise NotFound("No active agreement for this consultant", consultant_id=consultant_id)
        return agreement

    async def create_agreement(self, actor, consultant_id: int, data: CreateAgreementSchema) -> Agreement:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.CREATE_AGREEMENT)
        job_details = await self._get_job_details(consultant_id)

        existing = await self.agreements.find_live_duplicate(job_details.id, consultant.full_name, consultant.email)
        if existing is not None:
            raise Conflict("Agreement already exists for this consultant", agreement_id=existing.id)

        job_start_date = data.job_start_date or job_details.date_of_offer
        if job_start_date is None:
            raise ValidationError("Job details have no offer or start date", missing_fields=["date_of_offer"])
        if data.total_salary is None or data.total_salary <= 0:
            raise ValidationError("Total salary must be greater than 0", total_salary=data.total_salary)
        due_dates = generate_schedule(job_start_date, data.emi_date, self.installment_count)

        total_service_fee = data.total_salary * self.service_fee_rate
        agreement = Agreement(
            job_details_id=job_details.id,
            consultant_name=consultant.full_name,
            email=consultant.email,
            phone=consultant.phone,
            job_start_date=job_start_date,
            total_salary=data.total_salary,
            total_service_fee=total_service_fee,
            monthly_payment_amount=total_service_fee / self.installment_count,
            emi_date=data.emi_date,
            remarks=data.remarks,
            next_due_date=due_dates[0],
            total_paid_so_far=0,
            remaining_balance=total_service_fee,
            payment_completion_status=PaymentCompletionStatus.IN_PROGRESS,
            created_by=actor.id,
        )
        agreement.installments = [
            AgreementInstallment(month=month, due_date=due, amount_received=0, status=InstallmentStatus.PENDING)
            for month, due in enumerate(due_dates, start=1)
        ]

        async with self.write_phase():
            self._db_session.add(agreement)
            job_details.is_agreement = True
            await self._db_session.flush()

        logger.info(
            "User %s created agreement %s for consultant %s (service fee %.2f)",
            actor.id, agreement.id, consultant_id, total_service_fee,
        )
        return agreement

    async def get_agreement(self, actor, consultant_id: int) -> Agreement:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.VIEW_AGREEMENT)
        job_details = await self._get_job_details(consultant_id)
        agreements = await self.agreements.get_by_job_details_id(job_details.id)
        if not agreements:
            raise NotFound("No agreement found for this consultant", consultant_id=consultant_id)
        for agreement in agreements:
            if agreement.payment_completion_status != PaymentCompletionStatus.TERMINATED:
                return agreement
        return agreements[0]

    async def upload_installment_proof(
        self,
        actor,
        consultant_id: int,
        month: int,
        blob: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> AgreementInstallment:
        self._check_installment_number(month)
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.UPLOAD_PROOF)
        agreement = await self._get_active_agreement(consultant_id)
        self._check_proof_file(blob, filename, content_type)

        reference = await asyncify(self.file_store.store)(blob, filename, content_type)
        installment = agreement.installment(month)
        previous = installment.proof_file_ref

        try:
            async with self.write_phase():
                installment.proof_file_ref = reference
                await self._db_session.flush()
        except Exception:
            await asyncify(self.file_store.delete)(reference)
            raise
        if previous:
            await asyncify(self.file_store.delete)(previous)

        logger.info("User %s uploaded proof for installment %s of agreement %s", actor.id, month, agreement.id)
        return installment

    def _check_proof_file(self, blob: bytes, filename: str, content_type: Optional[str]) -> None:
        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in settings.ALLOWED_PROOF_EXTENSIONS:
            raise ValidationError(
                "Unsupported proof file type",
                extension=ext,
                allowed=sorted(settings.ALLOWED_PROOF_EXTENSIONS),
            )
        if content_type and content_type not in settings.ALLOWED_PROOF_CONTENT_TYPES:
            raise ValidationError("Unsupported proof content type", content_type=content_type)
        if not blob:
            raise ValidationError("Proof file is empty")
        if len(blob) > settings.MAX_FILE_SIZE:
            raise ValidationError("Proof file is too large", max_size=settings.MAX_FILE_SIZE)

    async def get_installment_proof(self, actor, consultant_id: int, month: int) -> tuple[str, bytes]:
        self._check_installment_number(month)
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.VIEW_AGREEMENT)
        agreement = await self.get_agreement(actor, consultant_id)
        installment = agreement.installment(month)
        if not installment.proof_file_ref:
            raise NotFound("No proof uploaded for this installment", installment_number=month)
        try:
            blob = await asyncify(self.file_store.retrieve)(installment.proof_file_ref)
        except FileNotFoundError as e:
            raise NotFound("Proof file is missing from storage", reference=installment.proof_file_ref) from e
        return installment.proof_file_ref, blob

    async def record_payment(self, actor, agreement_id: int, month: int, data: RecordPaymentSchema) -> Agreement:
        agreement = await self._get_agreement(agreement_id)
        require_capability(actor, None, Action.RECORD_PAYMENT)
        self._check_installment_number(month)

        if agreement.payment_completion_status == PaymentCompletionStatus.TERMINATED:
            raise InvalidState(
                "Payments cannot be recorded on a terminated agreement",
                current=PaymentCompletionStatus.TERMINATED.value,
                required=PaymentCompletionStatus.IN_PROGRESS.value,
            )
        installment = agreement.installment(month)
        if not installment.proof_file_ref:
            raise PreconditionFailed(
                "Upload the payment proof before recording this installment",
                installment_number=month,
            )
        if data.amount_received is None or data.amount_received < 0:
            raise ValidationError("Amount received must not be negative", amount_received=data.amount_received)

        async with self.write_phase():
            installment.amount_received = data.amount_received
            installment.received_date = data.received_date
            installment.notes = data.notes
            installment.status = InstallmentStatus.PAID
            recompute_totals(agreement)
            await self._db_session.flush()

        logger.info(
            "User %s recorded %.2f for installment %s of agreement %s (remaining %.2f)",
            actor.id, data.amount_received, month, agreement.id, agreement.remaining_balance,
        )
        return agreement

    async def record_job_lost(self, actor, agreement_id: int, job_lost_date: date) -> Agreement:
        agreement = await self._get_agreement(agreement_id)
        require_capability(actor, None, Action.RECORD_JOB_LOST)
        if agreement.payment_completion_status != PaymentCompletionStatus.IN_PROGRESS:
            raise InvalidState(
                "Only an agreement in progress can be terminated",
                current=agreement.payment_completion_status.value,
                required=PaymentCompletionStatus.IN_PROGRESS.value,
            )

        async with self.write_phase():
            agreement.job_lost_date = job_lost_date
            agreement.payment_completion_status = PaymentCompletionStatus.TERMINATED
            agreement.next_due_date = None
            await self._db_session.flush()

        logger.info("User %s terminated agreement %s (job lost %s)", actor.id, agreement.id, job_lost_date)
        return agreement

    async def refresh_overdue(self, actor, agreement_id: int, as_of: Optional[date] = None) -> Agreement:
        agreement = await self._get_agreement(agreement_id)
        require_capability(actor, None, Action.REFRESH_OVERDUE)
        as_of = as_of or date.today()
        if agreement.payment_completion_status == PaymentCompletionStatus.TERMINATED:
            return agreement

        async with self.write_phase():
            for installment in agreement.installments:
                if installment.status == InstallmentStatus.PENDING and installment.due_date < as_of:
                    installment.status = InstallmentStatus.OVERDUE
            await self._db_session.flush()

        return agreement

    async def delete_agreement(self, actor, consultant_id: int) -> Agreement:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.DELETE_AGREEMENT)
        job_details = await self._get_job_details(consultant_id)
        agreement = await self.agreements.get_active_by_job_details_id(job_details.id)
        if agreement is None:
            raise NotFound("Agreement not found", consultant_id=consultant_id)

        async with self.write_phase():
            await self.agreements.delete(agreement)
            job_details.is_agreement = False
            await self._db_session.flush()

        logger.info("User %s deleted agreement %s of consultant %s", actor.id, agreement.id, consultant_id)
        return agreement
