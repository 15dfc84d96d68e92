from typing import Optional
from datetime import date

from pydantic import Field

from schemas.base import BaseSchema
from db.tables.agreement import InstallmentStatus, PaymentCompletionStatus


class CreateAgreementSchema(BaseSchema):
    total_salary: float
    emi_date: int
    remarks: Optional[str] = None
    job_start_date: Optional[date] = None


class RecordPaymentSchema(BaseSchema):
    amount_received: float
    received_date: date
    notes: Optional[str] = None


class RecordJobLostSchema(BaseSchema):
    job_lost_date: date


class RefreshOverdueSchema(BaseSchema):
    as_of: Optional[date] = None


class OutInstallmentSchema(BaseSchema):
    month: int
    due_date: date
    amount_received: float
    received_date: Optional[date] = None
    status: InstallmentStatus
    notes: Optional[str] = None
    proof_file_ref: Optional[str] = None


class OutAgreementSchema(BaseSchema):
    id: int
    job_details_id: int
    consultant_name: str
    email: str
    phone: str
    job_start_date: date
    total_salary: float
    total_service_fee: float
    monthly_payment_amount: float
    emi_date: int
    remarks: Optional[str] = None
    installments: list[OutInstallmentSchema] = Field(default_factory=list)
    next_due_date: Optional[date] = None
    total_paid_so_far: float
    remaining_balance: float
    payment_completion_status: PaymentCompletionStatus
    job_lost_date: Optional[date] = None
