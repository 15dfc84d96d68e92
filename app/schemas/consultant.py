from typing import Optional
from datetime import datetime

from pydantic import EmailStr

from schemas.base import BaseSchema, BasePaginatedSchema
from db.tables.consultant import DocumentVerificationStatus, ResumeStatus


class ConsultantSchemaBase(BaseSchema):
    full_name: str
    email: EmailStr
    phone: str
    technology: Optional[str] = None
    visa_status: Optional[str] = None
    state_of_residence: Optional[str] = None
    current_address: Optional[str] = None


class CreateConsultantSchema(ConsultantSchemaBase):
    pass


class UpdateConsultantSchema(BaseSchema):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    technology: Optional[str] = None
    visa_status: Optional[str] = None
    state_of_residence: Optional[str] = None
    current_address: Optional[str] = None


class OutConsultantSchema(ConsultantSchemaBase):
    id: int
    is_placed: bool
    is_hold: bool
    is_active: bool
    is_offer_pending: bool
    job_lost_count: int
    open_for_work: bool
    bgv_verified: bool
    document_verification_status: DocumentVerificationStatus
    resume_status: ResumeStatus
    assigned_coordinator_id: Optional[int] = None
    assigned_coordinator2_id: Optional[int] = None
    assigned_team_lead_id: Optional[int] = None
    assigned_resume_builder_id: Optional[int] = None
    assignment_date: Optional[datetime] = None
    version_id: int
    created_at: datetime
    updated_at: datetime


class PaginatedConsultantSchema(BasePaginatedSchema[OutConsultantSchema]):
    items: list[OutConsultantSchema]


class AssignStaffSchema(BaseSchema):
    coordinator_id: Optional[int] = None
    coordinator2_id: Optional[int] = None
    team_lead_id: Optional[int] = None


class OpenForWorkSchema(BaseSchema):
    open_for_work: bool


class BgvStatusSchema(BaseSchema):
    bgv_verified: bool


class ResumeStatusSchema(BaseSchema):
    resume_status: ResumeStatus


class DocumentVerificationSchema(BaseSchema):
    document_verification_status: DocumentVerificationStatus
