from typing import Optional
from datetime import date, datetime

from pydantic import field_validator

from schemas.base import BaseSchema
from db.tables.job_details import PlacementStatus, FeesStatus


class CreateJobDetailsSchema(BaseSchema):
    company_name: Optional[str] = None
    job_type: Optional[str] = None
    date_of_offer: Optional[date] = None
    placement_status: Optional[PlacementStatus] = None
    total_fees: Optional[float] = None
    received_fees: Optional[float] = None

    @field_validator('company_name', 'job_type', mode='before')
    @classmethod
    def strip_blank(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class UpdateJobDetailsSchema(CreateJobDetailsSchema):
    pass


class PlacementStatusUpdateSchema(BaseSchema):
    placement_status: PlacementStatus
    expected_version: Optional[int] = None


class ReopenAfterJobLostSchema(BaseSchema):
    company_name: str
    job_type: str
    date_of_offer: date


class OutJobDetailsSchema(BaseSchema):
    id: int
    consultant_id: int
    company_name: str
    job_type: str
    date_of_offer: Optional[date] = None
    is_job: bool
    placement_status: Optional[PlacementStatus] = None
    fees_status: FeesStatus
    is_agreement: bool
    created_by: int
    created_by_name: Optional[str] = None
    version_id: int
    created_at: datetime
    updated_at: datetime


class OutJobDetailsWithFeesSchema(OutJobDetailsSchema):
    total_fees: Optional[float] = None
    received_fees: Optional[float] = None
    remaining_fees: Optional[float] = None
