import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Enum as SQLEnum, String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from db.base_class import TimestampedBase


class DocumentVerificationStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class ResumeStatus(str, enum.Enum):
    NOT_BUILT = "not_built"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Consultant(TimestampedBase):
    full_name: Mapped[str] = mapped_column(type_=String(255))
    email: Mapped[str] = mapped_column(type_=String(255), index=True)
    phone: Mapped[str] = mapped_column(type_=String(50))
    technology: Mapped[Optional[str]] = mapped_column(type_=String(255), default=None)
    visa_status: Mapped[Optional[str]] = mapped_column(type_=String(100), default=None)
    state_of_residence: Mapped[Optional[str]] = mapped_column(type_=String(100), default=None)
    current_address: Mapped[Optional[str]] = mapped_column(type_=Text(), default=None)

    # Placement flags: a projection of JobDetails.placement_status, written
    # only through services.status_projector.
    is_placed: Mapped[bool] = mapped_column(default=False)
    is_hold: Mapped[bool] = mapped_column(default=False)
    is_active: Mapped[bool] = mapped_column(default=True)
    is_offer_pending: Mapped[bool] = mapped_column(default=False)

    job_lost_count: Mapped[int] = mapped_column(default=0)
    open_for_work: Mapped[bool] = mapped_column(default=True)
    bgv_verified: Mapped[bool] = mapped_column(default=False)
    document_verification_status: Mapped[DocumentVerificationStatus] = mapped_column(
        SQLEnum(DocumentVerificationStatus), default=DocumentVerificationStatus.PENDING
    )
    resume_status: Mapped[ResumeStatus] = mapped_column(SQLEnum(ResumeStatus), default=ResumeStatus.NOT_BUILT)
    registration_proof: Mapped[Optional[str]] = mapped_column(type_=String(500), default=None)

    # Staff assignment
    assigned_coordinator_id: Mapped[Optional[int]] = mapped_column(ForeignKey("user.id"), default=None)
    assigned_coordinator2_id: Mapped[Optional[int]] = mapped_column(ForeignKey("user.id"), default=None)
    assigned_team_lead_id: Mapped[Optional[int]] = mapped_column(ForeignKey("user.id"), default=None)
    assigned_resume_builder_id: Mapped[Optional[int]] = mapped_column(ForeignKey("user.id"), default=None)
    assignment_date: Mapped[Optional[datetime]] = mapped_column(default=None)

    version_id: Mapped[int] = mapped_column(default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def assigned_staff_ids(self) -> set[int]:
        return {
            staff_id
            for staff_id in (
                self.assigned_coordinator_id,
                self.assigned_coordinator2_id,
                self.assigned_team_lead_id,
            )
            if staff_id is not None
        }
