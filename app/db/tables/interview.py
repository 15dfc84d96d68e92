import enum
from datetime import date
from typing import Optional

from sqlalchemy import Enum as SQLEnum, String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from db.base_class import TimestampedBase


class InterviewStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESCHEDULE = "reschedule"
    REJECTED = "rejected"
    COMPLETED = "completed"


class InterviewSchedule(TimestampedBase):
    consultant_id: Mapped[int] = mapped_column(ForeignKey("consultant.id"), index=True)
    company_name: Mapped[str] = mapped_column(type_=String(255))
    interview_date: Mapped[date] = mapped_column()
    round: Mapped[str] = mapped_column(type_=String(20))
    interview_status: Mapped[InterviewStatus] = mapped_column(
        SQLEnum(InterviewStatus), default=InterviewStatus.PENDING
    )
    comments: Mapped[Optional[str]] = mapped_column(type_=Text(), default=None)
    created_by: Mapped[int] = mapped_column(ForeignKey("user.id"))
