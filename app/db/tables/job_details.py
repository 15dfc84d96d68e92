import enum
from datetime import date
from typing import Optional

from sqlalchemy import Enum as SQLEnum, String, ForeignKey, Float
from sqlalchemy.orm import Mapped, mapped_column

from db.base_class import TimestampedBase


class PlacementStatus(str, enum.Enum):
    PLACED = "placed"
    HOLD = "hold"
    ACTIVE = "active"
    OFFER_PENDING = "offer_pending"


class FeesStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class JobDetails(TimestampedBase):
    consultant_id: Mapped[int] = mapped_column(ForeignKey("consultant.id"), unique=True, index=True)
    company_name: Mapped[str] = mapped_column(type_=String(255))
    job_type: Mapped[str] = mapped_column(type_=String(255))
    date_of_offer: Mapped[Optional[date]] = mapped_column(default=None)

    is_job: Mapped[bool] = mapped_column(default=True)
    placement_status: Mapped[Optional[PlacementStatus]] = mapped_column(
        SQLEnum(PlacementStatus), default=PlacementStatus.ACTIVE
    )

    # remaining_fees and fees_status are derived by services.fees.compute_fees
    total_fees: Mapped[Optional[float]] = mapped_column(Float, default=None)
    received_fees: Mapped[float] = mapped_column(Float, default=0)
    remaining_fees: Mapped[Optional[float]] = mapped_column(Float, default=None)
    fees_status: Mapped[FeesStatus] = mapped_column(SQLEnum(FeesStatus), default=FeesStatus.PENDING)

    is_agreement: Mapped[bool] = mapped_column(default=False)
    created_by: Mapped[int] = mapped_column(ForeignKey("user.id"))
    created_by_name: Mapped[Optional[str]] = mapped_column(type_=String(255), default=None)

    version_id: Mapped[int] = mapped_column(default=1)

    __mapper_args__ = {"version_id_col": version_id}
