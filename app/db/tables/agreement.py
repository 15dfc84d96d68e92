import enum
from datetime import date
from typing import Optional

from sqlalchemy import Enum as SQLEnum, String, Text, ForeignKey, Float, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base_class import TimestampedBase


class InstallmentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentCompletionStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    TERMINATED = "terminated"


class Agreement(TimestampedBase):
    job_details_id: Mapped[int] = mapped_column(ForeignKey("job_details.id"), index=True)

    # Snapshot of the consultant at signing time
    consultant_name: Mapped[str] = mapped_column(type_=String(255))
    email: Mapped[str] = mapped_column(type_=String(255), index=True)
    phone: Mapped[str] = mapped_column(type_=String(50))

    job_start_date: Mapped[date] = mapped_column()
    total_salary: Mapped[float] = mapped_column(Float)
    total_service_fee: Mapped[float] = mapped_column(Float)
    monthly_payment_amount: Mapped[float] = mapped_column(Float)
    emi_date: Mapped[int] = mapped_column()
    remarks: Mapped[Optional[str]] = mapped_column(type_=Text(), default=None)

    next_due_date: Mapped[Optional[date]] = mapped_column(default=None)
    total_paid_so_far: Mapped[float] = mapped_column(Float, default=0)
    remaining_balance: Mapped[float] = mapped_column(Float)
    payment_completion_status: Mapped[PaymentCompletionStatus] = mapped_column(
        SQLEnum(PaymentCompletionStatus), default=PaymentCompletionStatus.IN_PROGRESS
    )
    job_lost_date: Mapped[Optional[date]] = mapped_column(default=None)
    created_by: Mapped[int] = mapped_column(ForeignKey("user.id"))

    # Relationships
    installments = relationship(
        "AgreementInstallment",
        back_populates="agreement",
        order_by="AgreementInstallment.month",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def installment(self, month: int) -> Optional["AgreementInstallment"]:
        for item in self.installments:
            if item.month == month:
                return item
        return None


class AgreementInstallment(TimestampedBase):
    agreement_id: Mapped[int] = mapped_column(ForeignKey("agreement.id", ondelete="CASCADE"), index=True)
    month: Mapped[int] = mapped_column()
    due_date: Mapped[date] = mapped_column()
    amount_received: Mapped[float] = mapped_column(Float, default=0)
    received_date: Mapped[Optional[date]] = mapped_column(default=None)
    status: Mapped[InstallmentStatus] = mapped_column(SQLEnum(InstallmentStatus), default=InstallmentStatus.PENDING)
    notes: Mapped[Optional[str]] = mapped_column(type_=Text(), default=None)
    proof_file_ref: Mapped[Optional[str]] = mapped_column(type_=String(500), default=None)

    __table_args__ = (
        UniqueConstraint("agreement_id", "month", name="uq_agreement_installment_month"),
    )

    # Relationships
    agreement = relationship("Agreement", back_populates="installments")
