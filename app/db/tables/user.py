import enum

from sqlalchemy import Enum as SQLEnum, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base_class import TimestampedBase


class StaffRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    ACCOUNTS = "accounts"
    COORDINATOR = "coordinator"
    TEAM_LEAD = "team_lead"
    SUPPORT = "support"
    RESUME_BUILDER = "resume_builder"
    CANDIDATE = "candidate"


class User(TimestampedBase):
    username: Mapped[str] = mapped_column(type_=String(255))
    email: Mapped[str] = mapped_column(type_=String(255), unique=True, index=True)
    role: Mapped[StaffRole] = mapped_column(SQLEnum(StaffRole), default=StaffRole.CANDIDATE)
    is_active: Mapped[bool] = mapped_column(default=True)
