# Import all the models, so that TimestampedBase has them before being imported by Alembic

from db.base_class import Base  # noqa: F401
from db.tables.user import User  # noqa: F401
from db.tables.consultant import Consultant  # noqa: F401
from db.tables.job_details import JobDetails  # noqa: F401
from db.tables.agreement import Agreement, AgreementInstallment  # noqa: F401
from db.tables.interview import InterviewSchedule  # noqa: F401
