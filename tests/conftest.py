import os

os.environ["ENVIRONMENT"] = "test"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from db.base import Base  # noqa: E402
from db.tables.consultant import Consultant  # noqa: E402
from db.tables.interview import InterviewSchedule  # noqa: E402
from db.tables.user import User, StaffRole  # noqa: E402
from utils.file_store import LocalFileStore  # noqa: E402


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session):
    async def _make_user(role: StaffRole, username: str, is_active: bool = True) -> User:
        user = User(username=username, email=f"{username}@example.com", role=role, is_active=is_active)
        session.add(user)
        await session.commit()
        return user

    return _make_user


@pytest.fixture
async def admin(make_user):
    return await make_user(StaffRole.ADMIN, "admin")


@pytest.fixture
async def accounts(make_user):
    return await make_user(StaffRole.ACCOUNTS, "accounts")


@pytest.fixture
async def coordinator(make_user):
    return await make_user(StaffRole.COORDINATOR, "coordinator")


@pytest.fixture
async def other_coordinator(make_user):
    return await make_user(StaffRole.COORDINATOR, "other_coordinator")


@pytest.fixture
async def team_lead(make_user):
    return await make_user(StaffRole.TEAM_LEAD, "team_lead")


@pytest.fixture
async def support(make_user):
    return await make_user(StaffRole.SUPPORT, "support")


@pytest.fixture
def make_consultant(session):
    async def _make_consultant(name: str = "Jane Doe", email: str = "jane@example.com", **fields) -> Consultant:
        consultant = Consultant(full_name=name, email=email, phone="555-0100", **fields)
        session.add(consultant)
        await session.commit()
        return consultant

    return _make_consultant


@pytest.fixture
async def consultant(make_consultant, coordinator, team_lead):
    return await make_consultant(
        assigned_coordinator_id=coordinator.id,
        assigned_team_lead_id=team_lead.id,
    )


@pytest.fixture
def add_interview(session):
    async def _add_interview(consultant_id: int, created_by: int, round_name: str = "1") -> InterviewSchedule:
        interview = InterviewSchedule(
            consultant_id=consultant_id,
            company_name="Acme",
            interview_date=date(2024, 1, 10),
            round=round_name,
            created_by=created_by,
        )
        session.add(interview)
        await session.commit()
        return interview

    return _add_interview


@pytest.fixture
def file_store(tmp_path):
    return LocalFileStore(root=tmp_path)
