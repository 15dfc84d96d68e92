from datetime import date

import pytest
from sqlalchemy import select, func, text

from core.exceptions import Conflict, NotFound, Unauthorized, ValidationError, InvalidState
from db.tables.agreement import Agreement, AgreementInstallment
from db.tables.interview import InterviewSchedule
from db.tables.job_details import JobDetails, PlacementStatus, FeesStatus
from schemas.agreement import CreateAgreementSchema
from schemas.job_details import CreateJobDetailsSchema, UpdateJobDetailsSchema, ReopenAfterJobLostSchema
from services.agreement import AgreementLedger
from services.placement import PlacementLifecycleManager

JOB = dict(company_name="Acme", job_type="Full time", date_of_offer=date(2024, 1, 15))


def flags(consultant):
    return {
        "is_placed": consultant.is_placed,
        "is_hold": consultant.is_hold,
        "is_active": consultant.is_active,
        "is_offer_pending": consultant.is_offer_pending,
    }


async def count(session, table, **filters) -> int:
    query = select(func.count()).select_from(table).filter_by(**filters)
    return (await session.execute(query)).scalar_one()


@pytest.fixture
def manager(session):
    return PlacementLifecycleManager(session)


@pytest.fixture
async def job_details(manager, admin, consultant):
    return await manager.create_job_details(admin, consultant.id, CreateJobDetailsSchema(**JOB, total_fees=1000))


async def test_create_projects_active_flags(manager, coordinator, consultant):
    job_details = await manager.create_job_details(coordinator, consultant.id, CreateJobDetailsSchema(**JOB))

    assert job_details.is_job is True
    assert job_details.placement_status == PlacementStatus.ACTIVE
    assert job_details.created_by == coordinator.id
    assert flags(consultant) == {"is_placed": False, "is_hold": False, "is_active": True, "is_offer_pending": False}


async def test_create_strips_fees_without_fee_capability(manager, coordinator, consultant):
    data = CreateJobDetailsSchema(**JOB, total_fees=1000, received_fees=200)
    job_details = await manager.create_job_details(coordinator, consultant.id, data)

    assert job_details.total_fees is None
    assert job_details.received_fees == 0
    assert job_details.fees_status == FeesStatus.PENDING


async def test_create_derives_fees_for_accounts(manager, accounts, consultant):
    data = CreateJobDetailsSchema(**JOB, total_fees=1000, received_fees=200)
    job_details = await manager.create_job_details(accounts, consultant.id, data)

    assert job_details.remaining_fees == 800
    assert job_details.fees_status == FeesStatus.PARTIAL


async def test_create_keeps_received_fees_for_admin(manager, session, admin, consultant):
    data = CreateJobDetailsSchema(**JOB, total_fees=1000, received_fees=1000)
    job_details = await manager.create_job_details(admin, consultant.id, data)

    assert job_details.received_fees == 1000
    assert job_details.remaining_fees == 0
    assert job_details.fees_status == FeesStatus.COMPLETED
    assert await count(session, JobDetails, consultant_id=consultant.id) == 1


async def test_create_treats_null_received_fees_as_zero(manager, accounts, consultant):
    data = CreateJobDetailsSchema(**JOB, total_fees=1000, received_fees=None)
    job_details = await manager.create_job_details(accounts, consultant.id, data)

    assert job_details.received_fees == 0
    assert job_details.remaining_fees == 1000
    assert job_details.fees_status == FeesStatus.PENDING


async def test_create_with_initial_status(manager, admin, consultant):
    data = CreateJobDetailsSchema(**JOB, placement_status=PlacementStatus.OFFER_PENDING)
    await manager.create_job_details(admin, consultant.id, data)

    assert flags(consultant)["is_offer_pending"] is True
    assert sum(flags(consultant).values()) == 1


async def test_create_twice_conflicts(manager, session, admin, consultant, job_details):
    with pytest.raises(Conflict):
        await manager.create_job_details(admin, consultant.id, CreateJobDetailsSchema(**JOB))
    assert await count(session, JobDetails, consultant_id=consultant.id) == 1


async def test_create_reports_missing_fields(manager, session, admin, consultant):
    with pytest.raises(ValidationError) as exc_info:
        await manager.create_job_details(admin, consultant.id, CreateJobDetailsSchema(company_name="  "))

    assert exc_info.value.context["missing_fields"] == ["company_name", "job_type", "date_of_offer"]
    assert await count(session, JobDetails) == 0


async def test_create_for_unknown_consultant(manager, admin):
    with pytest.raises(NotFound):
        await manager.create_job_details(admin, 404, CreateJobDetailsSchema(**JOB))


async def test_create_by_unassigned_coordinator(manager, other_coordinator, consultant):
    with pytest.raises(Unauthorized):
        await manager.create_job_details(other_coordinator, consultant.id, CreateJobDetailsSchema(**JOB))


async def test_status_update_reprojects_flags(manager, team_lead, consultant, job_details):
    updated = await manager.update_placement_status(team_lead, consultant.id, PlacementStatus.PLACED)

    assert updated.placement_status == PlacementStatus.PLACED
    assert updated.is_job is True
    assert flags(consultant) == {"is_placed": True, "is_hold": False, "is_active": False, "is_offer_pending": False}

    await manager.update_placement_status(team_lead, consultant.id, "hold")
    assert flags(consultant) == {"is_placed": False, "is_hold": True, "is_active": False, "is_offer_pending": False}


async def test_status_update_by_unassigned_coordinator(manager, other_coordinator, consultant, job_details):
    with pytest.raises(Unauthorized):
        await manager.update_placement_status(other_coordinator, consultant.id, PlacementStatus.PLACED)

    assert job_details.placement_status == PlacementStatus.ACTIVE
    assert consultant.is_active is True
    assert consultant.is_placed is False


async def test_status_update_without_job_details(manager, admin, consultant):
    with pytest.raises(NotFound):
        await manager.update_placement_status(admin, consultant.id, PlacementStatus.PLACED)


async def test_status_update_on_inactive_job_record(manager, session, admin, consultant, job_details):
    job_details.is_job = False
    await session.commit()

    with pytest.raises(InvalidState) as exc_info:
        await manager.update_placement_status(admin, consultant.id, PlacementStatus.PLACED)
    assert exc_info.value.context["current_state"] == "inactive"


async def test_status_update_with_stale_expected_version(manager, admin, consultant, job_details):
    current = job_details.version_id

    with pytest.raises(Conflict):
        await manager.update_placement_status(admin, consultant.id, PlacementStatus.PLACED, expected_version=current - 1)

    updated = await manager.update_placement_status(
        admin, consultant.id, PlacementStatus.PLACED, expected_version=current
    )
    assert updated.version_id == current + 1


async def test_concurrent_write_is_rejected(manager, session, admin, consultant, job_details):
    job_details_id = job_details.id
    consultant_id = consultant.id
    # another writer bumps the row behind this session's back
    await session.execute(
        text("UPDATE job_details SET version_id = version_id + 1 WHERE id = :id"), {"id": job_details_id}
    )
    await session.commit()

    with pytest.raises(Conflict):
        await manager.update_placement_status(admin, consultant_id, PlacementStatus.PLACED)

    await session.refresh(consultant)
    await session.refresh(job_details)
    assert job_details.placement_status == PlacementStatus.ACTIVE
    assert consultant.is_active is True
    assert consultant.is_placed is False


async def test_update_job_details_keeps_fees_derived(manager, accounts, consultant, job_details):
    updated = await manager.update_job_details(
        accounts, consultant.id, UpdateJobDetailsSchema(received_fees=1000, company_name="Globex")
    )

    assert updated.company_name == "Globex"
    assert updated.remaining_fees == 0
    assert updated.fees_status == FeesStatus.COMPLETED


async def test_update_job_details_ignores_fees_from_coordinator(manager, coordinator, consultant, job_details):
    updated = await manager.update_job_details(coordinator, consultant.id, UpdateJobDetailsSchema(received_fees=1000))

    assert updated.received_fees == 0
    assert updated.remaining_fees == 1000


async def test_update_job_details_rejects_blank_company(manager, admin, consultant, job_details):
    with pytest.raises(ValidationError):
        await manager.update_job_details(admin, consultant.id, UpdateJobDetailsSchema(company_name=""))
    assert job_details.company_name == "Acme"


async def test_update_job_details_rejects_null_offer_date(manager, admin, consultant, job_details):
    with pytest.raises(ValidationError) as exc_info:
        await manager.update_job_details(admin, consultant.id, UpdateJobDetailsSchema(date_of_offer=None))

    assert exc_info.value.context["missing_fields"] == ["date_of_offer"]
    assert job_details.date_of_offer == date(2024, 1, 15)


async def test_reset_fees_is_idempotent(manager, session, admin, consultant, job_details):
    job_details.received_fees = 300
    await session.commit()

    first = await manager.reset_fees(admin, consultant.id)
    state = (first.total_fees, first.received_fees, first.remaining_fees, first.fees_status)
    second = await manager.reset_fees(admin, consultant.id)

    assert state == (0, 0, 0, FeesStatus.PENDING)
    assert (second.total_fees, second.received_fees, second.remaining_fees, second.fees_status) == state


async def test_reset_fees_is_privileged(manager, accounts, consultant, job_details):
    with pytest.raises(Unauthorized):
        await manager.reset_fees(accounts, consultant.id)
    assert job_details.total_fees == 1000


async def test_delete_cascades_agreement_and_interviews(
    manager, session, admin, consultant, job_details, add_interview, file_store
):
    consultant_id = consultant.id
    ledger = AgreementLedger(session, file_store, service_fee_rate=0.08)
    await ledger.create_agreement(admin, consultant_id, CreateAgreementSchema(total_salary=10000, emi_date=5))
    await add_interview(consultant_id, admin.id, "1")
    await add_interview(consultant_id, admin.id, "2")
    consultant.job_lost_count = 1
    await session.commit()

    await manager.delete_job_details(admin, consultant_id)

    assert await count(session, JobDetails, consultant_id=consultant_id) == 0
    assert await count(session, Agreement) == 0
    assert await count(session, AgreementInstallment) == 0
    assert await count(session, InterviewSchedule, consultant_id=consultant_id) == 0
    assert flags(consultant) == {"is_placed": False, "is_hold": False, "is_active": True, "is_offer_pending": False}
    assert consultant.job_lost_count == 0
    assert consultant.assigned_coordinator_id is None
    assert consultant.assigned_coordinator2_id is None
    assert consultant.assigned_team_lead_id is None


async def test_delete_without_agreement(manager, session, admin, consultant, job_details):
    await manager.delete_job_details(admin, consultant.id)
    assert await count(session, JobDetails) == 0


async def test_delete_requires_privilege(manager, session, coordinator, consultant, job_details, add_interview):
    await add_interview(consultant.id, coordinator.id)

    with pytest.raises(Unauthorized):
        await manager.delete_job_details(coordinator, consultant.id)

    assert await count(session, JobDetails) == 1
    assert await count(session, InterviewSchedule) == 1


async def test_reopen_after_job_lost(manager, session, admin, consultant, job_details):
    job_details.received_fees = 400
    job_details.is_agreement = True
    consultant.job_lost_count = 1
    await session.commit()
    await manager.update_placement_status(admin, consultant.id, PlacementStatus.PLACED)

    data = ReopenAfterJobLostSchema(company_name="Globex", job_type="Contract", date_of_offer=date(2024, 6, 1))
    reopened = await manager.update_after_job_lost(admin, consultant.id, data)

    assert reopened.company_name == "Globex"
    assert reopened.date_of_offer == date(2024, 6, 1)
    assert reopened.placement_status == PlacementStatus.ACTIVE
    assert reopened.is_job is True
    assert reopened.is_agreement is False
    assert (reopened.total_fees, reopened.received_fees) == (1000, 400)
    assert flags(consultant)["is_active"] is True
    assert consultant.is_placed is False
    assert consultant.job_lost_count == 1


async def test_reopen_without_job_details(manager, admin, consultant):
    data = ReopenAfterJobLostSchema(company_name="Globex", job_type="Contract", date_of_offer=date(2024, 6, 1))
    with pytest.raises(NotFound):
        await manager.update_after_job_lost(admin, consultant.id, data)


async def test_list_placements(manager, admin, coordinator, consultant, job_details):
    placements = await manager.list_placements(admin)
    assert [item.id for item in placements] == [job_details.id]

    with pytest.raises(Unauthorized):
        await manager.list_placements(coordinator)
