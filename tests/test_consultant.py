from datetime import date

import pytest

from core.exceptions import Conflict, InvalidState, NotFound, Unauthorized, ValidationError
from db.tables.consultant import DocumentVerificationStatus, ResumeStatus
from db.tables.user import StaffRole
from schemas.consultant import CreateConsultantSchema, UpdateConsultantSchema, AssignStaffSchema
from schemas.job_details import CreateJobDetailsSchema
from services.consultant import ConsultantService
from services.placement import PlacementLifecycleManager


@pytest.fixture
def service(session):
    return ConsultantService(session)


def registration(email: str = "john@example.com") -> CreateConsultantSchema:
    return CreateConsultantSchema(full_name="John Roe", email=email, phone="555-0199", technology="Python")


async def test_register_starts_active(service, accounts):
    consultant = await service.register_consultant(accounts, registration())

    assert consultant.id is not None
    assert (consultant.is_placed, consultant.is_hold, consultant.is_active, consultant.is_offer_pending) == (
        False, False, True, False,
    )
    assert consultant.job_lost_count == 0
    assert consultant.document_verification_status == DocumentVerificationStatus.PENDING


async def test_register_duplicate_email(service, accounts):
    await service.register_consultant(accounts, registration())
    with pytest.raises(Conflict):
        await service.register_consultant(accounts, registration())


async def test_coordinator_cannot_register(service, coordinator):
    with pytest.raises(Unauthorized):
        await service.register_consultant(coordinator, registration())


async def test_list_is_scoped_by_assignment(service, admin, coordinator, other_coordinator, consultant, make_consultant):
    await make_consultant(name="Someone Else", email="else@example.com")

    everyone = await service.list_consultants(admin)
    assert everyone.total == 2
    assert len(everyone.items) == 2

    assigned = await service.list_consultants(coordinator)
    assert assigned.total == 1
    assert [c.id for c in assigned.items] == [consultant.id]

    assert (await service.list_consultants(other_coordinator)).total == 0


async def test_list_denied_for_support(service, support, consultant):
    with pytest.raises(Unauthorized):
        await service.list_consultants(support)


async def test_get_consultant_scoped(service, team_lead, other_coordinator, consultant):
    assert (await service.get_consultant(team_lead, consultant.id)).id == consultant.id
    with pytest.raises(Unauthorized):
        await service.get_consultant(other_coordinator, consultant.id)
    with pytest.raises(NotFound):
        await service.get_consultant(team_lead, 404)


async def test_update_contact_details(service, accounts, consultant):
    updated = await service.update_consultant(accounts, consultant.id, UpdateConsultantSchema(phone="555-0111"))
    assert updated.phone == "555-0111"
    assert updated.full_name == "Jane Doe"

    with pytest.raises(ValidationError):
        await service.update_consultant(accounts, consultant.id, UpdateConsultantSchema(full_name=""))


async def test_assign_staff(service, admin, other_coordinator, make_user, consultant):
    new_lead = await make_user(StaffRole.TEAM_LEAD, "new_lead")

    updated = await service.assign_staff(
        admin, consultant.id, AssignStaffSchema(coordinator2_id=other_coordinator.id, team_lead_id=new_lead.id)
    )

    assert updated.assigned_coordinator2_id == other_coordinator.id
    assert updated.assigned_team_lead_id == new_lead.id
    assert updated.assigned_coordinator_id is not None
    assert updated.assignment_date is not None


async def test_assign_staff_checks_roles(service, admin, support, consultant):
    with pytest.raises(ValidationError) as exc_info:
        await service.assign_staff(admin, consultant.id, AssignStaffSchema(coordinator_id=support.id))
    assert exc_info.value.context["role"] == "support"

    with pytest.raises(NotFound):
        await service.assign_staff(admin, consultant.id, AssignStaffSchema(team_lead_id=404))


async def test_assign_staff_rejects_inactive_user(service, admin, make_user, consultant):
    retired = await make_user(StaffRole.COORDINATOR, "retired", is_active=False)
    with pytest.raises(ValidationError):
        await service.assign_staff(admin, consultant.id, AssignStaffSchema(coordinator_id=retired.id))


async def test_assign_staff_needs_some_assignment(service, admin, consultant):
    with pytest.raises(ValidationError):
        await service.assign_staff(admin, consultant.id, AssignStaffSchema())


async def test_assign_staff_is_privileged(service, accounts, other_coordinator, consultant):
    with pytest.raises(Unauthorized):
        await service.assign_staff(accounts, consultant.id, AssignStaffSchema(coordinator_id=other_coordinator.id))


async def test_work_and_verification_flags(service, coordinator, consultant):
    await service.update_open_for_work(coordinator, consultant.id, False)
    await service.update_bgv_status(coordinator, consultant.id, True)
    await service.update_document_verification(coordinator, consultant.id, "verified")

    assert consultant.open_for_work is False
    assert consultant.bgv_verified is True
    assert consultant.document_verification_status == DocumentVerificationStatus.VERIFIED


async def test_resume_status_is_privileged(service, admin, coordinator, consultant):
    with pytest.raises(Unauthorized):
        await service.update_resume_status(coordinator, consultant.id, ResumeStatus.ACCEPTED)

    await service.update_resume_status(admin, consultant.id, ResumeStatus.ACCEPTED)
    assert consultant.resume_status == ResumeStatus.ACCEPTED


async def test_job_lost_count_is_capped(service, coordinator, consultant):
    await service.increment_job_lost_count(coordinator, consultant.id)
    await service.increment_job_lost_count(coordinator, consultant.id)
    assert consultant.job_lost_count == 2

    with pytest.raises(InvalidState) as exc_info:
        await service.increment_job_lost_count(coordinator, consultant.id)
    assert exc_info.value.context["current_state"] == "2"
    assert consultant.job_lost_count == 2


async def test_delete_blocked_by_job_details(service, session, admin, consultant):
    data = CreateJobDetailsSchema(company_name="Acme", job_type="Full time", date_of_offer=date(2024, 1, 15))
    await PlacementLifecycleManager(session).create_job_details(admin, consultant.id, data)

    with pytest.raises(InvalidState):
        await service.delete_consultant(admin, consultant.id)


async def test_delete_consultant(service, admin, accounts, consultant):
    with pytest.raises(Unauthorized):
        await service.delete_consultant(accounts, consultant.id)

    consultant_id = consultant.id
    await service.delete_consultant(admin, consultant_id)
    with pytest.raises(NotFound):
        await service.get_consultant(admin, consultant_id)
