import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import Conflict, NotFound, ValidationError, InvalidState
from db.crud.job_details import JobDetailsCrud
from db.crud.user import UsersCrud
from db.tables.consultant import Consultant, DocumentVerificationStatus, ResumeStatus
from db.tables.user import StaffRole
from schemas.consultant import (
    CreateConsultantSchema,
    UpdateConsultantSchema,
    AssignStaffSchema,
    PaginatedConsultantSchema,
)
from services.authorization import Action, CAPABILITIES, require_capability
from services.base import TransactionalService
from services.status_projector import apply_flags

logger = logging.getLogger(__name__)

# assignment slot -> (schema field, role the referenced user must hold)
ASSIGNMENT_SLOTS = {
    "assigned_coordinator_id": ("coordinator_id", StaffRole.COORDINATOR),
    "assigned_coordinator2_id": ("coordinator2_id", StaffRole.COORDINATOR),
    "assigned_team_lead_id": ("team_lead_id", StaffRole.TEAM_LEAD),
}


class ConsultantService(TransactionalService):
    def __init__(self, db_session: AsyncSession):
        super().__init__(db_session)
        self.users = UsersCrud(db_session)
        self.job_details = JobDetailsCrud(db_session)

    async def register_consultant(self, actor, data: CreateConsultantSchema) -> Consultant:
        require_capability(actor, None, Action.REGISTER_CONSULTANT)
        if await self.consultants.get_by_email(data.email) is not None:
            raise Conflict("Consultant with this email already exists", email=data.email)

        consultant = Consultant(**data.model_dump())
        apply_flags(consultant, None)

        async with self.write_phase():
            self._db_session.add(consultant)
            await self._db_session.flush()

        logger.info("User %s registered consultant %s", actor.id, consultant.id)
        return consultant

    async def get_consultant(self, actor, consultant_id: int) -> Consultant:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.VIEW_CONSULTANT)
        return consultant

    async def list_consultants(self, actor, limit: int = 20, offset: int = 0) -> PaginatedConsultantSchema:
        """Elevated roles see everyone; coordinators and team leads only their own consultants."""
        if StaffRole(actor.role) in CAPABILITIES[Action.VIEW_CONSULTANT].scoped:
            return await self.consultants.paginate_assigned_to(actor.id, limit=limit, offset=offset)
        require_capability(actor, None, Action.VIEW_CONSULTANT)
        return await self.consultants.paginate(limit=limit, offset=offset)

    async def update_consultant(self, actor, consultant_id: int, data: UpdateConsultantSchema) -> Consultant:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.REGISTER_CONSULTANT)
        values = data.model_dump(exclude_unset=True)
        blank = [key for key in ("full_name", "email", "phone") if key in values and not values[key]]
        if blank:
            raise ValidationError("Field may not be blank", missing_fields=blank)
        if "email" in values and values["email"] != consultant.email:
            if await self.consultants.get_by_email(values["email"]) is not None:
                raise Conflict("Consultant with this email already exists", email=values["email"])

        async with self.write_phase():
            for key, value in values.items():
                setattr(consultant, key, value)
            await self._db_session.flush()

        logger.info("User %s updated consultant %s", actor.id, consultant_id)
        return consultant

    async def assign_staff(self, actor, consultant_id: int, data: AssignStaffSchema) -> Consultant:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.ASSIGN_STAFF)

        provided = data.model_dump(exclude_unset=True)
        updates = {}
        for column, (field, role) in ASSIGNMENT_SLOTS.items():
            if field not in provided:
                continue
            staff_id = provided[field]
            if staff_id is not None:
                await self._check_staff(staff_id, role, field)
            updates[column] = staff_id
        if not updates:
            raise ValidationError("No staff assignment given", missing_fields=list(AssignStaffSchema.model_fields))

        async with self.write_phase():
            for column, staff_id in updates.items():
                setattr(consultant, column, staff_id)
            consultant.assignment_date = datetime.utcnow()
            await self._db_session.flush()

        logger.info("User %s assigned staff %s to consultant %s", actor.id, updates, consultant_id)
        return consultant

    async def _check_staff(self, staff_id: int, role: StaffRole, field: str) -> None:
        user = await self.users.get_by_id(staff_id)
        if user is None:
            raise NotFound("Staff member not found", **{field: staff_id})
        if not user.is_active:
            raise ValidationError("Staff member is inactive", **{field: staff_id})
        if user.role != role:
            raise ValidationError(
                f"Staff member must have the {role.value} role",
                **{field: staff_id, "role": StaffRole(user.role).value},
            )

    async def _set_field(self, actor, consultant_id: int, action: Action, field: str, value) -> Consultant:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, action)

        async with self.write_phase():
            setattr(consultant, field, value)
            await self._db_session.flush()

        logger.info("User %s set %s=%s on consultant %s", actor.id, field, value, consultant_id)
        return consultant

    async def update_open_for_work(self, actor, consultant_id: int, open_for_work: bool) -> Consultant:
        return await self._set_field(actor, consultant_id, Action.UPDATE_WORK_STATUS, "open_for_work", open_for_work)

    async def update_bgv_status(self, actor, consultant_id: int, bgv_verified: bool) -> Consultant:
        return await self._set_field(actor, consultant_id, Action.VERIFY_DOCUMENTS, "bgv_verified", bgv_verified)

    async def update_resume_status(self, actor, consultant_id: int, resume_status: ResumeStatus) -> Consultant:
        return await self._set_field(
            actor, consultant_id, Action.UPDATE_RESUME_STATUS, "resume_status", ResumeStatus(resume_status)
        )

    async def update_document_verification(
        self, actor, consultant_id: int, verification_status: DocumentVerificationStatus
    ) -> Consultant:
        return await self._set_field(
            actor,
            consultant_id,
            Action.VERIFY_DOCUMENTS,
            "document_verification_status",
            DocumentVerificationStatus(verification_status),
        )

    async def increment_job_lost_count(self, actor, consultant_id: int) -> Consultant:
        """Record one more lost job; the counter never goes past ``MAX_JOB_LOST_COUNT``."""
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.INCREMENT_JOB_LOST)
        limit = settings.MAX_JOB_LOST_COUNT
        if consultant.job_lost_count >= limit:
            raise InvalidState(
                "Job lost count is already at its maximum",
                current=str(consultant.job_lost_count),
                required=f"< {limit}",
            )

        async with self.write_phase():
            consultant.job_lost_count += 1
            await self._db_session.flush()

        logger.info("User %s raised job lost count of consultant %s to %s", actor.id, consultant_id, consultant.job_lost_count)
        return consultant

    async def delete_consultant(self, actor, consultant_id: int) -> None:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.DELETE_CONSULTANT)
        if await self.job_details.get_by_consultant_id(consultant_id) is not None:
            raise InvalidState(
                "Remove the consultant's job details before deleting the consultant",
                current="has_job_details",
                required="no_job_details",
            )

        async with self.write_phase():
            await self.consultants.delete(consultant)

        logger.info("User %s deleted consultant %s", actor.id, consultant_id)
