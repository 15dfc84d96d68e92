import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import Conflict, NotFound, ValidationError, InvalidState
from db.crud.agreement import AgreementCrud
from db.crud.interview import InterviewScheduleCrud
from db.crud.job_details import JobDetailsCrud
from db.tables.job_details import JobDetails, PlacementStatus, FeesStatus
from schemas.job_details import CreateJobDetailsSchema, UpdateJobDetailsSchema, ReopenAfterJobLostSchema
from services.authorization import Action, check_capability, require_capability
from services.base import TransactionalService
from services.fees import apply_fees
from services.status_projector import apply_flags, project_is_job

logger = logging.getLogger(__name__)

REQUIRED_JOB_FIELDS = ("company_name", "job_type", "date_of_offer")
FEE_FIELDS = ("total_fees", "received_fees")


class PlacementLifecycleManager(TransactionalService):
    """Owns JobDetails and, through the status projector, the consultant's placement flags."""

    def __init__(self, db_session: AsyncSession):
        super().__init__(db_session)
        self.job_details = JobDetailsCrud(db_session)
        self.agreements = AgreementCrud(db_session)
        self.interviews = InterviewScheduleCrud(db_session)

    async def _get_job_details(self, consultant_id: int) -> JobDetails:
        job_details = await self.job_details.get_by_consultant_id(consultant_id)
        if job_details is None:
            raise NotFound("Job details not found for this consultant", consultant_id=consultant_id)
        return job_details

    def _writable_fields(self, actor, consultant, data: CreateJobDetailsSchema) -> dict:
        values = data.model_dump(exclude_unset=True)
        if not check_capability(actor, consultant, Action.WRITE_FEES):
            for field in FEE_FIELDS:
                values.pop(field, None)
        return values

    async def get_job_details(self, actor, consultant_id: int) -> JobDetails:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.VIEW_CONSULTANT)
        return await self._get_job_details(consultant_id)

    async def list_placements(self, actor, limit: int = 100, offset: int = 0) -> list[JobDetails]:
        require_capability(actor, None, Action.LIST_PLACEMENTS)
        return await self.job_details.get_live_placements(limit=limit, offset=offset)

    async def create_job_details(self, actor, consultant_id: int, data: CreateJobDetailsSchema) -> JobDetails:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.CREATE_JOB_DETAILS)

        if await self.job_details.get_by_consultant_id(consultant_id) is not None:
            raise Conflict("Job details already exist for this consultant", consultant_id=consultant_id)

        values = self._writable_fields(actor, consultant, data)
        missing = [field for field in REQUIRED_JOB_FIELDS if values.get(field) is None]
        if missing:
            raise ValidationError("Missing required fields", missing_fields=missing)

        status = values.pop("placement_status", None) or PlacementStatus.ACTIVE
        if values.get("received_fees") is None:
            values["received_fees"] = 0
        job_details = JobDetails(
            consultant_id=consultant_id,
            created_by=actor.id,
            created_by_name=getattr(actor, "username", None),
            placement_status=status,
            is_job=project_is_job(status),
            fees_status=FeesStatus.PENDING,
            is_agreement=False,
            **values,
        )
        apply_fees(job_details)

        async with self.write_phase():
            self._db_session.add(job_details)
            apply_flags(consultant, status)
            await self._db_session.flush()

        logger.info("User %s created job details %s for consultant %s", actor.id, job_details.id, consultant_id)
        return job_details

    async def update_job_details(self, actor, consultant_id: int, data: UpdateJobDetailsSchema) -> JobDetails:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.UPDATE_JOB_DETAILS)
        job_details = await self._get_job_details(consultant_id)

        values = self._writable_fields(actor, consultant, data)
        status = values.pop("placement_status", None)
        for field in REQUIRED_JOB_FIELDS:
            if field in values and values[field] is None:
                raise ValidationError("Field may not be blank", missing_fields=[field])
        if status is not None:
            require_capability(actor, consultant, Action.UPDATE_PLACEMENT_STATUS)
            if not job_details.is_job:
                raise InvalidState("Job record is not active", current="inactive", required="active")

        async with self.write_phase():
            for key, value in values.items():
                setattr(job_details, key, value)
            if job_details.received_fees is None:
                job_details.received_fees = 0
            apply_fees(job_details)
            if status is not None:
                job_details.placement_status = status
                job_details.is_job = project_is_job(status)
                apply_flags(consultant, status)
            await self._db_session.flush()

        logger.info("User %s updated job details for consultant %s", actor.id, consultant_id)
        return job_details

    async def update_placement_status(
        self,
        actor,
        consultant_id: int,
        new_status: PlacementStatus,
        expected_version: Optional[int] = None,
    ) -> JobDetails:
        consultant = await self._get_consultant(consultant_id)
        job_details = await self._get_job_details(consultant_id)
        if not job_details.is_job:
            raise InvalidState(
                "Placement status can only change on an active job record",
                current="inactive",
                required="active",
            )
        require_capability(actor, consultant, Action.UPDATE_PLACEMENT_STATUS)
        if expected_version is not None and expected_version != job_details.version_id:
            raise Conflict(
                "Job details were modified since they were read",
                expected_version=expected_version,
                current_version=job_details.version_id,
            )

        new_status = PlacementStatus(new_status)
        async with self.write_phase():
            job_details.placement_status = new_status
            job_details.is_job = project_is_job(new_status)
            apply_flags(consultant, new_status)
            await self._db_session.flush()

        logger.info(
            "User %s set placement status of consultant %s to %s", actor.id, consultant_id, new_status.value
        )
        return job_details

    async def delete_job_details(self, actor, consultant_id: int) -> JobDetails:
        """Undo a placement: interviews, agreements and the job record go together.

        The consultant's flags are re-projected from "no job", and the staff
        assignment and job-lost counter are cleared.
        """
        consultant = await self._get_consultant(consultant_id)
        job_details = await self._get_job_details(consultant_id)
        require_capability(actor, consultant, Action.DELETE_JOB_DETAILS)

        async with self.write_phase():
            removed_interviews = await self.interviews.delete_by_consultant_id(consultant_id)

            agreements = await self.agreements.get_by_job_details_id(job_details.id)
            if not agreements:
                logger.info("No agreement to remove for consultant %s", consultant_id)
            for agreement in agreements:
                await self.agreements.delete(agreement)
            await self._db_session.flush()

            await self.job_details.delete(job_details)

            apply_flags(consultant, None)
            consultant.job_lost_count = 0
            consultant.assigned_coordinator_id = None
            consultant.assigned_coordinator2_id = None
            consultant.assigned_team_lead_id = None
            await self._db_session.flush()

        logger.info(
            "User %s removed placement of consultant %s (%d agreements, %d interviews)",
            actor.id, consultant_id, len(agreements), removed_interviews,
        )
        return job_details

    async def update_after_job_lost(self, actor, consultant_id: int, data: ReopenAfterJobLostSchema) -> JobDetails:
        """Re-open the pipeline with a new company, keeping fee history and job-lost count."""
        consultant = await self._get_consultant(consultant_id)
        job_details = await self._get_job_details(consultant_id)
        require_capability(actor, consultant, Action.REOPEN_AFTER_JOB_LOST)

        async with self.write_phase():
            job_details.company_name = data.company_name
            job_details.job_type = data.job_type
            job_details.date_of_offer = data.date_of_offer
            job_details.placement_status = PlacementStatus.ACTIVE
            job_details.is_job = project_is_job(PlacementStatus.ACTIVE)
            job_details.is_agreement = False
            apply_flags(consultant, PlacementStatus.ACTIVE)
            await self._db_session.flush()

        logger.info("User %s re-opened placement for consultant %s at %s", actor.id, consultant_id, data.company_name)
        return job_details

    async def reset_fees(self, actor, consultant_id: int) -> JobDetails:
        consultant = await self._get_consultant(consultant_id)
        require_capability(actor, consultant, Action.RESET_FEES)
        job_details = await self._get_job_details(consultant_id)

        async with self.write_phase():
            job_details.total_fees = 0
            job_details.received_fees = 0
            apply_fees(job_details)
            await self._db_session.flush()

        logger.info("User %s reset fees for consultant %s", actor.id, consultant_id)
        return job_details
