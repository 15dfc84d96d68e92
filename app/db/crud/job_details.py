from typing import Type, Optional

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute

from db.crud.base import BaseCrud
from db.tables.job_details import JobDetails
from schemas.job_details import CreateJobDetailsSchema, UpdateJobDetailsSchema, OutJobDetailsSchema


class JobDetailsCrud(BaseCrud[CreateJobDetailsSchema, UpdateJobDetailsSchema, OutJobDetailsSchema, OutJobDetailsSchema, JobDetails]):
    @property
    def _table(self) -> Type[JobDetails]:
        return JobDetails

    @property
    def _out_schema(self) -> Type[OutJobDetailsSchema]:
        return OutJobDetailsSchema

    @property
    def default_ordering(self) -> InstrumentedAttribute:
        return self._table.date_of_offer.desc()

    async def get_by_consultant_id(self, consultant_id: int) -> Optional[JobDetails]:
        query = select(JobDetails).where(JobDetails.consultant_id == consultant_id)
        result = await self._db_session.execute(query)
        return result.scalars().first()

    async def get_live_placements(self, limit: int = 100, offset: int = 0) -> list[JobDetails]:
        """Get all job records that currently carry a placement."""
        query = select(JobDetails).where(
            JobDetails.is_job == True  # noqa: E712
        ).order_by(self.default_ordering).limit(limit).offset(offset)
        result = await self._db_session.execute(query)
        return list(result.scalars().all())
