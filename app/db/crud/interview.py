from typing import Type

from sqlalchemy import delete
from sqlalchemy.orm import InstrumentedAttribute

from db.crud.base import BaseCrud
from db.tables.interview import InterviewSchedule
from schemas.base import BaseSchema


class InterviewScheduleCrud(BaseCrud[BaseSchema, BaseSchema, BaseSchema, BaseSchema, InterviewSchedule]):
    @property
    def _table(self) -> Type[InterviewSchedule]:
        return InterviewSchedule

    @property
    def _out_schema(self) -> Type[BaseSchema]:
        return BaseSchema

    @property
    def default_ordering(self) -> InstrumentedAttribute:
        return self._table.interview_date.desc()

    async def delete_by_consultant_id(self, consultant_id: int) -> int:
        result = await self._db_session.execute(
            delete(InterviewSchedule).where(InterviewSchedule.consultant_id == consultant_id)
        )
        return result.rowcount
