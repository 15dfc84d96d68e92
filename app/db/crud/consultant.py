from typing import Type, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.orm import InstrumentedAttribute

from db.crud.base import BaseCrud
from db.tables.consultant import Consultant
from schemas.consultant import (
    CreateConsultantSchema,
    UpdateConsultantSchema,
    OutConsultantSchema,
    PaginatedConsultantSchema,
)


class ConsultantCrud(BaseCrud[CreateConsultantSchema, UpdateConsultantSchema, OutConsultantSchema, PaginatedConsultantSchema, Consultant]):
    @property
    def _table(self) -> Type[Consultant]:
        return Consultant

    @property
    def _out_schema(self) -> Type[OutConsultantSchema]:
        return OutConsultantSchema

    @property
    def default_ordering(self) -> InstrumentedAttribute:
        return self._table.created_at.desc()

    @property
    def _paginated_schema(self) -> Type[PaginatedConsultantSchema]:
        return PaginatedConsultantSchema

    async def get_by_email(self, email: str) -> Optional[Consultant]:
        query = select(Consultant).where(Consultant.email == email)
        result = await self._db_session.execute(query)
        return result.scalars().first()

    @staticmethod
    def _assigned_to(staff_id: int):
        return or_(
            Consultant.assigned_coordinator_id == staff_id,
            Consultant.assigned_coordinator2_id == staff_id,
            Consultant.assigned_team_lead_id == staff_id,
        )

    async def get_assigned_to(self, staff_id: int, limit: int = 20, offset: int = 0) -> list[Consultant]:
        """Get consultants where the staff member appears in any assignment slot."""
        query = select(Consultant).where(
            self._assigned_to(staff_id)
        ).order_by(self.default_ordering).limit(limit).offset(offset)
        result = await self._db_session.execute(query)
        return list(result.scalars().all())

    async def paginate_assigned_to(self, staff_id: int, limit: int = 20, offset: int = 0) -> PaginatedConsultantSchema:
        items = await self.get_assigned_to(staff_id, limit=limit, offset=offset)
        total = await self._db_session.execute(
            select(func.count()).select_from(Consultant).where(self._assigned_to(staff_id))
        )
        return PaginatedConsultantSchema(
            items=[OutConsultantSchema.model_validate(item) for item in items],
            total=total.scalar_one(),
            limit=limit,
            offset=offset,
        )
