from typing import Type, Optional

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute

from db.crud.base import BaseCrud
from db.tables.user import User as UserTable
from schemas.user import UserSchemaBase, OutUserSchema


class UsersCrud(BaseCrud[UserSchemaBase, UserSchemaBase, OutUserSchema, OutUserSchema, UserTable]):
    @property
    def _table(self) -> Type[UserTable]:
        return UserTable

    @property
    def _out_schema(self) -> Type[OutUserSchema]:
        return OutUserSchema

    @property
    def default_ordering(self) -> InstrumentedAttribute:
        return UserTable.created_at.desc()

    async def get_by_email(self, email: str) -> Optional[UserTable]:
        """Get staff member by email."""
        stmt = select(self._table).where(self._table.email == email)
        result = await self._db_session.execute(stmt)
        return result.scalar_one_or_none()
