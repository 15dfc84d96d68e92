import abc
from typing import Generic, TypeVar, Type, Optional

from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from db.base_class import TimestampedBase

CreateSchemaT = TypeVar("CreateSchemaT", bound=BaseModel)
UpdateSchemaT = TypeVar("UpdateSchemaT", bound=BaseModel)
OutSchemaT = TypeVar("OutSchemaT", bound=BaseModel)
PaginatedSchemaT = TypeVar("PaginatedSchemaT", bound=BaseModel)
TableT = TypeVar("TableT", bound=TimestampedBase)


class BaseCrud(Generic[CreateSchemaT, UpdateSchemaT, OutSchemaT, PaginatedSchemaT, TableT], abc.ABC):
    def __init__(self, db_session: AsyncSession):
        self._db_session = db_session

    @property
    @abc.abstractmethod
    def _table(self) -> Type[TableT]:
        ...

    @property
    @abc.abstractmethod
    def _out_schema(self) -> Type[OutSchemaT]:
        ...

    @property
    @abc.abstractmethod
    def default_ordering(self) -> InstrumentedAttribute:
        ...

    @property
    def _paginated_schema(self) -> Optional[Type[PaginatedSchemaT]]:
        return None

    async def get_by_id(self, entry_id: int) -> Optional[TableT]:
        return await self._db_session.get(self._table, entry_id)

    async def delete(self, entry: TableT) -> None:
        await self._db_session.delete(entry)

    async def get_all(self, limit: int = 20, offset: int = 0) -> list[TableT]:
        stmt = select(self._table).order_by(self.default_ordering).limit(limit).offset(offset)
        result = await self._db_session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self._table)
        result = await self._db_session.execute(stmt)
        return result.scalar_one()

    async def paginate(self, limit: int = 20, offset: int = 0) -> PaginatedSchemaT:
        items = await self.get_all(limit=limit, offset=offset)
        return self._paginated_schema(
            items=[self._out_schema.model_validate(item) for item in items],
            total=await self.count(),
            limit=limit,
            offset=offset,
        )