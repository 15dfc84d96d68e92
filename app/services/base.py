import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import Conflict, NotFound
from db.crud.consultant import ConsultantCrud
from db.tables.consultant import Consultant

logger = logging.getLogger(__name__)


class TransactionalService:
    """Base for services whose operations touch more than one row.

    Checks run before ``write_phase``; everything inside it is committed
    together or rolled back together.
    """

    def __init__(self, db_session: AsyncSession):
        self._db_session = db_session
        self.consultants = ConsultantCrud(db_session)

    @asynccontextmanager
    async def write_phase(self):
        try:
            yield
            await self._db_session.commit()
        except StaleDataError as e:
            await self._db_session.rollback()
            logger.warning("Concurrent modification detected: %s", e)
            raise Conflict("The record was modified by another request; reload and retry") from e
        except Exception:
            await self._db_session.rollback()
            raise

    async def _get_consultant(self, consultant_id: int) -> Consultant:
        consultant = await self.consultants.get_by_id(consultant_id)
        if consultant is None:
            raise NotFound("Consultant not found", consultant_id=consultant_id)
        return consultant
