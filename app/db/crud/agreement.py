from typing import Type, Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.orm import InstrumentedAttribute

from db.crud.base import BaseCrud
from db.tables.agreement import Agreement, PaymentCompletionStatus
from schemas.agreement import CreateAgreementSchema, OutAgreementSchema


class AgreementCrud(BaseCrud[CreateAgreementSchema, CreateAgreementSchema, OutAgreementSchema, OutAgreementSchema, Agreement]):
    @property
    def _table(self) -> Type[Agreement]:
        return Agreement

    @property
    def _out_schema(self) -> Type[OutAgreementSchema]:
        return OutAgreementSchema

    @property
    def default_ordering(self) -> InstrumentedAttribute:
        return self._table.created_at.desc()

    async def get_by_job_details_id(self, job_details_id: int) -> list[Agreement]:
        query = select(Agreement).where(Agreement.job_details_id == job_details_id).order_by(self.default_ordering)
        result = await self._db_session.execute(query)
        return list(result.scalars().all())

    async def get_active_by_job_details_id(self, job_details_id: int) -> Optional[Agreement]:
        """Get the agreement for a job record that has not been terminated."""
        query = select(Agreement).where(
            and_(
                Agreement.job_details_id == job_details_id,
                Agreement.payment_completion_status != PaymentCompletionStatus.TERMINATED,
            )
        ).order_by(self.default_ordering)
        result = await self._db_session.execute(query)
        return result.scalars().first()

    async def find_live_duplicate(self, job_details_id: int, consultant_name: str, email: str) -> Optional[Agreement]:
        """Find a non-terminated agreement matching either the job link or the consultant identity."""
        query = select(Agreement).where(
            and_(
                Agreement.payment_completion_status != PaymentCompletionStatus.TERMINATED,
                or_(
                    Agreement.job_details_id == job_details_id,
                    and_(
                        Agreement.consultant_name == consultant_name,
                        Agreement.email == email,
                    ),
                ),
            )
        )
        result = await self._db_session.execute(query)
        return result.scalars().first()
