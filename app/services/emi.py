from datetime import date
from typing import Optional, Sequence

from dateutil.relativedelta import relativedelta

from core.exceptions import InvalidArgument

DEFAULT_INSTALLMENT_COUNT = 8


def generate_schedule(start_date: date, emi_day_of_month: int, count: int = DEFAULT_INSTALLMENT_COUNT) -> list[date]:
    """Return the due dates of ``count`` monthly installments.

    Installment ``i`` (1-based) falls ``i`` calendar months after
    ``start_date`` on ``emi_day_of_month``. When the target month is shorter
    than that day, the date is clamped to the month's last day, so an EMI day
    of 31 lands on Feb 28/29, Apr 30 and so on; it never spills into the
    following month.
    """
    if isinstance(emi_day_of_month, bool) or not isinstance(emi_day_of_month, int):
        raise InvalidArgument("EMI date must be an integer day of month", emi_date=emi_day_of_month)
    if not 1 <= emi_day_of_month <= 31:
        raise InvalidArgument("EMI date must be between 1 and 31", emi_date=emi_day_of_month)
    if count < 1:
        raise InvalidArgument("Installment count must be positive", count=count)

    return [start_date + relativedelta(months=i, day=emi_day_of_month) for i in range(1, count + 1)]


def next_due_date(due_dates: Sequence[date], paid: Sequence[bool]) -> Optional[date]:
    """Earliest due date whose installment is still unpaid, or None once all are paid."""
    for due, is_paid in zip(due_dates, paid):
        if not is_paid:
            return due
    return None
