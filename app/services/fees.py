from dataclasses import dataclass
from typing import Optional

from db.tables.job_details import FeesStatus


@dataclass(frozen=True)
class FeeDerivation:
    remaining_fees: Optional[float]
    fees_status: Optional[FeesStatus]


def compute_fees(total_fees: Optional[float], received_fees: Optional[float]) -> FeeDerivation:
    """Derive remaining fees and fee status from the agreed and received amounts.

    When ``total_fees`` is unset nothing is derived and both outputs are None so
    callers leave the stored values untouched. Overpayment yields a negative
    remainder, which is kept as is.
    """
    if total_fees is None:
        return FeeDerivation(remaining_fees=None, fees_status=None)

    received = received_fees or 0
    remaining = total_fees - received

    if remaining == 0 and total_fees > 0:
        fees_status = FeesStatus.COMPLETED
    elif received > 0:
        fees_status = FeesStatus.PARTIAL
    else:
        fees_status = FeesStatus.PENDING

    return FeeDerivation(remaining_fees=remaining, fees_status=fees_status)


def apply_fees(job_details) -> None:
    """Write the derived fee fields onto a JobDetails row."""
    derived = compute_fees(job_details.total_fees, job_details.received_fees)
    if derived.fees_status is None:
        return
    job_details.remaining_fees = derived.remaining_fees
    job_details.fees_status = derived.fees_status
