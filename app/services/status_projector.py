from typing import Optional

from db.tables.job_details import PlacementStatus

_FLAG_BY_STATUS = {
    PlacementStatus.PLACED: "is_placed",
    PlacementStatus.HOLD: "is_hold",
    PlacementStatus.ACTIVE: "is_active",
    PlacementStatus.OFFER_PENDING: "is_offer_pending",
}

FLAG_NAMES = ("is_placed", "is_hold", "is_active", "is_offer_pending")


def _coerce(status) -> Optional[PlacementStatus]:
    if status is None or isinstance(status, PlacementStatus):
        return status
    try:
        return PlacementStatus(status)
    except ValueError:
        return None


def project_flags(placement_status) -> dict[str, bool]:
    """Map a placement status onto the four mutually exclusive consultant flags.

    Exactly one flag is true. A missing or unknown status projects to
    ``is_active``.
    """
    status = _coerce(placement_status)
    selected = _FLAG_BY_STATUS.get(status, "is_active")
    return {name: name == selected for name in FLAG_NAMES}


def project_is_job(placement_status) -> bool:
    return _coerce(placement_status) is not None


def apply_flags(consultant, placement_status) -> None:
    """The single write path for Consultant placement flags."""
    for name, value in project_flags(placement_status).items():
        setattr(consultant, name, value)
