import enum
import logging
from dataclasses import dataclass
from typing import Optional

from core.exceptions import Unauthorized
from db.tables.user import StaffRole

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    VIEW_CONSULTANT = "view_consultant"
    REGISTER_CONSULTANT = "register_consultant"
    DELETE_CONSULTANT = "delete_consultant"
    ASSIGN_STAFF = "assign_staff"
    UPDATE_WORK_STATUS = "update_work_status"
    VERIFY_DOCUMENTS = "verify_documents"
    UPDATE_RESUME_STATUS = "update_resume_status"
    INCREMENT_JOB_LOST = "increment_job_lost"

    CREATE_JOB_DETAILS = "create_job_details"
    UPDATE_JOB_DETAILS = "update_job_details"
    UPDATE_PLACEMENT_STATUS = "update_placement_status"
    REOPEN_AFTER_JOB_LOST = "reopen_after_job_lost"
    DELETE_JOB_DETAILS = "delete_job_details"
    LIST_PLACEMENTS = "list_placements"
    WRITE_FEES = "write_fees"
    RESET_FEES = "reset_fees"

    CREATE_AGREEMENT = "create_agreement"
    VIEW_AGREEMENT = "view_agreement"
    UPLOAD_PROOF = "upload_proof"
    RECORD_PAYMENT = "record_payment"
    RECORD_JOB_LOST = "record_job_lost"
    REFRESH_OVERDUE = "refresh_overdue"
    DELETE_AGREEMENT = "delete_agreement"


PRIVILEGED = frozenset({StaffRole.SUPER_ADMIN, StaffRole.ADMIN})
ELEVATED = PRIVILEGED | {StaffRole.ACCOUNTS}
ASSIGNMENT_SCOPED = frozenset({StaffRole.COORDINATOR, StaffRole.TEAM_LEAD})
NONE = frozenset()


@dataclass(frozen=True)
class Capability:
    full: frozenset
    scoped: frozenset = NONE


CAPABILITIES: dict[Action, Capability] = {
    Action.VIEW_CONSULTANT: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.REGISTER_CONSULTANT: Capability(full=ELEVATED),
    Action.DELETE_CONSULTANT: Capability(full=PRIVILEGED),
    Action.ASSIGN_STAFF: Capability(full=PRIVILEGED),
    Action.UPDATE_WORK_STATUS: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.VERIFY_DOCUMENTS: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.UPDATE_RESUME_STATUS: Capability(full=PRIVILEGED),
    Action.INCREMENT_JOB_LOST: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),

    Action.CREATE_JOB_DETAILS: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.UPDATE_JOB_DETAILS: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.UPDATE_PLACEMENT_STATUS: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.REOPEN_AFTER_JOB_LOST: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.DELETE_JOB_DETAILS: Capability(full=PRIVILEGED),
    Action.LIST_PLACEMENTS: Capability(full=ELEVATED),
    Action.WRITE_FEES: Capability(full=ELEVATED),
    Action.RESET_FEES: Capability(full=PRIVILEGED),

    Action.CREATE_AGREEMENT: Capability(full=ELEVATED),
    Action.VIEW_AGREEMENT: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.UPLOAD_PROOF: Capability(full=ELEVATED, scoped=ASSIGNMENT_SCOPED),
    Action.RECORD_PAYMENT: Capability(full=ELEVATED),
    Action.RECORD_JOB_LOST: Capability(full=ELEVATED),
    Action.REFRESH_OVERDUE: Capability(full=ELEVATED),
    Action.DELETE_AGREEMENT: Capability(full=PRIVILEGED),
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


def check_capability(actor, consultant, action: Action) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``consultant``.

    ``consultant`` may be None for actions that are not tied to one
    consultant; assignment-scoped roles are then denied.
    """
    capability = CAPABILITIES[action]
    role = StaffRole(actor.role)

    if role in capability.full:
        return Decision(True)

    if role in capability.scoped:
        if consultant is None:
            return Decision(False, f"Role {role.value} may only {action.value} for assigned consultants")
        if actor.id in consultant.assigned_staff_ids():
            return Decision(True)
        return Decision(False, f"You are not assigned to consultant {consultant.id}")

    return Decision(False, f"Role {role.value} may not {action.value}")


def require_capability(actor, consultant, action: Action) -> None:
    decision = check_capability(actor, consultant, action)
    if not decision:
        logger.warning(
            "Denied %s for user %s (%s) on consultant %s: %s",
            action.value, actor.id, StaffRole(actor.role).value,
            getattr(consultant, "id", None), decision.reason,
        )
        raise Unauthorized(decision.reason, action=action.value)
