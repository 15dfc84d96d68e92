from typing import Any, Optional

from starlette import status


class PipelineError(Exception):
    """Base for every failure the placement core reports to its callers.

    ``context`` carries whatever the caller needs to act on the failure
    (missing field names, current vs. required state) and is merged into the
    JSON error body.
    """
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, **self.context}


class ValidationError(PipelineError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidArgument(ValidationError):
    pass


class Unauthorized(PipelineError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(PipelineError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(PipelineError):
    status_code = status.HTTP_409_CONFLICT


class InvalidState(PipelineError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, current: Optional[str] = None, required: Optional[str] = None, **context: Any):
        if current is not None:
            context["current_state"] = current
        if required is not None:
            context["required_state"] = required
        super().__init__(message, **context)


class PreconditionFailed(PipelineError):
    status_code = status.HTTP_412_PRECONDITION_FAILED
