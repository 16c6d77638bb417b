"""Workflow error hierarchy."""


class WorkflowError(Exception):
    """Base error for the photo workflow."""


class SessionNotFoundError(WorkflowError):
    """Raised when a session id is unknown."""


class WorkflowValidationError(WorkflowError):
    """Input rejected before any external call is made."""


class InvalidTransitionError(WorkflowError):
    """Action not allowed from the current workflow stage."""


class ServiceFailureError(WorkflowError):
    """An external service call failed; the session was restored.

    ``notice`` is the user-facing message, ``cause`` the underlying error.
    """

    def __init__(self, notice: str, cause: Exception | None = None) -> None:
        super().__init__(notice)
        self.notice = notice
        self.cause = cause


class GenerationFailedError(ServiceFailureError):
    """Image generation failed after payment."""


class RefineFailedError(ServiceFailureError):
    """Refining a completed result failed."""


class NoImageProducedError(RuntimeError):
    """The generation service answered without any image part."""


class InvalidImageDataError(ValueError):
    """Stored image data could not be decoded for re-submission."""
