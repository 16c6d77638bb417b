"""Pydantic models for the HTTP API."""

from uuid import UUID

from pydantic import BaseModel, Field

from photo_run.domain.catalog import AspectRatio, EnhancementOption, FoodCategory
from photo_run.domain.sessions import PaymentStatus, Session, WorkflowStage


class EnhancementView(BaseModel):
    """Enhancement option with its selection state."""

    id: str
    label: str
    selected: bool


class CatalogView(BaseModel):
    """Choices offered by the configuration and payment steps."""

    categories: list[FoodCategory]
    aspect_ratios: list[AspectRatio]
    default_aspect_ratio: AspectRatio
    enhancements: list[EnhancementView]
    pix_key: str
    payment_amount: str


class SessionView(BaseModel):
    """Client-facing snapshot of a workflow session."""

    id: UUID
    stage: WorkflowStage
    payment_status: PaymentStatus
    payment_error: str | None = None
    category: FoodCategory | None = None
    aspect_ratio: AspectRatio
    enhancements: list[EnhancementView]
    instructions: str
    has_image: bool
    has_receipt: bool
    is_processing: bool
    is_complete: bool
    prompt: str
    result_image_url: str | None = None
    error_notice: str | None = None

    @classmethod
    def from_session(cls, session_id: UUID, session: Session) -> "SessionView":
        return cls(
            id=session_id,
            stage=session.stage,
            payment_status=session.payment_status,
            payment_error=session.payment_error,
            category=session.category,
            aspect_ratio=session.aspect_ratio,
            enhancements=[_enhancement_view(option) for option in session.enhancements],
            instructions=session.instructions,
            has_image=session.source_image is not None,
            has_receipt=session.receipt is not None,
            is_processing=session.is_processing,
            is_complete=session.is_complete,
            prompt=session.prompt,
            result_image_url=session.result.image_data_url if session.result else None,
            error_notice=session.error_notice,
        )


class ConfigurationUpdate(BaseModel):
    """Partial configuration update; omitted fields stay unchanged."""

    category: FoodCategory | None = None
    aspect_ratio: AspectRatio | None = None
    instructions: str | None = Field(default=None, max_length=2000)
    enhancements: dict[str, bool] | None = None


class RefineRequest(BaseModel):
    """Follow-up edit instruction for a completed result."""

    instruction: str = Field(min_length=1, max_length=2000)


class ServiceFailureView(BaseModel):
    """Body returned when an external call failed and the session recovered."""

    detail: str
    session: SessionView | None = None


def _enhancement_view(option: EnhancementOption) -> EnhancementView:
    return EnhancementView(id=option.id, label=option.label, selected=option.selected)
