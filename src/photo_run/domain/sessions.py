"""Domain models for the enhancement workflow session."""

from dataclasses import dataclass, field
from enum import StrEnum

from photo_run.domain.catalog import (
    DEFAULT_ASPECT_RATIO,
    AspectRatio,
    EnhancementOption,
    FoodCategory,
    default_enhancements,
)


class WorkflowStage(StrEnum):
    """Stages of the upload → pay → generate lifecycle."""

    EMPTY = "EMPTY"
    IMAGE_SELECTED = "IMAGE_SELECTED"
    CONFIGURING = "CONFIGURING"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAYMENT_VALIDATING = "PAYMENT_VALIDATING"
    PAID = "PAID"
    GENERATING = "GENERATING"
    COMPLETE = "COMPLETE"
    REFINING = "REFINING"


PROCESSING_STAGES = frozenset(
    {
        WorkflowStage.PAYMENT_VALIDATING,
        WorkflowStage.GENERATING,
        WorkflowStage.REFINING,
    }
)


class PaymentStatus(StrEnum):
    """Payment sub-state of a session."""

    IDLE = "IDLE"
    PENDING = "PENDING"
    VALIDATING = "VALIDATING"
    PAID = "PAID"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ImageUpload:
    """A user-supplied image file."""

    content: bytes = field(repr=False)
    mime_type: str
    filename: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Generated image as a data URL plus the prompt that produced it."""

    image_data_url: str = field(repr=False)
    prompt: str


@dataclass(frozen=True)
class Session:
    """All workflow state for one browser tab."""

    stage: WorkflowStage = WorkflowStage.EMPTY
    source_image: ImageUpload | None = None
    category: FoodCategory | None = None
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    enhancements: tuple[EnhancementOption, ...] = field(
        default_factory=default_enhancements
    )
    instructions: str = ""
    payment_status: PaymentStatus = PaymentStatus.IDLE
    receipt: ImageUpload | None = None
    payment_error: str | None = None
    prompt: str = ""
    result: GenerationResult | None = None
    error_notice: str | None = None

    @property
    def is_processing(self) -> bool:
        return self.stage in PROCESSING_STAGES

    @property
    def is_complete(self) -> bool:
        return self.stage is WorkflowStage.COMPLETE


def initial_session() -> Session:
    """Return a fresh session with default values."""
    return Session()
