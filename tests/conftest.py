"""Shared test fixtures."""

import base64
from dataclasses import dataclass, field

import pytest

from photo_run.adapters.memory_session_repository import InMemorySessionRepository
from photo_run.config import Settings
from photo_run.containers import AppContainer
from photo_run.domain.sessions import ImageUpload
from photo_run.services.generation import ImageEditor, ImageGenerationClient
from photo_run.services.payments import PaymentVerifier, ReceiptClassifier
from photo_run.services.workflow import WorkflowController

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"source-dish"
JPEG_BYTES = b"\xff\xd8\xff" + b"receipt-photo"
GENERATED_BYTES = b"\x89PNG\r\n\x1a\n" + b"editorial-dish"
GENERATED_DATA_URL = (
    "data:image/png;base64," + base64.b64encode(GENERATED_BYTES).decode("utf-8")
)


def image_part(content: bytes = GENERATED_BYTES, mime_type: str = "image/png") -> dict:
    return {
        "inline_data": {
            "mime_type": mime_type,
            "data": base64.b64encode(content).decode("utf-8"),
        }
    }


def source_upload() -> ImageUpload:
    return ImageUpload(content=PNG_BYTES, mime_type="image/png", filename="dish.png")


def receipt_upload() -> ImageUpload:
    return ImageUpload(
        content=JPEG_BYTES, mime_type="image/jpeg", filename="receipt.jpg"
    )


@dataclass
class FakeReceiptClassifier(ReceiptClassifier):
    """Fake classifier returning a fixed verdict or raising."""

    payload: dict[str, object] = field(
        default_factory=lambda: {"isValid": True, "reason": "ok"}
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def classify(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls.append(
            {"model": model, "image_data_url": image_data_url, "prompt": prompt}
        )
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FakeImageEditor(ImageEditor):
    """Fake image editor replaying queued responses.

    Each queued item is either a response dict or an exception to raise. When
    the queue is empty a single generated image part is returned.
    """

    responses: list[object] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def edit(
        self, *, model: str, image_bytes: bytes, mime_type: str, prompt: str
    ) -> dict[str, object]:
        self.calls.append(
            {
                "model": model,
                "image_bytes": image_bytes,
                "mime_type": mime_type,
                "prompt": prompt,
            }
        )
        if not self.responses:
            return {"parts": [image_part()]}
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def build_workflow(
    classifier: FakeReceiptClassifier | None = None,
    editor: FakeImageEditor | None = None,
) -> WorkflowController:
    return WorkflowController(
        repository=InMemorySessionRepository(),
        payment_verifier=PaymentVerifier(
            client=classifier or FakeReceiptClassifier(),
            model="gpt-5.2",
            reasoning_effort="low",
            store=False,
        ),
        generation_client=ImageGenerationClient(
            editor=editor or FakeImageEditor(),
            model="gemini-2.5-flash-image",
        ),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="openai-key",
        gemini_api_key="gemini-key",
        environment="test",
    )


@pytest.fixture
def receipt_classifier() -> FakeReceiptClassifier:
    return FakeReceiptClassifier()


@pytest.fixture
def image_editor() -> FakeImageEditor:
    return FakeImageEditor()


@pytest.fixture
def container(
    settings: Settings,
    receipt_classifier: FakeReceiptClassifier,
    image_editor: FakeImageEditor,
) -> AppContainer:
    workflow = build_workflow(receipt_classifier, image_editor)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        payment_verifier=workflow.payment_verifier,
        generation_client=workflow.generation_client,
        workflow=workflow,
        close_resources=close_resources,
    )
