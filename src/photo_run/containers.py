"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from photo_run.adapters.gemini_image_editor import GeminiImageEditor
from photo_run.adapters.memory_session_repository import InMemorySessionRepository
from photo_run.adapters.openai_receipt_classifier import OpenAIReceiptClassifier
from photo_run.config import Settings
from photo_run.services.generation import ImageGenerationClient
from photo_run.services.payments import PaymentVerifier
from photo_run.services.workflow import WorkflowController


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    payment_verifier: PaymentVerifier
    generation_client: ImageGenerationClient
    workflow: WorkflowController
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    receipt_classifier = OpenAIReceiptClassifier.create(
        resolved_settings.openai_api_key
    )
    payment_verifier = PaymentVerifier(
        client=receipt_classifier,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        expected_amount=resolved_settings.payment_amount,
    )
    generation_client = ImageGenerationClient(
        editor=GeminiImageEditor.create(resolved_settings.gemini_api_key),
        model=resolved_settings.gemini_image_model,
    )
    workflow = WorkflowController(
        repository=InMemorySessionRepository(),
        payment_verifier=payment_verifier,
        generation_client=generation_client,
    )

    async def close_resources() -> None:
        await receipt_classifier.close()

    return AppContainer(
        settings=resolved_settings,
        payment_verifier=payment_verifier,
        generation_client=generation_client,
        workflow=workflow,
        close_resources=close_resources,
    )
