"""State machine driving the upload → pay → generate workflow."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from photo_run.domain.catalog import AspectRatio, FoodCategory
from photo_run.domain.catalog import set_enhancements as apply_enhancements
from photo_run.domain.catalog import toggle_enhancement as flip_enhancement
from photo_run.domain.errors import (
    GenerationFailedError,
    InvalidTransitionError,
    RefineFailedError,
    SessionNotFoundError,
    WorkflowValidationError,
)
from photo_run.domain.sessions import (
    GenerationResult,
    ImageUpload,
    PaymentStatus,
    Session,
    WorkflowStage,
    initial_session,
)
from photo_run.services.generation import ImageGenerationClient
from photo_run.services.payments import PaymentVerifier
from photo_run.services.prompts import (
    PromptSelections,
    compose_prompt,
    compose_refine_prompt,
)

logger = logging.getLogger(__name__)

PAYMENT_NOT_FOUND_REASON = (
    "Não foi possível identificar o pagamento de R$ 1,00. Tente novamente."
)
GENERATION_FAILED_NOTICE = (
    "Ocorreu um erro ao processar a imagem com a IA. "
    "Verifique sua conexão ou tente outra foto."
)
REFINE_FAILED_NOTICE = "Erro ao refinar a imagem. Tente novamente."

_CONFIGURABLE = frozenset({WorkflowStage.IMAGE_SELECTED, WorkflowStage.CONFIGURING})


class SessionRepository(Protocol):
    """Storage interface for workflow sessions."""

    def create(self, session: Session) -> UUID:
        """Store a new session and return its id."""

    def get(self, session_id: UUID) -> Session | None:
        """Return a session by id, if present."""

    def save(self, session_id: UUID, session: Session) -> None:
        """Replace the stored session."""

    def delete(self, session_id: UUID) -> None:
        """Drop a session."""


@dataclass
class WorkflowController:
    """Applies user actions to a session, one whole-session replacement each."""

    repository: SessionRepository
    payment_verifier: PaymentVerifier
    generation_client: ImageGenerationClient

    def start_session(self) -> tuple[UUID, Session]:
        """Create a session with default values."""
        session = initial_session()
        session_id = self.repository.create(session)
        logger.info("Session started: session_id=%s", session_id)
        return session_id, session

    def get_session(self, session_id: UUID) -> Session:
        """Return the current session or raise if unknown."""
        session = self.repository.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def select_image(self, session_id: UUID, upload: ImageUpload) -> Session:
        """Replace the source photo and drop any result or payment progress."""
        session = self.get_session(session_id)
        return self._commit(
            session_id,
            replace(
                session,
                stage=WorkflowStage.IMAGE_SELECTED,
                source_image=upload,
                payment_status=PaymentStatus.IDLE,
                receipt=None,
                payment_error=None,
                prompt="",
                result=None,
                error_notice=None,
            ),
        )

    def configure(  # noqa: PLR0913
        self,
        session_id: UUID,
        *,
        category: FoodCategory | None = None,
        aspect_ratio: AspectRatio | None = None,
        instructions: str | None = None,
        enhancements: Mapping[str, bool] | None = None,
    ) -> Session:
        """Apply configuration changes; omitted fields are left as they are."""
        session = self._require_stage(session_id, _CONFIGURABLE, "configure")
        changes: dict[str, object] = {}
        if category is not None:
            changes["category"] = category
        if aspect_ratio is not None:
            changes["aspect_ratio"] = aspect_ratio
        if instructions is not None:
            changes["instructions"] = instructions
        if enhancements is not None:
            changes["enhancements"] = apply_enhancements(
                session.enhancements, enhancements
            )
        return self._commit(
            session_id,
            replace(session, stage=WorkflowStage.CONFIGURING, **changes),
        )

    def toggle_enhancement(self, session_id: UUID, option_id: str) -> Session:
        """Flip a single enhancement option."""
        session = self._require_stage(session_id, _CONFIGURABLE, "configure")
        return self._commit(
            session_id,
            replace(
                session,
                stage=WorkflowStage.CONFIGURING,
                enhancements=flip_enhancement(session.enhancements, option_id),
            ),
        )

    def submit_configuration(self, session_id: UUID) -> Session:
        """Lock in the configuration and open the payment step."""
        session = self._require_stage(session_id, _CONFIGURABLE, "submit")
        if session.source_image is None:
            raise WorkflowValidationError("Envie uma foto antes de continuar.")
        if session.category is None:
            raise WorkflowValidationError("Escolha o tipo de alimento.")
        return self._commit(
            session_id,
            replace(
                session,
                stage=WorkflowStage.PAYMENT_PENDING,
                payment_status=PaymentStatus.PENDING,
            ),
        )

    def cancel_payment(self, session_id: UUID) -> Session:
        """Close the payment step and return to configuration."""
        session = self._require_stage(
            session_id, {WorkflowStage.PAYMENT_PENDING}, "cancel payment"
        )
        return self._commit(
            session_id,
            replace(
                session,
                stage=WorkflowStage.CONFIGURING,
                payment_status=PaymentStatus.IDLE,
                payment_error=None,
            ),
        )

    def upload_receipt(self, session_id: UUID, upload: ImageUpload) -> Session:
        """Attach a proof-of-payment image."""
        session = self._require_stage(
            session_id, {WorkflowStage.PAYMENT_PENDING}, "upload a receipt"
        )
        return self._commit(
            session_id, replace(session, receipt=upload, payment_error=None)
        )

    async def confirm_payment(self, session_id: UUID) -> Session:
        """Verify the receipt; on success generation starts right away."""
        session = self._require_stage(
            session_id, {WorkflowStage.PAYMENT_PENDING}, "confirm payment"
        )
        if session.receipt is None:
            raise WorkflowValidationError("Envie o comprovante de pagamento.")
        validating = self._commit(
            session_id,
            replace(
                session,
                stage=WorkflowStage.PAYMENT_VALIDATING,
                payment_status=PaymentStatus.VALIDATING,
                payment_error=None,
            ),
        )

        verdict = await self.payment_verifier.verify(session.receipt)

        current = self._unchanged_since(session_id, validating)
        if current is None:
            return self.get_session(session_id)
        if not verdict.is_valid:
            logger.info("Payment receipt rejected: session_id=%s", session_id)
            return self._commit(
                session_id,
                replace(
                    current,
                    stage=WorkflowStage.PAYMENT_PENDING,
                    payment_status=PaymentStatus.PENDING,
                    payment_error=verdict.reason.strip() or PAYMENT_NOT_FOUND_REASON,
                ),
            )
        self._commit(
            session_id,
            replace(
                current,
                stage=WorkflowStage.PAID,
                payment_status=PaymentStatus.PAID,
            ),
        )
        return await self.generate(session_id)

    async def generate(self, session_id: UUID) -> Session:
        """Compose the prompt and request the enhanced photo."""
        session = self._require_stage(session_id, {WorkflowStage.PAID}, "generate")
        if session.payment_status is not PaymentStatus.PAID:
            raise WorkflowValidationError("Pagamento necessário.")
        if session.source_image is None:
            raise WorkflowValidationError("Envie uma foto antes de continuar.")
        prompt = compose_prompt(PromptSelections.from_session(session))
        generating = self._commit(
            session_id,
            replace(
                session,
                stage=WorkflowStage.GENERATING,
                prompt=prompt,
                error_notice=None,
            ),
        )

        try:
            image = await self.generation_client.generate(session.source_image, prompt)
        except Exception as exc:
            logger.exception(
                "Image generation failed", extra={"session_id": str(session_id)}
            )
            current = self._unchanged_since(session_id, generating)
            if current is None:
                return self.get_session(session_id)
            self._commit(
                session_id,
                replace(
                    current,
                    stage=WorkflowStage.PAID,
                    error_notice=GENERATION_FAILED_NOTICE,
                ),
            )
            raise GenerationFailedError(GENERATION_FAILED_NOTICE, exc) from exc

        current = self._unchanged_since(session_id, generating)
        if current is None:
            return self.get_session(session_id)
        return self._commit(
            session_id,
            replace(
                current,
                stage=WorkflowStage.COMPLETE,
                result=GenerationResult(image_data_url=image.data_url, prompt=prompt),
            ),
        )

    async def refine(self, session_id: UUID, instruction: str) -> Session:
        """Apply a follow-up edit to the current result."""
        session = self._require_stage(
            session_id, {WorkflowStage.COMPLETE}, "refine"
        )
        if session.result is None:
            raise WorkflowValidationError("Nenhum resultado para refinar.")
        if not instruction.strip():
            raise WorkflowValidationError("Descreva o ajuste desejado.")
        refining = self._commit(
            session_id,
            replace(session, stage=WorkflowStage.REFINING, error_notice=None),
        )

        try:
            image = await self.generation_client.refine(session.result, instruction)
        except Exception as exc:
            logger.exception(
                "Image refinement failed", extra={"session_id": str(session_id)}
            )
            current = self._unchanged_since(session_id, refining)
            if current is None:
                return self.get_session(session_id)
            self._commit(
                session_id,
                replace(
                    current,
                    stage=WorkflowStage.COMPLETE,
                    error_notice=REFINE_FAILED_NOTICE,
                ),
            )
            raise RefineFailedError(REFINE_FAILED_NOTICE, exc) from exc

        current = self._unchanged_since(session_id, refining)
        if current is None:
            return self.get_session(session_id)
        return self._commit(
            session_id,
            replace(
                current,
                stage=WorkflowStage.COMPLETE,
                result=GenerationResult(
                    image_data_url=image.data_url,
                    prompt=compose_refine_prompt(instruction),
                ),
            ),
        )

    def reset(self, session_id: UUID) -> Session:
        """Discard everything and start over."""
        self.get_session(session_id)
        return self._commit(session_id, initial_session())

    def end_session(self, session_id: UUID) -> None:
        """Forget a session when its tab goes away."""
        self.get_session(session_id)
        self.repository.delete(session_id)
        logger.info("Session ended: session_id=%s", session_id)

    def _require_stage(
        self, session_id: UUID, allowed: frozenset | set, action: str
    ) -> Session:
        session = self.get_session(session_id)
        if session.stage not in allowed:
            raise InvalidTransitionError(
                f"Cannot {action} while session is {session.stage.value}"
            )
        return session

    def _unchanged_since(self, session_id: UUID, expected: Session) -> Session | None:
        """Return the stored session if nothing replaced it during a call."""
        current = self.repository.get(session_id)
        if current != expected:
            logger.warning(
                "Discarding outcome for a replaced session: session_id=%s",
                session_id,
            )
            return None
        return current

    def _commit(self, session_id: UUID, session: Session) -> Session:
        """Single entry point for storing a session state."""
        self.repository.save(session_id, session)
        logger.info(
            "Session transition: session_id=%s stage=%s",
            session_id,
            session.stage.value,
        )
        return session
