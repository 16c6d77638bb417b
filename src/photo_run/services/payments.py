"""Payment receipt verification using an LLM classifier."""

import logging
from dataclasses import dataclass
from typing import Protocol

from photo_run.domain.payments import PaymentVerdict
from photo_run.domain.sessions import ImageUpload
from photo_run.services.images import to_data_url

logger = logging.getLogger(__name__)

TECHNICAL_ERROR_REASON = (
    "Erro técnico ao analisar o comprovante. Tente enviar uma foto mais nítida."
)

PAYMENT_VERDICT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "isValid": {"type": "boolean"},
        "reason": {"type": "string"},
    },
    "required": ["isValid", "reason"],
    "additionalProperties": False,
}


class ReceiptClassifier(Protocol):
    """Interface for LLM receipt classification."""

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
        """Return structured classification data."""


@dataclass
class PaymentVerifier:
    """Service that asks a classifier whether a receipt proves payment."""

    client: ReceiptClassifier
    model: str
    reasoning_effort: str | None
    store: bool
    expected_amount: str = "R$ 1,00"

    async def verify(self, receipt: ImageUpload) -> PaymentVerdict:
        """Classify a receipt image; failures come back as an invalid verdict."""
        try:
            raw = await self.client.classify(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                image_data_url=to_data_url(receipt.content, receipt.mime_type),
                schema=PAYMENT_VERDICT_SCHEMA,
                prompt=_build_prompt(self.expected_amount),
            )
            return PaymentVerdict.model_validate(raw)
        except Exception:
            logger.exception(
                "Payment validation failed",
                extra={"mime_type": receipt.mime_type},
            )
            return PaymentVerdict(is_valid=False, reason=TECHNICAL_ERROR_REASON)


def _build_prompt(expected_amount: str) -> str:
    """Instruction asking for a strict JSON verdict about the receipt."""
    value = expected_amount.removeprefix("R$").strip()
    dotted = value.replace(",", ".")
    return (
        "Analyze this image. It is supposed to be a payment receipt "
        "(Pix confirmation) from a banking app.\n"
        "Task:\n"
        "1. Identify if it looks like a payment receipt.\n"
        f'2. Search specifically for a transaction value of exactly "{value}" '
        f'or "{dotted}" or "{expected_amount}".\n'
        "Return a JSON object with:\n"
        f"- isValid: boolean (true only if it is a receipt AND contains the value "
        f"{value})\n"
        "- reason: string (short explanation in Portuguese)"
    )
