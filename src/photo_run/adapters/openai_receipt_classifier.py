"""Pix receipt classification through the OpenAI Responses API."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from photo_run.services.payments import ReceiptClassifier

VERDICT_FORMAT_NAME = "payment_verdict"


class EmptyVerdictError(RuntimeError):
    """The model finished without producing a payment verdict."""


@dataclass
class OpenAIReceiptClassifier(ReceiptClassifier):
    """Asks an OpenAI vision model whether a receipt image shows the payment.

    The receipt goes first and the instruction after it, and the answer is
    constrained to the verdict schema with strict structured output.
    """

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIReceiptClassifier":
        return cls(client=AsyncOpenAI(api_key=api_key))

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
        """Return the raw verdict object decoded from the model output."""
        request: dict[str, object] = {
            "model": model,
            "input": [_receipt_message(image_data_url, prompt)],
            "text": {"format": _verdict_format(schema)},
            "store": store,
        }
        if reasoning_effort:
            request["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request)
        if not response.output_text:
            raise EmptyVerdictError("OpenAI returned no payment verdict")
        return json.loads(response.output_text)

    async def close(self) -> None:
        await self.client.close()


def _receipt_message(image_data_url: str, prompt: str) -> dict[str, object]:
    return {
        "role": "user",
        "content": [
            {"type": "input_image", "image_url": image_data_url},
            {"type": "input_text", "text": prompt},
        ],
    }


def _verdict_format(schema: dict[str, object]) -> dict[str, object]:
    return {
        "type": "json_schema",
        "name": VERDICT_FORMAT_NAME,
        "strict": True,
        "schema": schema,
    }
