"""Gemini client for image editing."""

import base64
from dataclasses import dataclass

from google import genai
from google.genai import types

from photo_run.services.generation import ImageEditor


@dataclass
class GeminiImageEditor(ImageEditor):
    """Image editor backed by the Gemini generate_content API."""

    client: genai.Client

    @classmethod
    def create(cls, api_key: str) -> "GeminiImageEditor":
        """Create a Gemini image editor."""
        return cls(client=genai.Client(api_key=api_key))

    async def edit(
        self, *, model: str, image_bytes: bytes, mime_type: str, prompt: str
    ) -> dict[str, object]:
        """Send the image followed by the prompt and flatten the reply."""
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                        types.Part.from_text(text=prompt),
                    ],
                )
            ],
        )
        return {"parts": _flatten_parts(response)}


def _flatten_parts(response: types.GenerateContentResponse) -> list[dict[str, object]]:
    """Convert the first candidate's parts to plain dicts."""
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return []
    parts: list[dict[str, object]] = []
    for part in candidates[0].content.parts or []:
        if part.inline_data is not None and part.inline_data.data:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": part.inline_data.mime_type,
                        "data": base64.b64encode(part.inline_data.data).decode(
                            "utf-8"
                        ),
                    }
                }
            )
        elif part.text:
            parts.append({"text": part.text})
    return parts
