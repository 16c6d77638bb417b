"""Image generation and refinement through an image editing model."""

import logging
from dataclasses import dataclass
from typing import Protocol

from photo_run.domain.errors import NoImageProducedError
from photo_run.domain.generation import EditResponse, GeneratedImage
from photo_run.domain.sessions import GenerationResult, ImageUpload
from photo_run.services.images import parse_data_url
from photo_run.services.prompts import compose_refine_prompt

logger = logging.getLogger(__name__)

_DEFAULT_RESULT_MIME = "image/png"


class ImageEditor(Protocol):
    """Interface for a multimodal image editing model."""

    async def edit(
        self, *, model: str, image_bytes: bytes, mime_type: str, prompt: str
    ) -> dict[str, object]:
        """Send an image and prompt, return the flattened response parts."""


@dataclass
class ImageGenerationClient:
    """Generates enhanced photos and refines previous results."""

    editor: ImageEditor
    model: str

    async def generate(self, source: ImageUpload, prompt: str) -> GeneratedImage:
        """Enhance a source photo according to the prompt."""
        logger.info(
            "Sending generation request: model=%s mime_type=%s",
            self.model,
            source.mime_type,
        )
        raw = await self.editor.edit(
            model=self.model,
            image_bytes=source.content,
            mime_type=source.mime_type,
            prompt=prompt,
        )
        image = _first_image(raw)
        if image is None:
            raise NoImageProducedError(
                "A IA não retornou uma imagem válida. "
                "Tente ajustar o tipo de alimento."
            )
        return image

    async def refine(
        self, previous: GenerationResult, instruction: str
    ) -> GeneratedImage:
        """Apply a follow-up edit instruction to a previous result."""
        image_bytes, mime_type = parse_data_url(previous.image_data_url)
        logger.info("Sending refine request: model=%s", self.model)
        raw = await self.editor.edit(
            model=self.model,
            image_bytes=image_bytes,
            mime_type=mime_type,
            prompt=compose_refine_prompt(instruction),
        )
        image = _first_image(raw)
        if image is None:
            raise NoImageProducedError("Falha ao refinar a imagem.")
        return image


def _first_image(raw: dict[str, object]) -> GeneratedImage | None:
    """Return the first inline image in a response as a data URL."""
    response = EditResponse.model_validate(raw)
    for part in response.parts:
        if part.inline_data and part.inline_data.data:
            mime_type = part.inline_data.mime_type or _DEFAULT_RESULT_MIME
            return GeneratedImage(
                data_url=f"data:{mime_type};base64,{part.inline_data.data}",
                mime_type=mime_type,
            )
    return None
