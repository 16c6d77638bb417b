"""Models for image generation responses."""

from pydantic import BaseModel


class InlineImage(BaseModel):
    """Inline image payload returned by the generation service."""

    mime_type: str | None = None
    data: str | None = None


class ResponsePart(BaseModel):
    """One part of a generation response."""

    text: str | None = None
    inline_data: InlineImage | None = None


class EditResponse(BaseModel):
    """Flattened generation response."""

    parts: list[ResponsePart] = []


class GeneratedImage(BaseModel):
    """Displayable image returned to the workflow."""

    data_url: str
    mime_type: str
