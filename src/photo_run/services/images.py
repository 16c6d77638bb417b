"""Image upload validation and data URL helpers."""

import base64
import binascii
import re

from photo_run.domain.errors import InvalidImageDataError, WorkflowValidationError
from photo_run.domain.sessions import ImageUpload

NOT_AN_IMAGE_MESSAGE = "Por favor, envie apenas arquivos de imagem (JPG, PNG, HEIC)."

_DATA_URL_PATTERN = re.compile(
    r"^data:(?P<mime>[a-zA-Z0-9]+/[a-zA-Z0-9.+-]+);base64,(?P<data>.+)$", re.DOTALL
)
_GENERIC_TYPES = {"", "application/octet-stream"}


def build_upload(
    content: bytes,
    declared_mime_type: str | None,
    filename: str | None,
    max_bytes: int,
) -> ImageUpload:
    """Validate raw upload bytes and wrap them as an image upload."""
    if not content:
        raise WorkflowValidationError("The uploaded file is empty.")
    ensure_within_limit(len(content), max_bytes)
    mime_type = (declared_mime_type or "").split(";")[0].strip().lower()
    if mime_type in _GENERIC_TYPES:
        mime_type = detect_mime_type(content)
    if not mime_type.startswith("image/"):
        raise WorkflowValidationError(NOT_AN_IMAGE_MESSAGE)
    return ImageUpload(content=content, mime_type=mime_type, filename=filename)


def ensure_within_limit(size: int, max_bytes: int) -> None:
    """Reject uploads larger than the configured limit."""
    if size > max_bytes:
        raise WorkflowValidationError(
            f"The uploaded file exceeds the {max_bytes} byte limit."
        )


def to_data_url(content: bytes, mime_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL."""
    resolved = mime_type or detect_mime_type(content)
    encoded = base64.b64encode(content).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def parse_data_url(data_url: str) -> tuple[bytes, str]:
    """Split a base64 data URL into raw bytes and its MIME type."""
    match = _DATA_URL_PATTERN.match(data_url)
    if match is None:
        raise InvalidImageDataError("Image data URL is malformed")
    try:
        content = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageDataError("Image data URL is not valid base64") from exc
    return content, match.group("mime")


def detect_mime_type(content: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    if content[4:8] == b"ftyp" and content[8:12] in {b"heic", b"heix", b"mif1"}:
        return "image/heic"
    return "image/jpeg"


def extension_for(mime_type: str) -> str:
    """File extension used when serving an image for download."""
    return {
        "image/png": "png",
        "image/webp": "webp",
        "image/heic": "heic",
    }.get(mime_type, "jpg")
