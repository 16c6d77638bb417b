"""Tests for configuration helpers."""

from photo_run.config import parse_allowed_origins


def test_parse_allowed_origins_defaults_to_any() -> None:
    assert parse_allowed_origins(None) == ["*"]
    assert parse_allowed_origins("  ") == ["*"]
    assert parse_allowed_origins("*") == ["*"]


def test_parse_allowed_origins_splits_list() -> None:
    raw = "https://photorun.app/, https://www.photorun.app,,"

    assert parse_allowed_origins(raw) == [
        "https://photorun.app",
        "https://www.photorun.app",
    ]


def test_settings_defaults(settings) -> None:
    assert settings.gemini_image_model == "gemini-2.5-flash-image"
    assert settings.payment_amount == "R$ 1,00"
    assert settings.max_upload_bytes == 10 * 1024 * 1024
