"""Tests for the enhancement catalog."""

import pytest

from photo_run.domain.catalog import (
    AspectRatio,
    default_enhancements,
    selected_labels,
    set_enhancements,
    toggle_enhancement,
)
from photo_run.domain.errors import WorkflowValidationError


def test_default_enhancements_are_all_selected_with_unique_ids() -> None:
    options = default_enhancements()

    assert len(options) == 6
    assert all(option.selected for option in options)
    assert len({option.id for option in options}) == len(options)


def test_toggle_enhancement_keeps_catalog_order() -> None:
    options = toggle_enhancement(default_enhancements(), "background")

    assert [option.id for option in options] == [
        option.id for option in default_enhancements()
    ]
    assert not next(o for o in options if o.id == "background").selected
    assert toggle_enhancement(options, "background") == default_enhancements()


def test_set_enhancements_applies_only_given_ids() -> None:
    options = set_enhancements(
        default_enhancements(), {"lighting": False, "texture": False}
    )

    assert selected_labels(options) == [
        "Cores mais vivas e naturais",
        "Fundo sofisticado e desfocado",
        "Estilo editorial gastronômico",
        "Manter o produto sem alterações estruturais",
    ]


def test_unknown_enhancement_is_rejected() -> None:
    with pytest.raises(WorkflowValidationError):
        toggle_enhancement(default_enhancements(), "sparkles")


def test_aspect_ratio_values() -> None:
    assert [ratio.value for ratio in AspectRatio] == ["1:1", "4:5", "9:16", "16:9"]
