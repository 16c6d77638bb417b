"""Catalog of food categories, aspect ratios and enhancement options."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum

from photo_run.domain.errors import WorkflowValidationError


class FoodCategory(StrEnum):
    """Food categories offered in the configuration step."""

    PIZZA = "Pizza"
    BURGER = "Hambúrguer"
    SUSHI = "Sushi"
    DESSERT = "Doces e sobremesas"
    DRINKS = "Bebidas"
    HOT_DISH = "Pratos quentes"
    FAST_FOOD = "Fast food"
    PASTA = "Massas"
    ARTISAN = "Lanches artesanais"
    PASTRY = "Pastelaria"


class AspectRatio(StrEnum):
    """Target aspect ratios for the generated image."""

    SQUARE = "1:1"
    PORTRAIT = "4:5"
    STORY = "9:16"
    LANDSCAPE = "16:9"


DEFAULT_ASPECT_RATIO = AspectRatio.STORY


@dataclass(frozen=True)
class EnhancementOption:
    """Toggleable visual enhancement."""

    id: str
    label: str
    selected: bool = True


DEFAULT_ENHANCEMENTS: tuple[EnhancementOption, ...] = (
    EnhancementOption("lighting", "Iluminação profissional de estúdio"),
    EnhancementOption("colors", "Cores mais vivas e naturais"),
    EnhancementOption("background", "Fundo sofisticado e desfocado"),
    EnhancementOption("editorial", "Estilo editorial gastronômico"),
    EnhancementOption("texture", "Realce de textura, brilho e frescor"),
    EnhancementOption("structure", "Manter o produto sem alterações estruturais"),
)


def default_enhancements() -> tuple[EnhancementOption, ...]:
    """Return the catalog options with their default selection state."""
    return DEFAULT_ENHANCEMENTS


def toggle_enhancement(
    options: tuple[EnhancementOption, ...], option_id: str
) -> tuple[EnhancementOption, ...]:
    """Flip one option, keeping catalog order."""
    _ensure_known(options, {option_id})
    return tuple(
        replace(option, selected=not option.selected)
        if option.id == option_id
        else option
        for option in options
    )


def set_enhancements(
    options: tuple[EnhancementOption, ...], selection: Mapping[str, bool]
) -> tuple[EnhancementOption, ...]:
    """Apply explicit selection flags, keeping catalog order."""
    _ensure_known(options, set(selection))
    return tuple(
        replace(option, selected=bool(selection[option.id]))
        if option.id in selection
        else option
        for option in options
    )


def selected_labels(options: tuple[EnhancementOption, ...]) -> list[str]:
    """Labels of the selected options in catalog order."""
    return [option.label for option in options if option.selected]


def _ensure_known(options: tuple[EnhancementOption, ...], ids: set[str]) -> None:
    known = {option.id for option in options}
    unknown = sorted(ids - known)
    if unknown:
        raise WorkflowValidationError(
            f"Unknown enhancement option: {', '.join(unknown)}"
        )
