"""Prompt composition for the image generation service."""

import logging
from dataclasses import dataclass

from photo_run.domain.catalog import (
    AspectRatio,
    EnhancementOption,
    FoodCategory,
    selected_labels,
)
from photo_run.domain.sessions import Session

logger = logging.getLogger(__name__)

BASE_DIRECTIVE = (
    "Transforme esta fotografia de alimento em uma imagem ultra profissional em "
    "estilo editorial gastronômico. Aplique iluminação de estúdio suave e difusa, "
    "realçando textura, brilho e frescor do alimento. Melhore as cores para "
    "torná-las mais vivas, naturais e apetitosas. Ajuste o enquadramento para "
    "composição perfeita, seguindo regras de fotografia gastronômica (como regra "
    "dos terços e foco seletivo). Crie um cenário sofisticado com ambientação "
    "realista, usando fundo com profundidade, elementos de mesa minimalistas e "
    "tons harmônicos que valorizem o prato. Aplique correção de perspectiva, "
    "nitidez avançada e tratamento premium. Mantenha o prato como protagonista "
    "absoluto. Resultado final: fotografia digna de revista gourmet, extremamente "
    "nítida, estética, elegante e profissional."
)

_CLOSING_INSTRUCTION = (
    "Instruction: Generate a high-quality, photorealistic image based on the input "
    "image and the description above. Ensure the main food item remains the "
    "protagonist and looks exactly as described. Pay special attention to the "
    "user's custom instructions if provided."
)

_FALLBACK_CATEGORY = "alimento"


@dataclass(frozen=True)
class PromptSelections:
    """User choices that feed the generation prompt."""

    category: FoodCategory | None
    aspect_ratio: AspectRatio
    enhancements: tuple[EnhancementOption, ...]
    instructions: str = ""

    @classmethod
    def from_session(cls, session: Session) -> "PromptSelections":
        return cls(
            category=session.category,
            aspect_ratio=session.aspect_ratio,
            enhancements=session.enhancements,
            instructions=session.instructions,
        )


def compose_prompt(selections: PromptSelections) -> str:
    """Build the generation prompt for the given selections.

    The result depends only on ``selections``: enhancement labels appear in
    catalog order and the user-instructions line is present only when the
    instructions are not blank.
    """
    category = selections.category.value if selections.category else ""
    enhancements = ", ".join(selected_labels(selections.enhancements))
    lines = [
        f"[CONTEXTO]: O usuário enviou uma foto de {category or _FALLBACK_CATEGORY}.",
        f"[PROMPT PRINCIPAL]: {BASE_DIRECTIVE}",
        "[DETALHES ESPECÍFICOS]:",
        f"- Tipo de Alimento: {category}",
        f"- Melhorias Solicitadas: {enhancements}",
        f"- Proporção Final: {selections.aspect_ratio.value}",
    ]
    instructions = selections.instructions.strip()
    if instructions:
        lines.append(f"- INSTRUÇÕES EXTRAS DO USUÁRIO: {instructions}")
    lines.append("")
    lines.append(_CLOSING_INSTRUCTION)
    prompt = "\n".join(lines)
    logger.debug("Composed generation prompt: %s", prompt)
    return prompt


def compose_refine_prompt(instruction: str) -> str:
    """Wrap a follow-up edit instruction for an already generated image."""
    return (
        f'Edit this image based on the following instruction: "{instruction.strip()}". '
        "Maintain the high-quality, photorealistic editorial food photography "
        "style. Do not change the aspect ratio."
    )
