"""Image edit instructions per option."""

from __future__ import annotations

from ..models import ImageEditOption

_BASE_PROMPTS = {
    ImageEditOption.BW: (
        "Convert this photo to high-quality black and white, enhance clarity and contrast."
    ),
    ImageEditOption.ENHANCE: (
        "Enhance the photo: increase resolution, sharpen details, remove noise, "
        "keep natural look."
    ),
    ImageEditOption.CARTOON: (
        "Turn this photo into a high-quality cartoon / illustration, vibrant colors, "
        "smooth lines."
    ),
    ImageEditOption.COLORIZE: (
        "Colorize this black and white photo realistically and enhance details."
    ),
}
DEFAULT_PROMPT = "Enhance the photo quality and resolution."


def edit_instruction(option: ImageEditOption | str, extra: str = "") -> str:
    try:
        prompt = _BASE_PROMPTS[ImageEditOption(option)]
    except ValueError:
        prompt = DEFAULT_PROMPT
    extra = (extra or "").strip()
    if extra:
        prompt += f" Also, {extra}"
    return prompt


def style_instruction(description: str) -> str:
    return f"Apply this style to the photo: {description.strip()}"
