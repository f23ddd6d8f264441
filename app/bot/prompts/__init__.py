"""Facade over the prompt modules used by the controller and dispatcher."""

from __future__ import annotations

from ..models import ConversationTurn, ImageEditOption
from . import chat
from . import image as _image
from .common import assemble as _assemble


class DefaultPromptFactory:
    def __init__(self, system_prompt: str):
        self.system_prompt = system_prompt

    # CHAT
    def build_system(self) -> str:
        return self.system_prompt

    def assemble(self, *, history: list[ConversationTurn]) -> list[dict[str, str]]:
        return _assemble(history=history)

    # IMAGES
    def image_edit_instruction(
        self, option: ImageEditOption | str, extra: str = ""
    ) -> str:
        return _image.edit_instruction(option, extra)

    def style_instruction(self, description: str) -> str:
        return _image.style_instruction(description)


__all__ = ["DefaultPromptFactory", "chat"]
