"""
Abstractions for pluggable services. Inversion of control: the controller,
router and dispatcher depend on these protocols, not on the OpenAI SDK or a
particular chat transport. Enables fakes in tests and future swaps.

Common protocols:
- LLMClient.chat(messages, settings, system) -> (reply, meta)
- Transport.reply / reply_image / send_voice
"""

from __future__ import annotations
from typing import Optional, Protocol

from .models import LLMSettings


class LLMClient(Protocol):
    name: str

    def chat(
        self,
        messages: list[dict[str, str]],
        settings: LLMSettings,
        system: Optional[str] = None,
    ) -> tuple[str, dict]: ...


class Transport(Protocol):
    """Outbound side of the chat channel for one inbound message."""

    def reply(self, text: str) -> None: ...

    def reply_image(self, png_bytes: bytes) -> None: ...

    def send_voice(self, ogg_bytes: bytes) -> None: ...


class VoiceSynthesizer(Protocol):
    def __call__(self, text: str) -> bytes: ...


class ImageEditor(Protocol):
    def __call__(self, image_bytes: bytes, mime_type: str, prompt: str) -> bytes: ...
