"""
Canonical data shapes, shared truth for typing/validation between layers.

Typical contents:
- ConversationTurn (role, content) and the Role enum.
- LLMSettings (model, temperature, max_tokens).
- InboundMessage / MediaAttachment handed in by a transport.
- FailureKind, the structured classification of a provider failure.

Testing: Trivial; mostly types. `ConversationTurn.from_dict` carries the
validation used when reading the history artifact.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class FailureKind(str, Enum):
    QUOTA = "quota"
    CREDENTIALS_MISSING = "credentials_missing"
    TIMEOUT = "timeout"
    HARD = "hard"


class ImageEditOption(str, Enum):
    BW = "bw"
    CARTOON = "cartoon"
    COLORIZE = "colorize"
    ENHANCE = "enhance"


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: object) -> ConversationTurn:
        """Build a turn from its JSON shape; raises ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("turn must be an object")
        content = data.get("content")
        if not isinstance(content, str):
            raise ValueError("turn content must be a string")
        return cls(role=Role(data.get("role")), content=content)


@dataclass
class LLMSettings:
    model: str
    temperature: float = 0.4
    max_tokens: int = 400


@dataclass(frozen=True)
class MediaAttachment:
    data: bytes
    mime_type: str

    @property
    def is_image(self) -> bool:
        return (self.mime_type or "").startswith("image")


@dataclass(frozen=True)
class InboundMessage:
    sender_id: str
    body: str = ""
    media: Optional[MediaAttachment] = None
