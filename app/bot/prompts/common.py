"""Shared prompt helpers used across prompt modules."""

from __future__ import annotations

from ..models import ConversationTurn


def assemble(*, history: list[ConversationTurn]) -> list[dict[str, str]]:
    """Chat payload for the provider: prior turns, oldest first.

    The system instruction is passed separately; the newest user turn is
    already the last element of `history`.
    """
    return [turn.to_dict() for turn in history]
