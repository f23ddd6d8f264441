"""Bounded per-user conversation memory with write-through persistence."""

from __future__ import annotations
import threading
from collections import deque
from typing import Deque

from ..models import ConversationTurn, Role
from .session_store import JsonHistoryStore, Sessions

MAX_TURNS = 10


class ConversationMemory:
    """Sole mutator of the session mapping.

    Each user gets a deque(maxlen=max_turns), so appending past the bound
    evicts the oldest turn. Every append saves the whole mapping through the
    store before returning.
    """

    def __init__(self, store: JsonHistoryStore, *, max_turns: int = MAX_TURNS) -> None:
        if max_turns <= 0:
            raise ValueError("max_turns must be positive")
        self.store = store
        self.max_turns = max_turns
        self._lock = threading.RLock()
        self._sessions: dict[str, Deque[ConversationTurn]] = {
            user_id: deque(turns, maxlen=max_turns)
            for user_id, turns in store.load().items()
        }

    def append(self, user_id: str, role: Role | str, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=Role(role), content=content)
        with self._lock:
            history = self._sessions.get(user_id)
            if history is None:
                history = self._sessions[user_id] = deque(maxlen=self.max_turns)
            history.append(turn)
            self.store.save(self.snapshot())
        return turn

    def read(self, user_id: str) -> list[ConversationTurn]:
        with self._lock:
            return list(self._sessions.get(user_id, ()))

    def users(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def snapshot(self) -> Sessions:
        with self._lock:
            return {user_id: list(turns) for user_id, turns in self._sessions.items()}
