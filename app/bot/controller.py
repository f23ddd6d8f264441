"""
Purpose: The single orchestration point for an AI reply. Owns the
"one-turn" logic: record the user's text, ask the provider router with the
bounded history, record the assistant's answer.

Key responsibilities:
- Append the inbound text as a user turn *before* calling a provider, so the
  request carries it.
- Build the system prompt and message list through the prompt factory.
- Call the ProviderRouter (primary, then fallback on quota/credential errors).
- Append the reply as an assistant turn and return it.
- On failure, propagate; the user turn stays recorded, no assistant turn.
- Serialize calls per user id so two in-flight requests for the same user
  cannot interleave their appends.

Testing: Pure unit tests with fake LLM clients and a tmp history file.
"""

from __future__ import annotations
import logging
import threading
import weakref

from .models import ConversationTurn, Role
from .persistence.conversation_memory import ConversationMemory
from .prompts import DefaultPromptFactory
from .services.provider_router import ProviderRouter

logger = logging.getLogger("bot.controller")


class UserLocks:
    """Lock per user id, kept only while someone holds a reference to it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )

    def for_user(self, user_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)


class ConversationController:
    def __init__(
        self,
        memory: ConversationMemory,
        router: ProviderRouter,
        prompts: DefaultPromptFactory,
    ):
        self.memory = memory
        self.router = router
        self.prompts = prompts
        self.locks = UserLocks()

    def get_reply(self, user_id: str, text: str) -> str:
        """Return the AI reply for `text`, updating the user's history.

        Raises ProviderError subclasses or AllProvidersFailed.
        """
        reply, _ = self.respond(user_id, text)
        return reply

    def respond(self, user_id: str, text: str) -> tuple[str, dict]:
        """Like get_reply, but also returns the router meta (provider, model, usage)."""
        lock = self.locks.for_user(user_id)
        with lock:
            self.memory.append(user_id, Role.USER, text)
            messages = self.prompts.assemble(history=self.memory.read(user_id))
            try:
                reply, meta = self.router.complete(
                    system=self.prompts.build_system(), messages=messages
                )
            except Exception:
                logger.error(
                    "reply failed",
                    extra={"event_type": "reply_failed", "user_id": user_id},
                )
                raise
            self.memory.append(user_id, Role.ASSISTANT, reply)

        logger.info(
            "reply produced",
            extra={"event_type": "reply", "user_id": user_id, "metadata": meta},
        )
        return reply, meta

    def history(self, user_id: str) -> list[ConversationTurn]:
        return self.memory.read(user_id)
