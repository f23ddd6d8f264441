import gc
import threading
import time

import pytest

from bot.controller import ConversationController, UserLocks
from bot.errors import AllProvidersFailed, ProviderQuotaExhausted
from bot.models import LLMSettings, Role
from bot.persistence.conversation_memory import ConversationMemory
from bot.persistence.session_store import JsonHistoryStore
from bot.prompts import DefaultPromptFactory
from bot.services.llm_openai import OpenAILLMClient
from bot.services.provider_router import ProviderRouter

SYSTEM = "You are a helpful assistant."


class EchoLLM:
    """Answers with a counter and records the payload of every call."""

    def __init__(self, name: str = "openai", error: Exception | None = None) -> None:
        self.name = name
        self.error = error
        self.calls: list[dict] = []

    def chat(self, messages, settings, system=None):
        self.calls.append({"messages": list(messages), "system": system})
        if self.error is not None:
            raise self.error
        return f"{self.name} reply {len(self.calls)}", {}


def make_controller(tmp_path, primary, fallback) -> ConversationController:
    memory = ConversationMemory(JsonHistoryStore(tmp_path / "history.json"))
    router = ProviderRouter(
        primary,
        fallback,
        primary_settings=LLMSettings(model="gpt-4o-mini"),
        fallback_settings=LLMSettings(model="deepseek-chat"),
    )
    return ConversationController(memory, router, DefaultPromptFactory(SYSTEM))


def test_three_hellos_give_six_interleaved_turns(tmp_path) -> None:
    controller = make_controller(tmp_path, EchoLLM(), EchoLLM("deepseek"))

    replies = [controller.get_reply("U1", "Hello") for _ in range(3)]

    history = controller.history("U1")
    assert len(history) == 6
    assert [t.role for t in history] == [Role.USER, Role.ASSISTANT] * 3
    assert [t.content for t in history[1::2]] == replies
    assert all(t.content == "Hello" for t in history[0::2])


def test_request_includes_new_user_turn_and_system_prompt(tmp_path) -> None:
    primary = EchoLLM()
    controller = make_controller(tmp_path, primary, EchoLLM("deepseek"))

    controller.get_reply("U1", "first")
    controller.get_reply("U1", "second")

    last = primary.calls[-1]
    assert last["system"] == SYSTEM
    assert last["messages"] == [
        {"role": "user", "content": "first"},
        {"role": "assistant", "content": "openai reply 1"},
        {"role": "user", "content": "second"},
    ]


def test_request_history_is_bounded(tmp_path) -> None:
    primary = EchoLLM()
    controller = make_controller(tmp_path, primary, EchoLLM("deepseek"))

    for i in range(8):
        controller.get_reply("U1", f"q{i}")

    sent = primary.calls[-1]["messages"]
    assert len(sent) == 10
    assert sent[-1] == {"role": "user", "content": "q7"}


def test_both_providers_failing_keeps_user_turn_only(tmp_path) -> None:
    primary = EchoLLM(error=ProviderQuotaExhausted("quota", provider="openai", code="insufficient_quota"))
    fallback = EchoLLM("deepseek", error=ProviderQuotaExhausted("balance", provider="deepseek", status=402))
    controller = make_controller(tmp_path, primary, fallback)

    with pytest.raises(AllProvidersFailed):
        controller.get_reply("U1", "Hello")

    history = controller.history("U1")
    assert [(t.role, t.content) for t in history] == [(Role.USER, "Hello")]


def test_missing_primary_key_uses_fallback_and_records_its_reply(tmp_path) -> None:
    primary = OpenAILLMClient("openai", "")
    fallback = EchoLLM("deepseek")
    controller = make_controller(tmp_path, primary, fallback)

    reply, meta = controller.respond("U1", "Hello")

    assert reply == "deepseek reply 1"
    assert controller.history("U1")[-1].content == "deepseek reply 1"
    assert controller.history("U1")[-1].role == Role.ASSISTANT
    assert meta["provider"] == "deepseek"


def test_history_survives_restart(tmp_path) -> None:
    controller = make_controller(tmp_path, EchoLLM(), EchoLLM("deepseek"))
    controller.get_reply("U1", "remember me")

    restarted = make_controller(tmp_path, EchoLLM(), EchoLLM("deepseek"))
    assert [t.content for t in restarted.history("U1")] == ["remember me", "openai reply 1"]


class SlowLLM:
    """Tracks how many calls overlap."""

    name = "openai"

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self.active = 0
        self.max_active = 0

    def chat(self, messages, settings, system=None):
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.05)
        with self._guard:
            self.active -= 1
        return f"re: {messages[-1]['content']}", {}


def test_same_user_requests_are_serialized(tmp_path) -> None:
    llm = SlowLLM()
    controller = make_controller(tmp_path, llm, EchoLLM("deepseek"))

    threads = [
        threading.Thread(target=controller.get_reply, args=("U1", f"msg{i}")) for i in range(4)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    history = controller.history("U1")
    assert llm.max_active == 1
    assert [t.role for t in history] == [Role.USER, Role.ASSISTANT] * 4
    for user_turn, assistant_turn in zip(history[0::2], history[1::2]):
        assert assistant_turn.content == f"re: {user_turn.content}"


def test_different_users_run_concurrently(tmp_path) -> None:
    llm = SlowLLM()
    controller = make_controller(tmp_path, llm, EchoLLM("deepseek"))

    threads = [
        threading.Thread(target=controller.get_reply, args=(f"U{i}", "hi")) for i in range(3)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert llm.max_active > 1
    assert all(len(controller.history(f"U{i}")) == 2 for i in range(3))


class TaggingLLM(SlowLLM):
    def chat(self, messages, settings, system=None):
        reply, _ = super().chat(messages, settings, system=system)
        return reply, {"echo": messages[-1]["content"]}


def test_concurrent_users_get_their_own_meta(tmp_path) -> None:
    controller = make_controller(tmp_path, TaggingLLM(), EchoLLM("deepseek"))
    results: dict[str, tuple[str, dict]] = {}

    def run(user_id: str) -> None:
        results[user_id] = controller.respond(user_id, f"from {user_id}")

    threads = [threading.Thread(target=run, args=(f"U{i}",)) for i in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for user_id, (reply, meta) in results.items():
        assert reply == f"re: from {user_id}"
        assert meta["echo"] == f"from {user_id}"
        assert meta["provider"] == "openai"


def test_user_locks_are_released_when_idle(tmp_path) -> None:
    controller = make_controller(tmp_path, EchoLLM(), EchoLLM("deepseek"))

    for i in range(5):
        controller.get_reply(f"U{i}", "hi")
    gc.collect()

    assert len(controller.locks) == 0


def test_user_lock_is_shared_while_held() -> None:
    locks = UserLocks()
    held = locks.for_user("U1")

    assert locks.for_user("U1") is held
    assert locks.for_user("U2") is not held
    assert len(locks) == 1
