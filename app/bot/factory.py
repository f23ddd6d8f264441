"""Wire settings into a ready dispatcher."""

from __future__ import annotations
from dataclasses import dataclass
from functools import partial

from .config import Settings
from .controller import ConversationController
from .dispatcher import MessageDispatcher
from .persistence.conversation_memory import ConversationMemory
from .persistence.session_store import JsonHistoryStore
from .prompts import DefaultPromptFactory
from .services.image_edit import edit_image
from .services.llm_openai import OpenAILLMClient
from .services.provider_router import ProviderRouter
from .services.speech import synthesize_voice_note
from .utils.logging import get_logger


@dataclass
class Bot:
    settings: Settings
    primary: OpenAILLMClient
    fallback: OpenAILLMClient
    memory: ConversationMemory
    controller: ConversationController
    dispatcher: MessageDispatcher


def build_bot(settings: Settings) -> Bot:
    """Build the provider clients, memory, controller and dispatcher."""
    get_logger(level=settings.log_level, path=settings.log_file)

    primary = OpenAILLMClient(
        "openai",
        settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout_seconds,
    )
    fallback = OpenAILLMClient(
        "deepseek",
        settings.deepseek_api_key,
        base_url=settings.deepseek_base_url,
        timeout=settings.request_timeout_seconds,
    )
    router = ProviderRouter(
        primary,
        fallback,
        primary_settings=settings.primary_llm_settings(),
        fallback_settings=settings.fallback_llm_settings(),
    )

    store = JsonHistoryStore(settings.history_file, max_turns=settings.max_history_turns)
    memory = ConversationMemory(store, max_turns=settings.max_history_turns)
    prompts = DefaultPromptFactory(settings.system_prompt)
    controller = ConversationController(memory, router, prompts)

    dispatcher = MessageDispatcher(
        controller,
        prompts,
        synthesize_voice=partial(
            synthesize_voice_note,
            llm=primary,
            voice=settings.tts_voice,
            model=settings.tts_model,
        ),
        edit_image=partial(
            edit_image,
            llm=primary,
            model=settings.image_model,
            size=settings.image_size,
        ),
    )
    return Bot(
        settings=settings,
        primary=primary,
        fallback=fallback,
        memory=memory,
        controller=controller,
        dispatcher=dispatcher,
    )
