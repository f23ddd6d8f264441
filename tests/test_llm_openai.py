from types import SimpleNamespace

import httpx
import openai
import pytest

from bot.errors import ProviderCredentialMissing, ProviderHardFailure, ProviderQuotaExhausted
from bot.models import FailureKind, LLMSettings
from bot.services.llm_openai import OpenAILLMClient, translate_api_error

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
SETTINGS = LLMSettings(model="gpt-4o-mini", temperature=0.4, max_tokens=400)


class FakeCompletions:
    def __init__(self, outcome: object) -> None:
        self.outcome = outcome
        self.kwargs: dict | None = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def fake_sdk(outcome: object) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(outcome)))


def completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=4),
        model="gpt-4o-mini-2024-07-18",
    )


def status_error(cls, status: int, message: str, body: dict | None = None):
    return cls(message, response=httpx.Response(status, request=REQUEST), body=body)


def test_missing_key_fails_before_any_call() -> None:
    sdk = fake_sdk(completion("never"))
    client = OpenAILLMClient("openai", "", sdk=sdk)

    with pytest.raises(ProviderCredentialMissing) as exc_info:
        client.chat([{"role": "user", "content": "hi"}], SETTINGS, system="sys")

    assert exc_info.value.kind == FailureKind.CREDENTIALS_MISSING
    assert sdk.chat.completions.kwargs is None


def test_chat_sends_system_then_history_and_maps_usage() -> None:
    sdk = fake_sdk(completion("  Hello there  "))
    client = OpenAILLMClient("openai", "sk-test", sdk=sdk)

    text, meta = client.chat([{"role": "user", "content": "hi"}], SETTINGS, system="Be brief.")

    assert text == "Hello there"
    assert meta == {
        "provider": "openai",
        "model": "gpt-4o-mini-2024-07-18",
        "tokens_in": 12,
        "tokens_out": 4,
    }
    sent = sdk.chat.completions.kwargs
    assert sent["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "hi"},
    ]
    assert sent["max_tokens"] == 400
    assert sent["temperature"] == 0.4


def test_none_content_becomes_empty_text() -> None:
    client = OpenAILLMClient("deepseek", "key", sdk=fake_sdk(completion(None)))
    text, _ = client.chat([], SETTINGS)
    assert text == ""


def test_insufficient_quota_maps_to_quota_error() -> None:
    err = status_error(
        openai.RateLimitError,
        429,
        "You exceeded your current quota, please check your plan and billing details.",
        body={"code": "insufficient_quota", "type": "insufficient_quota"},
    )
    client = OpenAILLMClient("openai", "sk-test", sdk=fake_sdk(err))

    with pytest.raises(ProviderQuotaExhausted) as exc_info:
        client.chat([], SETTINGS)

    assert exc_info.value.code == "insufficient_quota"
    assert exc_info.value.status == 429
    assert exc_info.value.provider == "openai"


def test_plain_rate_limit_is_hard_failure() -> None:
    err = status_error(openai.RateLimitError, 429, "Rate limit reached for requests")
    client = OpenAILLMClient("openai", "sk-test", sdk=fake_sdk(err))

    with pytest.raises(ProviderHardFailure):
        client.chat([], SETTINGS)


def test_authentication_error_is_hard_failure() -> None:
    err = status_error(
        openai.AuthenticationError,
        401,
        "Incorrect API key provided",
        body={"code": "invalid_api_key"},
    )
    mapped = translate_api_error("openai", err)
    assert isinstance(mapped, ProviderHardFailure)
    assert mapped.status == 401
    assert mapped.code == "invalid_api_key"


def test_payment_required_is_quota() -> None:
    err = status_error(openai.APIStatusError, 402, "Insufficient Balance")
    mapped = translate_api_error("deepseek", err)
    assert isinstance(mapped, ProviderQuotaExhausted)
    assert mapped.provider == "deepseek"


def test_timeout_is_hard_failure_with_timeout_kind() -> None:
    client = OpenAILLMClient(
        "openai", "sk-test", sdk=fake_sdk(openai.APITimeoutError(request=REQUEST))
    )
    with pytest.raises(ProviderHardFailure) as exc_info:
        client.chat([], SETTINGS)
    assert exc_info.value.kind == FailureKind.TIMEOUT


def test_connection_error_is_hard_failure() -> None:
    client = OpenAILLMClient(
        "openai", "sk-test", sdk=fake_sdk(openai.APIConnectionError(request=REQUEST))
    )
    with pytest.raises(ProviderHardFailure) as exc_info:
        client.chat([], SETTINGS)
    assert exc_info.value.kind == FailureKind.HARD


def test_sdk_client_is_built_with_timeout_and_no_retries() -> None:
    client = OpenAILLMClient(
        "deepseek", "key", base_url="https://api.deepseek.com", timeout=12.5
    )
    sdk = client.client
    assert isinstance(sdk, openai.OpenAI)
    assert sdk.max_retries == 0
    assert sdk.timeout == 12.5
    assert str(sdk.base_url).startswith("https://api.deepseek.com")
