"""
Purpose: Thin client wrapper around the OpenAI SDK for chat completions.
One place for auth, timeouts, model options, response/usage normalization and
error translation. The same class serves OpenAI (primary) and DeepSeek
(fallback, an OpenAI-compatible API reached through `base_url`).

Failure mapping:
- No API key → ProviderCredentialMissing, before any network call.
- SDK status/API errors → ProviderQuotaExhausted or ProviderHardFailure,
  chosen by `classify_failure` on the SDK's code/status/message.
- Timeouts and connection errors → ProviderHardFailure.

SDK retries are off (max_retries=0): failover is the router's job.

Testing: inject a fake SDK object via `sdk=`; assert text/usage mapping and
error classification.
"""

from __future__ import annotations
from typing import Any, Optional

from openai import OpenAI
from openai import APIConnectionError, APIError, APIStatusError, APITimeoutError

from ..errors import (
    ProviderCredentialMissing,
    ProviderError,
    ProviderHardFailure,
    ProviderQuotaExhausted,
)
from ..models import FailureKind, LLMSettings
from .provider_router import classify_failure


class OpenAILLMClient:
    def __init__(
        self,
        name: str,
        api_key: Optional[str],
        *,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        sdk: Any = None,
    ):
        self.name = name
        self.api_key = (api_key or "").strip()
        self.base_url = base_url
        self.timeout = timeout
        self._client = sdk

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self):
        """Underlying SDK client, created on first use."""
        if self._client is None:
            if not self.has_credentials:
                raise ProviderCredentialMissing(
                    "API key not set", provider=self.name
                )
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def chat(
        self,
        messages: list[dict[str, str]],
        settings: LLMSettings,
        system: Optional[str] = None,
    ) -> tuple[str, dict]:
        if not self.has_credentials:
            raise ProviderCredentialMissing("API key not set", provider=self.name)

        payload = []
        if system:
            payload.append({"role": "system", "content": system})
        payload.extend(messages)

        try:
            cc = self.client.chat.completions.create(
                model=settings.model,
                messages=payload,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
        except APITimeoutError as e:
            raise ProviderHardFailure(
                "request timed out", provider=self.name, kind=FailureKind.TIMEOUT
            ) from e
        except APIConnectionError as e:
            raise ProviderHardFailure(
                f"connection error: {e}", provider=self.name
            ) from e
        except APIError as e:
            raise translate_api_error(self.name, e) from e

        text = ""
        if cc.choices:
            text = (cc.choices[0].message.content or "").strip()
        usage = getattr(cc, "usage", None)
        tokens_in = getattr(usage, "prompt_tokens", 0) if usage else 0
        tokens_out = getattr(usage, "completion_tokens", 0) if usage else 0
        return text, {
            "provider": self.name,
            "model": getattr(cc, "model", None) or settings.model,
            "tokens_in": tokens_in,
            "tokens_out": tokens_out,
        }


def translate_api_error(provider: str, err: APIError) -> ProviderError:
    """Map an SDK error onto the provider error taxonomy."""
    code = getattr(err, "code", None)
    body = getattr(err, "body", None)
    if not code and isinstance(body, dict):
        nested = body.get("error") if isinstance(body.get("error"), dict) else body
        code = nested.get("code")
    status = err.status_code if isinstance(err, APIStatusError) else None
    message = getattr(err, "message", None) or str(err)

    kind = classify_failure(code, status, message)
    cls = ProviderQuotaExhausted if kind == FailureKind.QUOTA else ProviderHardFailure
    return cls(message, provider=provider, code=code, status=status)
