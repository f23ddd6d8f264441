"""
Purpose: Primary → fallback routing for chat completions.

States:
    ATTEMPT_PRIMARY --success--> DONE
    ATTEMPT_PRIMARY --quota / missing credentials--> ATTEMPT_FALLBACK
    ATTEMPT_PRIMARY --anything else--> FAILED (primary error surfaces as-is)
    ATTEMPT_FALLBACK --success--> DONE
    ATTEMPT_FALLBACK --any failure--> FAILED (AllProvidersFailed)

Classification works on structured fields (code, status) first; the message
phrases are kept for vendor errors that omit a code. A 429 only counts as a
quota failure when its message mentions "quota": plain rate limiting is not
routed to the fallback.
"""

from __future__ import annotations
import logging
from typing import Optional

from ..errors import AllProvidersFailed, ProviderError, ProviderHardFailure
from ..interfaces import LLMClient
from ..models import FailureKind, LLMSettings

logger = logging.getLogger("bot.router")

QUOTA_CODES = {"insufficient_quota"}
QUOTA_PHRASES = ("insufficient_quota", "exceeded your current quota")
PAYMENT_REQUIRED = 402
TOO_MANY_REQUESTS = 429

FALLBACK_KINDS = {FailureKind.QUOTA, FailureKind.CREDENTIALS_MISSING}


def classify_failure(
    code: Optional[str], status: Optional[int], message: Optional[str]
) -> FailureKind:
    """Return QUOTA for quota/billing exhaustion, HARD for everything else."""
    msg = (message or "").lower()
    if code in QUOTA_CODES:
        return FailureKind.QUOTA
    if any(phrase in msg for phrase in QUOTA_PHRASES):
        return FailureKind.QUOTA
    if status == PAYMENT_REQUIRED:
        return FailureKind.QUOTA
    if status == TOO_MANY_REQUESTS and "quota" in msg:
        return FailureKind.QUOTA
    return FailureKind.HARD


def should_fallback(error: ProviderError) -> bool:
    return error.kind in FALLBACK_KINDS


class ProviderRouter:
    def __init__(
        self,
        primary: LLMClient,
        fallback: LLMClient,
        *,
        primary_settings: LLMSettings,
        fallback_settings: LLMSettings,
    ):
        self.primary = primary
        self.fallback = fallback
        self.primary_settings = primary_settings
        self.fallback_settings = fallback_settings

    def complete(
        self, *, system: str, messages: list[dict[str, str]]
    ) -> tuple[str, dict]:
        """Return (reply_text, meta); meta["provider"] names who answered."""
        try:
            return self._attempt(self.primary, self.primary_settings, system, messages)
        except ProviderError as e:
            if not should_fallback(e):
                logger.error(
                    "primary provider failed, no fallback",
                    extra={"event_type": "provider_failed", "metadata": _describe(e)},
                )
                raise
            primary_error = e

        logger.warning(
            "primary provider unavailable, switching to fallback",
            extra={"event_type": "provider_fallback", "metadata": _describe(primary_error)},
        )
        try:
            return self._attempt(self.fallback, self.fallback_settings, system, messages)
        except ProviderError as e:
            logger.error(
                "fallback provider failed",
                extra={"event_type": "provider_failed", "metadata": _describe(e)},
            )
            raise AllProvidersFailed(primary_error, e) from e

    def _attempt(
        self,
        client: LLMClient,
        settings: LLMSettings,
        system: str,
        messages: list[dict[str, str]],
    ) -> tuple[str, dict]:
        try:
            text, meta = client.chat(messages, settings, system=system)
        except ProviderError:
            raise
        except Exception as e:  # noqa: BLE001
            raise ProviderHardFailure(str(e), provider=client.name) from e
        meta = dict(meta or {})
        meta.setdefault("provider", client.name)
        meta.setdefault("model", settings.model)
        return text or "", meta


def _describe(error: ProviderError) -> dict:
    return {
        "provider": error.provider,
        "kind": error.kind.value,
        "code": error.code,
        "status": error.status,
        "error": error.message,
    }
