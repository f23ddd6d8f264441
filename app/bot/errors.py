"""
Purpose: Exception taxonomy for the bot.
Store errors are recovered inside the store; provider errors drive the
router's fallback decision; AllProvidersFailed is the only terminal error
the dispatcher turns into the generic failure notice.
"""

from __future__ import annotations
from typing import Optional

from .models import FailureKind


class BotError(Exception):
    """Base class for bot errors."""


class StoreError(BotError):
    """Base class for history artifact problems."""


class StoreLoadError(StoreError):
    """History artifact is unreadable or not an object-shaped mapping."""


class StoreSaveError(StoreError):
    """History artifact could not be written."""


class ProviderError(BotError):
    """A single provider attempt failed.

    `kind` is the structured classification set by the adapter; the router
    only looks at it, never at the message text.
    """

    kind: FailureKind = FailureKind.HARD

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        kind: Optional[FailureKind] = None,
        code: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        if kind is not None:
            self.kind = kind
        self.code = code
        self.status = status

    def __str__(self) -> str:
        parts = [f"{self.provider}: {self.message}"]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.code:
            parts.append(f"code={self.code}")
        return " ".join(parts)


class ProviderCredentialMissing(ProviderError):
    kind = FailureKind.CREDENTIALS_MISSING


class ProviderQuotaExhausted(ProviderError):
    kind = FailureKind.QUOTA


class ProviderHardFailure(ProviderError):
    kind = FailureKind.HARD


class AllProvidersFailed(BotError):
    """Primary failed with a fallback-eligible error and the fallback failed too."""

    def __init__(self, primary_error: ProviderError, fallback_error: ProviderError):
        super().__init__(
            f"Both {primary_error.provider} and {fallback_error.provider} requests failed."
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class ImageEditError(BotError):
    """Image edit endpoint returned no image data."""
