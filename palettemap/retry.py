"""Uniform retry policy applied to text-completion calls."""

from __future__ import annotations

from dataclasses import dataclass

from .providers.base import ProviderError


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with linear backoff for transient provider failures."""

    max_retries: int = 2
    backoff_ms: int = 600

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.backoff_ms < 0:
            raise ValueError("backoff_ms must be >= 0")

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def delay(self, attempt_number: int) -> float:
        """Seconds to wait before retry ``attempt_number`` (1-based)."""
        return self.backoff_ms * attempt_number / 1000.0

    def should_retry(self, error: BaseException, attempt_number: int) -> bool:
        """Whether a failure on 1-based ``attempt_number`` earns another attempt."""
        if attempt_number >= self.attempts:
            return False
        return isinstance(error, ProviderError) and error.transient


__all__ = ["RetryPolicy"]
