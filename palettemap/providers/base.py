"""Text-completion capability shared by every provider backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

TRANSIENT_STATUSES = frozenset({429, 503})


class ProviderError(RuntimeError):
    """Raised when a completion call fails."""

    transient = False

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ProviderTransientError(ProviderError):
    """Rate limits, unavailable upstreams, timeouts and connection errors."""

    transient = True


class ProviderFatalError(ProviderError):
    """Auth failures, malformed requests and unusable responses; never retried."""


def error_for_status(status: int, message: str) -> ProviderError:
    if status in TRANSIENT_STATUSES:
        return ProviderTransientError(message, status=status)
    return ProviderFatalError(message, status=status)


@dataclass(frozen=True)
class CompletionRequest:
    """Everything a backend needs to run one completion."""

    system: str
    user: str
    model: str
    temperature: float = 0.3
    max_tokens: Optional[int] = None
    timeout: float = 60.0


class TextCompletionProvider(Protocol):
    """Protocol implemented by completion backends."""

    name: str

    def complete(
        self,
        system: str,
        user: str,
        *,
        model: str,
        temperature: float,
        max_tokens: Optional[int],
        timeout: float,
    ) -> str:
        """Return the raw completion text or raise ``ProviderError``."""


class CallableProvider:
    """Adapts a plain ``CompletionRequest -> str`` function to the provider protocol."""

    def __init__(self, func: Callable[[CompletionRequest], str], *, name: str = "callable") -> None:
        self._func = func
        self.name = name
        self.calls = 0

    def complete(
        self,
        system: str,
        user: str,
        *,
        model: str,
        temperature: float,
        max_tokens: Optional[int],
        timeout: float,
    ) -> str:
        self.calls += 1
        request = CompletionRequest(
            system=system,
            user=user,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        return self._func(request)


def first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


__all__ = [
    "CallableProvider",
    "CompletionRequest",
    "ProviderError",
    "ProviderFatalError",
    "ProviderTransientError",
    "TRANSIENT_STATUSES",
    "TextCompletionProvider",
    "error_for_status",
    "first_env_value",
]
