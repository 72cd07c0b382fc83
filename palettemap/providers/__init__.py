"""Text-completion backends."""

from .base import (
    CallableProvider,
    CompletionRequest,
    ProviderError,
    ProviderFatalError,
    ProviderTransientError,
    TextCompletionProvider,
)
from .chat import ChatCompletionsProvider
from .factory import create_provider
from .ollama import OllamaProvider

__all__ = [
    "CallableProvider",
    "ChatCompletionsProvider",
    "CompletionRequest",
    "OllamaProvider",
    "ProviderError",
    "ProviderFatalError",
    "ProviderTransientError",
    "TextCompletionProvider",
    "create_provider",
]
