"""Build a completion provider from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..logging import get_logger
from .base import TextCompletionProvider
from .chat import ChatCompletionsProvider
from .ollama import OllamaProvider

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import ProviderConfig

logger = get_logger("providers")


def create_provider(config: "ProviderConfig") -> Optional[TextCompletionProvider]:
    """Return the configured backend, or ``None`` when AI mapping is unavailable."""
    name = config.name
    if not name:
        logger.info("No provider configured; using deterministic mapping only")
        return None

    if name == "ollama":
        return OllamaProvider(config.base_url)

    api_key = config.resolved_api_key()
    if name == "openai-compatible":
        if not config.base_url:
            logger.warning("Provider 'openai-compatible' needs provider.base_url; AI mapping disabled")
            return None
        return ChatCompletionsProvider(config.base_url, api_key=api_key)

    if not api_key:
        logger.warning("No API key found for provider '%s'; AI mapping disabled", name)
        return None
    if name == "openrouter":
        return ChatCompletionsProvider.openrouter(api_key, base_url=config.base_url)
    if name == "chutes":
        return ChatCompletionsProvider.chutes(api_key, base_url=config.base_url)
    raise ValueError(f"Unsupported provider: {name}")


__all__ = ["create_provider"]
