"""Prompt construction for palette mapping."""

from .builder import DEFAULT_MAX_SELECTORS, PromptBuilder, PromptRequest

__all__ = ["DEFAULT_MAX_SELECTORS", "PromptBuilder", "PromptRequest"]
