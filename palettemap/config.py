"""Configuration loading for palettemap (.palettemap.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import CATEGORIES
from .providers.base import first_env_value
from .retry import RetryPolicy

CONFIG_FILENAME = ".palettemap.yml"

PROVIDER_NAMES = ("openrouter", "chutes", "ollama", "openai-compatible")

DEFAULT_MODEL = "z-ai/glm-4.5-air:free"
DEFAULT_EXTRACTION_MODEL = "google/gemma-3-27b-it:free"

ENV_API_KEY = "PALETTEMAP_API_KEY"
ENV_MODEL = "PALETTEMAP_MODEL"
ENV_PROVIDER_KEYS = {
    "openrouter": "OPENROUTER_API_KEY",
    "chutes": "CHUTES_API_KEY",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ProviderConfig:
    """Text-completion backend settings."""

    name: Optional[str] = None
    model: str = DEFAULT_MODEL
    extraction_model: str = DEFAULT_EXTRACTION_MODEL
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = 0.3
    max_tokens: int = 2000
    request_timeout: float = 60.0

    def resolved_api_key(self) -> Optional[str]:
        """Environment keys win over the file: generic first, then backend-specific."""
        keys = [ENV_API_KEY]
        backend_key = ENV_PROVIDER_KEYS.get(self.name or "")
        if backend_key:
            keys.append(backend_key)
        return first_env_value(keys) or self.api_key

    def resolved_model(self) -> str:
        return os.getenv(ENV_MODEL) or self.model


@dataclass
class RetryConfig:
    """Retry budget for transient provider failures."""

    max_retries: int = 2
    backoff_ms: int = 600

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries, backoff_ms=self.backoff_ms)


@dataclass
class MappingConfig:
    """Session defaults and which categories consult the AI."""

    flavor: str = "mocha"
    accent: str = "blue"
    mode: Optional[str] = None
    categories: List[str] = field(default_factory=lambda: list(CATEGORIES))
    use_ai: List[str] = field(default_factory=lambda: list(CATEGORIES))
    max_selectors: int = 40


@dataclass
class PaletteMapConfig:
    """Represents the settings defined in .palettemap.yml."""

    root: Path
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)


def load_config(config_path: Path) -> PaletteMapConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return PaletteMapConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    return PaletteMapConfig(
        root=root,
        provider=_load_provider(_as_dict(data.get("provider"))),
        retry=_load_retry(_as_dict(data.get("retry"))),
        mapping=_load_mapping(_as_dict(data.get("mapping"))),
    )


def _load_provider(data: Dict[str, Any]) -> ProviderConfig:
    config = ProviderConfig()
    name = _as_str(data.get("name"))
    if name is not None:
        name = name.strip().lower()
        if name not in PROVIDER_NAMES:
            raise ConfigError(f"Unknown provider '{name}'; expected one of {', '.join(PROVIDER_NAMES)}")
        config.name = name
    config.model = _as_str(data.get("model")) or config.model
    config.extraction_model = _as_str(data.get("extraction_model")) or config.extraction_model
    config.base_url = _as_str(data.get("base_url"))
    config.api_key = _as_str(data.get("api_key"))
    temperature = _as_float(data.get("temperature"))
    if temperature is not None:
        config.temperature = temperature
    max_tokens = _as_int(data.get("max_tokens"))
    if max_tokens is not None:
        config.max_tokens = max_tokens
    timeout = _as_float(data.get("request_timeout"))
    if timeout is not None:
        config.request_timeout = timeout
    return config


def _load_retry(data: Dict[str, Any]) -> RetryConfig:
    config = RetryConfig()
    max_retries = _as_int(data.get("max_retries"))
    if max_retries is not None:
        config.max_retries = max_retries
    backoff = _as_int(data.get("backoff_ms"))
    if backoff is not None:
        config.backoff_ms = backoff
    if config.max_retries < 0 or config.backoff_ms < 0:
        raise ConfigError("retry.max_retries and retry.backoff_ms must be non-negative")
    return config


def _load_mapping(data: Dict[str, Any]) -> MappingConfig:
    config = MappingConfig()
    config.flavor = _as_str(data.get("flavor")) or config.flavor
    config.accent = _as_str(data.get("accent")) or config.accent
    mode = _as_str(data.get("mode"))
    if mode is not None:
        mode = mode.strip().lower()
        if mode not in {"dark", "light"}:
            raise ConfigError(f"mapping.mode must be 'dark' or 'light', got '{mode}'")
        config.mode = mode
    if "categories" in data:
        config.categories = _as_categories(data.get("categories"), "categories")
    if "use_ai" in data:
        # use_ai: false disables every category; true keeps the default.
        flag = _as_bool(data.get("use_ai"))
        if flag is not None:
            config.use_ai = list(CATEGORIES) if flag else []
        else:
            config.use_ai = _as_categories(data.get("use_ai"), "use_ai")
    max_selectors = _as_int(data.get("max_selectors"))
    if max_selectors is not None:
        config.max_selectors = max(0, max_selectors)
    return config


def _as_categories(value: Any, field_name: str) -> List[str]:
    names = [item.strip().lower() for item in _as_str_list(value)]
    unknown = [name for name in names if name not in CATEGORIES]
    if unknown:
        raise ConfigError(f"mapping.{field_name} has unknown categories: {', '.join(unknown)}")
    return names


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "MappingConfig",
    "PaletteMapConfig",
    "ProviderConfig",
    "RetryConfig",
    "load_config",
]
