"""Configuration loading for repocontext (environment and config.yml)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .logging import get_logger

DEFAULT_MAX_CONTEXT_SIZE = 200000  # 200KB in bytes
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096
DEFAULT_API_BASE_URL = "https://api.anthropic.com/v1"
DEFAULT_GIT_BASE_URL = "https://github.com"
DEFAULT_CACHE_ROOT = Path("~/.repocontext")

CONFIG_FILENAME = "config.yml"

ENV_API_KEY = "ANTHROPIC_API_KEY"
ENV_MAX_SIZE = "REPOCONTEXT_MAX_SIZE"
ENV_MODEL = "REPOCONTEXT_MODEL"
ENV_HOME = "REPOCONTEXT_HOME"

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+\Z")

logger = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when configuration is missing or cannot be parsed."""


@dataclass
class RepoContextConfig:
    """Settings for one repocontext run, resolved once at startup."""

    anthropic_api_key: Optional[str] = None
    max_context_size: int = DEFAULT_MAX_CONTEXT_SIZE
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    api_base_url: str = DEFAULT_API_BASE_URL
    git_base_url: str = DEFAULT_GIT_BASE_URL
    cache_root: Path = DEFAULT_CACHE_ROOT.expanduser()
    templates_dir: Optional[Path] = None

    def require_api_key(self) -> str:
        if not self.anthropic_api_key:
            raise ConfigError(f"{ENV_API_KEY} environment variable must be set")
        return self.anthropic_api_key


def load_config(
    environ: Mapping[str, str] | None = None,
    config_path: Path | None = None,
) -> RepoContextConfig:
    """Build the run configuration.

    Values from the optional YAML file act as defaults and the environment
    overrides them. ``config_path`` defaults to ``config.yml`` under the
    cache root.
    """
    env = dict(os.environ if environ is None else environ)

    home_override = _as_str(env.get(ENV_HOME))
    cache_root = Path(home_override).expanduser() if home_override else DEFAULT_CACHE_ROOT.expanduser()

    path = config_path.expanduser() if config_path else cache_root / CONFIG_FILENAME
    if config_path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    data = _read_config(path) if path.is_file() else {}

    if not home_override and _as_str(data.get("cache_root")):
        cache_root = Path(str(data["cache_root"])).expanduser()

    templates_dir_str = _as_str(data.get("templates_dir"))
    templates_dir = Path(templates_dir_str).expanduser() if templates_dir_str else None

    config = RepoContextConfig(
        anthropic_api_key=_as_str(data.get("anthropic_api_key")),
        max_context_size=_parse_max_size(data.get("max_context_size"), source=str(path)),
        model=_as_str(data.get("model")) or DEFAULT_MODEL,
        temperature=_as_float(data.get("temperature"), DEFAULT_TEMPERATURE),
        max_tokens=_as_int(data.get("max_tokens")) or DEFAULT_MAX_TOKENS,
        api_base_url=_as_str(data.get("api_base_url")) or DEFAULT_API_BASE_URL,
        git_base_url=_as_str(data.get("git_base_url")) or DEFAULT_GIT_BASE_URL,
        cache_root=cache_root,
        templates_dir=templates_dir,
    )

    api_key = _as_str(env.get(ENV_API_KEY))
    if api_key:
        config.anthropic_api_key = api_key

    if env.get(ENV_MAX_SIZE):
        config.max_context_size = _parse_max_size(env[ENV_MAX_SIZE], source=ENV_MAX_SIZE)

    model = _as_str(env.get(ENV_MODEL))
    if model:
        config.model = model

    return config


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _parse_max_size(value: Any, *, source: str) -> int:
    if value is None or value == "":
        return DEFAULT_MAX_CONTEXT_SIZE
    parsed = _as_int(value)
    if parsed is None:
        logger.warning(
            "Ignoring invalid max size %r from %s; using default of %d bytes",
            value,
            source,
            DEFAULT_MAX_CONTEXT_SIZE,
        )
        return DEFAULT_MAX_CONTEXT_SIZE
    return parsed


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGER_PATTERN.match(value):
        return int(value)
    return None


__all__ = [
    "ConfigError",
    "DEFAULT_MAX_CONTEXT_SIZE",
    "RepoContextConfig",
    "load_config",
]
