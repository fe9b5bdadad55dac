"""Linter configuration: defaults, user agents and the YAML config file."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .exceptions import ConfigError

DEFAULT_CONCURRENCY = 8

USER_AGENTS: Dict[str, str] = {
    "googlebot_mobile": " ".join(
        [
            "Mozilla/5.0 (Linux; Android 6.0.1; Nexus 5X Build/MMB29P) AppleWebKit/537.36",
            "(KHTML, like Gecko) Chrome/41.0.2272.96 Mobile Safari/537.36",
            "(compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
        ]
    ),
    "googlebot_desktop": " ".join(
        [
            "Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko; compatible;",
            "Googlebot/2.1; +http://www.google.com/bot.html) Safari/537.36",
        ]
    ),
    "chrome_mobile": " ".join(
        [
            "Mozilla/5.0 (Linux; Android 8.0; Pixel 2 Build/OPD3.170816.012)",
            "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/73.0.3683.86 Mobile Safari/537.36",
        ]
    ),
    "chrome_desktop": " ".join(
        [
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_14_3)",
            "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/73.0.3683.86 Safari/537.36",
        ]
    ),
}
DEFAULT_USER_AGENT = "googlebot_mobile"


@dataclass(frozen=True)
class LintConfig:
    """Tunables shared by the engine, the HTTP client and the rules."""

    max_concurrency: int = DEFAULT_CONCURRENCY
    request_timeout: float = 30.0
    rule_timeout: float = 120.0
    probe_bytes: int = 256 * 1024
    cache_domains: Tuple[str, ...] = ("cdn.ampproject.org", "bing-amp.com")
    validator_command: Tuple[str, ...] = ("amphtml-validator", "--format=json", "-")
    video_size_limit: int = 4_000_000


_TUPLE_FIELDS = {"cache_domains", "validator_command"}


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config at {path} is not valid YAML: {exc}", context={"path": str(path)}) from exc


def load_config(path: Optional[Path] = None) -> LintConfig:
    """Load a ``LintConfig`` from a YAML mapping, falling back to defaults."""

    if path is None:
        return LintConfig()
    data = read_yaml_file(path)
    if data is None:
        return LintConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config at {path} is not a mapping", context={"path": str(path)})

    known = {f.name for f in dataclasses.fields(LintConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(
            f"Unknown config key(s) in {path}: {', '.join(unknown)}",
            context={"path": str(path), "keys": unknown},
        )
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _TUPLE_FIELDS:
            if isinstance(value, str):
                value = (value,)
            elif not isinstance(value, (list, tuple)):
                raise ConfigError(f"Config key {key} must be a list", context={"path": str(path)})
            values[key] = tuple(str(item) for item in value)
        else:
            values[key] = _number(key, value, path)
    config = LintConfig(**values)
    if config.max_concurrency < 1:
        raise ConfigError("max_concurrency must be at least 1", context={"path": str(path)})
    for key in ("request_timeout", "rule_timeout", "probe_bytes"):
        if getattr(config, key) <= 0:
            raise ConfigError(f"{key} must be positive", context={"path": str(path)})
    return config


def _number(key: str, value: Any, path: Path) -> Any:
    """Check a scalar setting against the type of its default."""

    expected = type(getattr(LintConfig, key))
    valid = isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected is int:
        valid = valid and isinstance(value, int)
    if not valid:
        raise ConfigError(
            f"Config key {key} must be {expected.__name__}, got {type(value).__name__}",
            context={"path": str(path), "key": key},
        )
    return expected(value)
