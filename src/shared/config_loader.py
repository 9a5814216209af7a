"""Завантаження конфігурації: YAML файл + змінні середовища."""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.contracts.errors import ConfigError

log = logging.getLogger(__name__)

ENV_PREFIX = "STEADYBIT_EXTENSION_"

# YAML key -> Settings field
_YAML_KEYS = {
    "apiBaseUrl": "api_base_url",
    "accessToken": "access_token",
    "insecureSkipVerify": "insecure_skip_verify",
    "discoveryAttributesExcludesAlert": "discovery_attributes_excludes_alert",
    "requestTimeoutSec": "request_timeout_sec",
    "maxPages": "max_pages",
    "logLevel": "log_level",
    "logFormat": "log_format",
}

_TRUE = {"1", "t", "true", "yes", "on"}
_FALSE = {"0", "f", "false", "no", "off", ""}

LOG_FORMATS = ("text", "json")


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Зчитує YAML файл та повертає його вміст як dict.

    Args:
        path: Шлях до файлу.

    Returns:
        Вміст файлу як словник.

    Raises:
        FileNotFoundError: Якщо файл не знайдено.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    log.debug("Loaded config %s (%d top-level keys)", p.name, len(data or {}))
    return data or {}


@dataclass(slots=True)
class Settings:
    """Backend connection and discovery settings, fixed for the process lifetime."""

    api_base_url: str
    access_token: str
    insecure_skip_verify: bool = False
    discovery_attributes_excludes_alert: list[str] = field(default_factory=list)
    request_timeout_sec: float = 30.0
    max_pages: int = 1000
    log_level: str = "INFO"
    log_format: str = "text"


def parse_bool(name: str, value: Any) -> bool:
    """Parse a boolean setting or parameter (1/t/true, 0/f/false, any case).

    ``None`` and the empty string read as False.

    Raises:
        ConfigError: any other value.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {value!r}")


def _to_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


def _coerce(name: str, value: Any) -> Any:
    try:
        if name == "insecure_skip_verify":
            return parse_bool(name, value)
        if name == "discovery_attributes_excludes_alert":
            return _to_list(value)
        if name == "request_timeout_sec":
            timeout = float(value)
            if not math.isfinite(timeout) or timeout <= 0:
                raise ConfigError(f"{name}: must be a positive number, got {value!r}")
            return timeout
        if name == "max_pages":
            pages = int(value)
            if pages < 1:
                raise ConfigError(f"{name}: must be >= 1, got {pages}")
            return pages
        if name == "log_format":
            fmt = str(value).strip().lower()
            if fmt not in LOG_FORMATS:
                raise ConfigError(f"{name}: expected one of {LOG_FORMATS}, got {value!r}")
            return fmt
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConfigError(f"{name}: invalid value {value!r}") from exc
    return str(value).strip()


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build Settings from an optional YAML file, then environment overrides.

    Environment variables are the upper-cased field names with the
    ``STEADYBIT_EXTENSION_`` prefix, e.g. ``STEADYBIT_EXTENSION_API_BASE_URL``.

    Raises:
        ConfigError: a required value is missing or a value does not parse.
    """
    env = os.environ if environ is None else environ
    raw: dict[str, Any] = {}

    if path is not None:
        data = load_yaml(path)
        for key, value in data.items():
            fname = _YAML_KEYS.get(key)
            if fname is None:
                log.warning("Unknown config key '%s' in %s — ignored", key, path)
                continue
            raw[fname] = value

    for fname in _YAML_KEYS.values():
        env_name = ENV_PREFIX + fname.upper()
        if env_name in env:
            raw[fname] = env[env_name]

    values = {k: _coerce(k, v) for k, v in raw.items() if v is not None}
    missing = [k for k in ("api_base_url", "access_token") if not values.get(k)]
    if missing:
        raise ConfigError(f"missing required setting(s): {', '.join(missing)}")

    settings = Settings(**values)
    log.info(
        "Settings loaded: base_url=%s insecure_skip_verify=%s excludes=%d",
        settings.api_base_url,
        settings.insecure_skip_verify,
        len(settings.discovery_attributes_excludes_alert),
    )
    return settings
