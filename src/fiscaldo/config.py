"""Runtime configuration for the registry importer.

Values are resolved in three layers: a named preset, then ``FISCALDO_*``
environment variables, then explicit overrides (usually CLI flags).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

from .utils import FiscalError

DATABASE_URL_ENV_VAR = "FISCALDO_DATABASE_URL"
DEFAULT_DATABASE_URL = "sqlite:///rnc_registry.db"
DEFAULT_SOURCE_ENCODING = "latin-1"

_ENV_OVERRIDES: Mapping[str, str] = {
    "batch_size": "FISCALDO_BATCH_SIZE",
    "session_row_limit": "FISCALDO_SESSION_LIMIT",
    "inter_batch_delay": "FISCALDO_BATCH_DELAY",
    "max_retries": "FISCALDO_MAX_RETRIES",
}


class ConfigError(FiscalError, ValueError):
    """Raised when a configuration value is out of range."""


@dataclass(frozen=True)
class ImportConfig:
    """Operational knobs of a registry import session.

    ``session_row_limit`` bounds the number of source lines consumed per
    run (``None`` means until the source is exhausted); ``batch_size`` is
    the number of lines committed per transaction; ``inter_batch_delay`` is
    the pause, in seconds, between batches.
    """

    session_row_limit: int | None = None
    batch_size: int = 2000
    inter_batch_delay: float = 0.1
    max_retries: int = 0
    error_log_limit: int = 200
    encoding: str = DEFAULT_SOURCE_ENCODING

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be positive: {self.batch_size}")
        if self.session_row_limit is not None and self.session_row_limit < 1:
            raise ConfigError(
                f"session_row_limit must be positive: {self.session_row_limit}"
            )
        if self.inter_batch_delay < 0:
            raise ConfigError(
                f"inter_batch_delay cannot be negative: {self.inter_batch_delay}"
            )
        if self.max_retries < 0:
            raise ConfigError(f"max_retries cannot be negative: {self.max_retries}")
        if self.error_log_limit < 0:
            raise ConfigError(
                f"error_log_limit cannot be negative: {self.error_log_limit}"
            )


PRESETS: Mapping[str, ImportConfig] = {
    "mini": ImportConfig(session_row_limit=2_000, batch_size=100, inter_batch_delay=0.2),
    "small": ImportConfig(session_row_limit=10_000, batch_size=500, inter_batch_delay=0.1),
    "medium": ImportConfig(session_row_limit=8_000, batch_size=500, inter_batch_delay=0.05),
    "large": ImportConfig(session_row_limit=50_000, batch_size=2_000, inter_batch_delay=0.0),
    "full": ImportConfig(session_row_limit=None, batch_size=2_000, inter_batch_delay=0.1),
}
DEFAULT_PRESET = "full"


def _coerce(name: str, raw: str) -> Any:
    text = raw.strip()
    try:
        if name == "inter_batch_delay":
            return float(text)
        if name == "session_row_limit" and text.lower() in {"", "0", "none"}:
            return None
        return int(text)
    except ValueError as exc:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from exc


def load_import_config(
    preset: str = DEFAULT_PRESET,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ImportConfig:
    """Resolve the :class:`ImportConfig` for a session."""

    try:
        config = PRESETS[preset]
    except KeyError as exc:
        known = ", ".join(sorted(PRESETS))
        raise ConfigError(f"Unknown preset '{preset}' (known: {known})") from exc

    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}
    for name, var in _ENV_OVERRIDES.items():
        if var in env:
            changes[name] = _coerce(name, env[var])

    for name, value in (overrides or {}).items():
        if value is not None:
            changes[name] = value

    return replace(config, **changes)


def resolve_database_url(
    explicit: str | None = None, environ: Mapping[str, str] | None = None
) -> str:
    if explicit:
        return explicit
    env = os.environ if environ is None else environ
    return env.get(DATABASE_URL_ENV_VAR) or DEFAULT_DATABASE_URL


__all__ = [
    "ConfigError",
    "DATABASE_URL_ENV_VAR",
    "DEFAULT_DATABASE_URL",
    "DEFAULT_PRESET",
    "ImportConfig",
    "PRESETS",
    "load_import_config",
    "resolve_database_url",
]
