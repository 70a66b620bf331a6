from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_LOGGER = logging.getLogger("kdneighbors")

_SUPPORTED_PRECISION = {"float32", "float64"}
_DEFAULT_METRIC = "euclidean"
_DEFAULT_QUERY_WORKERS = 1
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value '{raw}'") from exc


def _normalise_precision(value: str | None) -> str:
    if value is None:
        return "float64"
    value = value.strip().lower()
    if value not in _SUPPORTED_PRECISION:
        raise ValueError(f"Unsupported precision '{value}'. Expected one of {_SUPPORTED_PRECISION}.")
    return value


def _parse_query_workers(raw: str | None) -> int:
    workers = _parse_optional_int(raw)
    if workers is None:
        return _DEFAULT_QUERY_WORKERS
    if workers < 1:
        raise ValueError(f"Query workers must be at least 1, got '{raw}'.")
    return workers


def _normalise_log_level(raw: str | None) -> str:
    level = (raw or "INFO").strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unsupported log level '{raw}'.")
    return level


@dataclass(frozen=True)
class RuntimeConfig:
    precision: str
    metric: str
    enable_diagnostics: bool
    log_level: str
    query_workers: int

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        precision = _normalise_precision(os.getenv("KDNEIGHBORS_PRECISION"))
        metric = (
            os.getenv("KDNEIGHBORS_METRIC", _DEFAULT_METRIC).strip().lower()
            or _DEFAULT_METRIC
        )
        enable_diagnostics = _bool_from_env(
            os.getenv("KDNEIGHBORS_ENABLE_DIAGNOSTICS"), default=True
        )
        log_level = _normalise_log_level(os.getenv("KDNEIGHBORS_LOG_LEVEL"))
        query_workers = _parse_query_workers(os.getenv("KDNEIGHBORS_QUERY_WORKERS"))
        return cls(
            precision=precision,
            metric=metric,
            enable_diagnostics=enable_diagnostics,
            log_level=log_level,
            query_workers=query_workers,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("kdneighbors")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    _LOGGER.debug("Runtime configuration resolved: %s", config)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "precision": config.precision,
        "metric": config.metric,
        "enable_diagnostics": config.enable_diagnostics,
        "log_level": config.log_level,
        "query_workers": config.query_workers,
    }


__all__ = [
    "RuntimeConfig",
    "describe_runtime",
    "reset_runtime_config_cache",
    "runtime_config",
]
