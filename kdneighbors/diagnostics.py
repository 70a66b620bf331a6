from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

import psutil

from kdneighbors import config as kd_config


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


@dataclass
class OperationLog:
    """Collects metadata for a single logged operation."""

    op: str
    diagnostics: bool
    metadata: Dict[str, Any] = field(default_factory=dict)
    wall_start: float = 0.0
    cpu_start: float | None = None
    rss_start: int | None = None

    def add_metadata(self, **values: Any) -> None:
        self.metadata.update(values)

    def render(self) -> str:
        wall_ms = (time.perf_counter() - self.wall_start) * 1e3
        parts = [f"op={self.op}"]
        parts.extend(f"{key}={_format_value(value)}" for key, value in self.metadata.items())
        parts.append(f"wall_ms={wall_ms:.3f}")
        if self.cpu_start is not None:
            cpu_ms = (time.process_time() - self.cpu_start) * 1e3
            parts.append(f"cpu_user_ms={cpu_ms:.3f}")
        else:
            parts.append("cpu_user_ms=NA")
        if self.rss_start is not None:
            parts.append(f"rss_delta={_current_rss() - self.rss_start}")
        else:
            parts.append("rss_delta=NA")
        return " ".join(parts)


def _current_rss() -> int:
    return int(psutil.Process().memory_info().rss)


@contextmanager
def log_operation(logger: logging.Logger, op: str) -> Iterator[OperationLog]:
    """Emit one INFO line describing ``op`` once the wrapped block exits."""

    runtime = kd_config.runtime_config()
    op_log = OperationLog(op=op, diagnostics=runtime.enable_diagnostics)
    op_log.wall_start = time.perf_counter()
    if runtime.enable_diagnostics:
        op_log.cpu_start = time.process_time()
        op_log.rss_start = _current_rss()
    try:
        yield op_log
    finally:
        if logger.isEnabledFor(logging.INFO):
            logger.info(op_log.render())


__all__ = ["OperationLog", "log_operation"]
