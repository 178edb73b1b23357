"""Observability: structured logging and pipeline counters."""

from .logging_config import setup_logging, JsonFormatter
from .metrics import StatsRecorder

__all__ = [
    "setup_logging",
    "JsonFormatter",
    "StatsRecorder",
]
