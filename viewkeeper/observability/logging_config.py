"""Logging setup: plain or JSON-lines output, optional JID masking."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, List, Optional

from viewkeeper.utils.pii_filter import JidRedactionFilter

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING unless the root is at DEBUG
NOISY_LOGGERS = ("asyncio",)


class JsonFormatter(logging.Formatter):
    """One JSON object per record; `chat_id`/`media_kind` extras are lifted to top level."""

    CONTEXT_FIELDS = ("chat_id", "media_kind", "message_id")

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_extra:
            for name in self.CONTEXT_FIELDS:
                value = getattr(record, name, None)
                if value is not None:
                    log_obj[name] = value
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        if record.pathname:
            log_obj["module"] = record.module
            log_obj["lineno"] = record.lineno
        return json.dumps(log_obj, default=str, ensure_ascii=False)


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    redact_jids: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure root logging for the bot process or CLI.

    Replaces any handlers already on the root logger. With `redact_jids`,
    phone-number JIDs are masked on every handler before formatting.
    """
    root = logging.getLogger()
    root_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(root_level)

    # Remove existing handlers
    for h in root.handlers[:]:
        root.removeHandler(h)

    formatter: logging.Formatter = JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT)
    for handler in _build_handlers(log_file):
        handler.setFormatter(formatter)
        if redact_jids:
            handler.addFilter(JidRedactionFilter())
        root.addHandler(handler)

    if root_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
