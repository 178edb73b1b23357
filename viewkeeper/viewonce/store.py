"""Temp storage for recovered view-once media: save and age-based eviction"""

import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import PersistError
from .models import HandlerConfig, HandlerConfigHolder, MediaPayload

logger = logging.getLogger(__name__)

FILE_PREFIX = "viewonce_"
MAX_NAME_ATTEMPTS = 100


def sanitize_chat_id(chat_id: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return re.sub(r"[^a-zA-Z0-9]", "_", chat_id or "")


@dataclass
class EvictionResult:
    """Outcome of one eviction sweep"""
    scanned: int = 0
    removed: int = 0
    missing: int = 0  # vanished between listing and deletion
    failed: int = 0


class TempStore:
    """Directory of downloaded view-once artifacts

    Shared between concurrent pipeline runs and the cleanup scheduler;
    no locking, so eviction tolerates files disappearing mid-sweep.
    """

    def __init__(self, config: HandlerConfigHolder):
        self.config = config

    def directory(self, config: Optional[HandlerConfig] = None) -> Path:
        cfg = config or self.config.snapshot()
        return Path(cfg.temp_dir).expanduser()

    def directory_exists(self) -> bool:
        return self.directory().is_dir()

    def save(
        self,
        payload: MediaPayload,
        chat_id: str,
        config: Optional[HandlerConfig] = None,
    ) -> Optional[str]:
        """Write `payload` under the temp dir.

        Returns:
            Path of the written file, or None when save_to_temp is off

        Raises:
            PersistError: if the directory or file cannot be written
        """
        cfg = config or self.config.snapshot()
        if not cfg.save_to_temp:
            return None

        directory = self.directory(cfg)
        sanitized = sanitize_chat_id(chat_id)
        created_ms = int(time.time() * 1000)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            for attempt in range(MAX_NAME_ATTEMPTS):
                name = f"{FILE_PREFIX}{sanitized}_{created_ms + attempt}_{payload.suggested_filename}"
                path = directory / name
                try:
                    with open(path, "xb") as f:
                        f.write(payload.data)
                except FileExistsError:
                    continue
                logger.debug(f"Saved {payload.size} bytes to {path}")
                return str(path)
        except OSError as e:
            raise PersistError(f"Failed to save view-once media: {e}", cause=e) from e
        raise PersistError(f"No free filename for {payload.suggested_filename} in {directory}")

    def evict(self, max_age: Optional[float] = None) -> EvictionResult:
        """Delete `viewonce_` files at least `max_age` seconds old.

        A missing directory is a no-op. Per-file failures never abort the sweep.
        """
        cfg = self.config.snapshot()
        if max_age is None:
            max_age = cfg.max_temp_age
        directory = self.directory(cfg)
        result = EvictionResult()

        try:
            entries = list(os.scandir(directory))
        except (FileNotFoundError, NotADirectoryError):
            return result
        except OSError as e:
            logger.error(f"Could not list temp directory {directory}: {e}")
            return result

        now = time.time()
        for entry in entries:
            if not entry.name.startswith(FILE_PREFIX):
                continue
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                result.scanned += 1
                age = max(0.0, now - entry.stat(follow_symlinks=False).st_mtime)
                if age < max_age:
                    continue
                os.unlink(entry.path)
                result.removed += 1
            except FileNotFoundError:
                result.missing += 1
            except OSError as e:
                result.failed += 1
                logger.debug(f"Could not delete {entry.path}: {e}")

        if result.removed:
            logger.info(f"Cleaned {result.removed} old view-once temp files")
        if result.failed:
            logger.warning(f"{result.failed} view-once temp files could not be removed")
        return result
