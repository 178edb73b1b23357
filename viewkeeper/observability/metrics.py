"""Thread-safe counters for the view-once pipeline."""

import threading
import time
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time copy of the pipeline counters."""
    processed: int
    forwarded: int
    saved: int
    errors: int
    start_time: float

    @property
    def uptime(self) -> float:
        return max(0.0, time.time() - self.start_time)


class StatsRecorder:
    """Collector for processed/forwarded/saved/error counts and uptime."""

    def __init__(self):
        self._lock = threading.Lock()
        self._processed = 0
        self._forwarded = 0
        self._saved = 0
        self._errors = 0
        self._start_time = time.time()

    def record_processed(self) -> None:
        with self._lock:
            self._processed += 1

    def record_forwarded(self) -> None:
        with self._lock:
            self._forwarded += 1

    def record_saved(self) -> None:
        with self._lock:
            self._saved += 1

    def record_error(self) -> None:
        with self._lock:
            self._errors += 1

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                processed=self._processed,
                forwarded=self._forwarded,
                saved=self._saved,
                errors=self._errors,
                start_time=self._start_time,
            )

    def get_stats(self) -> Dict:
        """Return current counters as a dict."""
        snap = self.snapshot()
        return {
            "processed": snap.processed,
            "forwarded": snap.forwarded,
            "saved": snap.saved,
            "errors": snap.errors,
            "start_time": snap.start_time,
            "uptime_sec": snap.uptime,
        }

    def reset(self) -> None:
        with self._lock:
            self._processed = 0
            self._forwarded = 0
            self._saved = 0
            self._errors = 0
            self._start_time = time.time()
