"""Tests for stats counters and logging setup."""

from __future__ import annotations

import json
import logging
import threading

import pytest

from viewkeeper.observability import JsonFormatter, StatsRecorder, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


class TestStatsRecorder:

    def test_counters_and_reset(self) -> None:
        stats = StatsRecorder()
        stats.record_processed()
        stats.record_processed()
        stats.record_forwarded()
        stats.record_saved()
        stats.record_error()

        data = stats.get_stats()
        assert (data["processed"], data["forwarded"], data["saved"], data["errors"]) == (2, 1, 1, 1)
        assert data["uptime_sec"] >= 0

        stats.reset()
        snap = stats.snapshot()
        assert (snap.processed, snap.forwarded, snap.saved, snap.errors) == (0, 0, 0, 0)

    def test_concurrent_increments_are_not_lost(self) -> None:
        stats = StatsRecorder()

        def work():
            for _ in range(1000):
                stats.record_processed()

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert stats.snapshot().processed == 8000


class TestLogging:

    def test_json_formatter_lifts_context(self) -> None:
        record = logging.LogRecord("viewkeeper.test", logging.INFO, __file__, 10, "captured %s", ("image",), None)
        record.chat_id = "15551234567@s.whatsapp.net"
        payload = json.loads(JsonFormatter().format(record))
        assert payload["level"] == "INFO"
        assert payload["message"] == "captured image"
        assert payload["chat_id"] == "15551234567@s.whatsapp.net"
        assert payload["timestamp"].endswith("Z")

    def test_setup_logging_redacts_file_output(self, tmp_path, restore_root_logger) -> None:
        log_file = tmp_path / "viewkeeper.log"
        setup_logging(level="DEBUG", json_format=True, redact_jids=True, log_file=str(log_file))
        logging.getLogger("viewkeeper.test").info("Forwarded to 15551234567@s.whatsapp.net")
        for h in restore_root_logger.handlers:
            h.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "Forwarded to 1555*******@s.whatsapp.net"
