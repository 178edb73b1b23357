"""Tests for Settings loading and the command-line interface."""

from __future__ import annotations

import json
import os
import time

import pytest
import yaml

from viewkeeper import __version__, cli
from viewkeeper.config import Settings
from viewkeeper.viewonce.store import FILE_PREFIX


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from replacing pytest's log handlers."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


class TestSettings:

    def test_defaults(self) -> None:
        settings = Settings()
        cfg = settings.handler_config()
        assert cfg.auto_forward is True
        assert cfg.save_to_temp is True
        assert cfg.temp_dir == "./temp/viewonce"
        assert cfg.max_temp_age == 86400
        assert settings.cleanup_cron == "0 */6 * * *"

    def test_environment_aliases(self, monkeypatch) -> None:
        monkeypatch.setenv("VIEWKEEPER_AUTO_FORWARD", "false")
        monkeypatch.setenv("VIEWKEEPER_MAX_TEMP_AGE_HOURS", "2")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.auto_forward is False
        assert settings.handler_config().max_temp_age == 7200
        assert settings.log_level == "DEBUG"

    def test_yaml_round_trip(self, tmp_path) -> None:
        path = tmp_path / "conf" / "config.yaml"
        Settings(temp_dir="/srv/vo", skip_owner=True).to_file(str(path))

        loaded = Settings.from_file(str(path))
        assert loaded.temp_dir == "/srv/vo"
        assert loaded.skip_owner is True

    def test_empty_yaml_uses_defaults(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert Settings.from_file(str(path)).auto_forward is True


class TestCli:

    @pytest.fixture
    def config_file(self, tmp_path):
        temp_dir = tmp_path / "viewonce"
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "temp_dir": str(temp_dir),
            "config_store_path": str(tmp_path / "store.json"),
        }), encoding="utf-8")
        return path, temp_dir

    def test_version(self, capsys) -> None:
        assert cli.main(["version"]) == 0
        assert f"v{__version__}" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys) -> None:
        assert cli.main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_inspect_view_once(self, tmp_path, capsys) -> None:
        envelope = tmp_path / "msg.json"
        envelope.write_text(json.dumps({
            "key": {"remoteJid": "15551234567@s.whatsapp.net", "id": "A1"},
            "message": {"viewOnceMessageV2": {"message": {
                "videoMessage": {"mimetype": "video/mp4", "caption": "clip"},
            }}},
        }), encoding="utf-8")

        assert cli.main(["inspect", str(envelope)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["variant"] == "viewOnceMessageV2"
        assert output["type"] == "video"
        assert output["caption"] == "clip"

    def test_inspect_ordinary_message(self, tmp_path, capsys) -> None:
        envelope = tmp_path / "msg.json"
        envelope.write_text(json.dumps({"message": {"conversation": "hi"}}), encoding="utf-8")
        assert cli.main(["inspect", str(envelope)]) == 0
        assert "Not a view-once message" in capsys.readouterr().out

    def test_inspect_unsupported_content(self, tmp_path, capsys) -> None:
        envelope = tmp_path / "msg.json"
        envelope.write_text(json.dumps({
            "message": {"documentMessage": {"viewOnce": True, "mimetype": "application/pdf"}},
        }), encoding="utf-8")
        assert cli.main(["inspect", str(envelope)]) == 0
        output = capsys.readouterr().out
        assert "Unsupported view-once content (viewOnce)" in output
        assert "documentMessage" in output

    def test_inspect_unreadable_file(self, tmp_path, capsys) -> None:
        assert cli.main(["inspect", str(tmp_path / "missing.json")]) == 1
        assert "✗" in capsys.readouterr().out

    def test_clean(self, config_file, capsys) -> None:
        path, temp_dir = config_file
        temp_dir.mkdir()
        old = temp_dir / f"{FILE_PREFIX}a_1_image_1.jpg"
        old.write_bytes(b"x")
        stamp = time.time() - 3 * 3600
        os.utime(old, (stamp, stamp))
        (temp_dir / f"{FILE_PREFIX}b_2_image_2.jpg").write_bytes(b"x")

        assert cli.main(["--config", str(path), "clean", "--hours", "1"]) == 0
        assert "Removed 1 of 2" in capsys.readouterr().out
        assert not old.exists()

    def test_config_set_get_delete(self, config_file, capsys) -> None:
        path, _ = config_file
        base = ["--config", str(path), "config"]

        assert cli.main(base + ["set", "viewonce.autoForward", "false"]) == 0
        assert cli.main(base + ["get", "viewonce.autoForward"]) == 0
        assert capsys.readouterr().out.strip().endswith("false")

        assert cli.main(base + ["set", "bot.owner", "15550000000@s.whatsapp.net"]) == 0
        assert cli.main(base + ["get", "bot.owner"]) == 0
        assert '"15550000000@s.whatsapp.net"' in capsys.readouterr().out

        assert cli.main(base + ["delete", "bot.owner"]) == 0
        assert cli.main(base + ["get", "bot.owner"]) == 1
        assert cli.main(base + ["set", "bot.owner"]) == 1
