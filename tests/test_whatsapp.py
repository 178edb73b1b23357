"""Tests for the WhatsApp channel adapter and JID helpers."""

from __future__ import annotations

import logging

import pytest

from tests.helpers import GROUP_CHAT, PRIVATE_CHAT, wrapped
from viewkeeper.channels import ChannelStatus, WhatsAppChannel
from viewkeeper.utils.jid import is_group_jid, is_same_user, jid_user, redact_jids
from viewkeeper.utils.pii_filter import JidRedactionFilter
from viewkeeper.viewonce.models import MediaRef


class FakeSocket:
    """Baileys-style socket double with sync and async methods."""

    def __init__(self) -> None:
        self.downloaded = []
        self.sent = []
        self.closed = False

    async def download_media_message(self, message):
        self.downloaded.append(message)
        return b"raw-media"

    def send_message(self, jid, content):
        self.sent.append((jid, content))
        return {"key": {"id": "SENT1"}}

    def close(self):
        self.closed = True


class TestJidHelpers:

    def test_is_group_jid(self) -> None:
        assert is_group_jid(GROUP_CHAT) is True
        assert is_group_jid(PRIVATE_CHAT) is False
        assert is_group_jid("") is False

    def test_jid_user_strips_device_and_server(self) -> None:
        assert jid_user("15551234567:7@s.whatsapp.net") == "15551234567"
        assert jid_user(PRIVATE_CHAT) == "15551234567"

    def test_is_same_user(self) -> None:
        assert is_same_user(PRIVATE_CHAT, "15551234567:3@s.whatsapp.net") is True
        assert is_same_user(PRIVATE_CHAT, GROUP_CHAT) is False
        assert is_same_user(PRIVATE_CHAT, "") is False

    def test_redact_jids(self) -> None:
        text = f"forwarded to {PRIVATE_CHAT} in {GROUP_CHAT}"
        redacted = redact_jids(text)
        assert "15551234567" not in redacted
        assert "1555*******@s.whatsapp.net" in redacted
        assert "1203**************@g.us" in redacted
        assert redact_jids("no identifiers here") == "no identifiers here"

    def test_redaction_filter_masks_message_and_args(self) -> None:
        record = logging.LogRecord(
            "viewkeeper", logging.INFO, __file__, 1,
            f"Forwarded to {PRIVATE_CHAT} (%s, %d)", (GROUP_CHAT, 3), None,
        )
        assert JidRedactionFilter().filter(record) is True
        message = record.getMessage()
        assert "15551234567" not in message
        assert "120363041234567890" not in message
        assert message.endswith(", 3)")


class TestWhatsAppChannel:

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        sock = FakeSocket()
        channel = WhatsAppChannel(sock)
        events = []

        async def on_connected():
            events.append("connected")

        async def on_disconnected():
            events.append("disconnected")

        channel.on("connected", on_connected)
        channel.on("disconnected", on_disconnected)

        await channel.start()
        assert channel.status is ChannelStatus.CONNECTED
        await channel.stop()
        assert channel.status is ChannelStatus.DISCONNECTED
        assert sock.closed is True
        assert events == ["connected", "disconnected"]

    @pytest.mark.asyncio
    async def test_start_failure_sets_error(self) -> None:
        class BrokenSocket(FakeSocket):
            async def start(self):
                raise ConnectionError("auth rejected")

        channel = WhatsAppChannel(BrokenSocket())
        with pytest.raises(ConnectionError):
            await channel.start()
        assert channel.status is ChannelStatus.ERROR

    @pytest.mark.asyncio
    async def test_download_media_rebuilds_message(self) -> None:
        sock = FakeSocket()
        channel = WhatsAppChannel(sock)
        ref = MediaRef(
            chat_id=PRIVATE_CHAT,
            message_id="ABC",
            node_type="imageMessage",
            node={"mimetype": "image/jpeg", "mediaKey": "k"},
        )

        assert await channel.download_media(ref) == b"raw-media"
        assert sock.downloaded == [{
            "key": {"remoteJid": PRIVATE_CHAT, "id": "ABC"},
            "message": {"imageMessage": {"mimetype": "image/jpeg", "mediaKey": "k"}},
        }]

    @pytest.mark.asyncio
    async def test_send_message_and_text(self) -> None:
        sock = FakeSocket()
        channel = WhatsAppChannel(sock)

        ack = await channel.send_message(GROUP_CHAT, {"image": b"x", "caption": "c"})
        await channel.send_text(PRIVATE_CHAT, "hello")

        assert ack == {"key": {"id": "SENT1"}}
        assert sock.sent == [
            (GROUP_CHAT, {"image": b"x", "caption": "c"}),
            (PRIVATE_CHAT, {"text": "hello"}),
        ]

    @pytest.mark.asyncio
    async def test_feed_emits_envelopes(self) -> None:
        channel = WhatsAppChannel(FakeSocket())
        received = []

        async def on_message(envelope):
            received.append(envelope)

        channel.on("message", on_message)
        await channel.feed([
            {"key": {"remoteJid": PRIVATE_CHAT, "id": "M1"}, "message": wrapped("image")},
            {"key": {}, "message": {"conversation": "no chat"}},
            {"key": {"remoteJid": GROUP_CHAT, "id": "M2"}, "message": {"conversation": "hi"}},
        ])

        assert sorted(e.message_id for e in received) == ["M1", "M2"]

    def test_status_hides_secrets(self) -> None:
        channel = WhatsAppChannel(FakeSocket(), {"auth_token": "s3cret", "session": "main"})
        status = channel.get_status()
        assert status["channel"] == "whatsapp"
        assert status["config"] == {"auth_token": "***", "session": "main"}
