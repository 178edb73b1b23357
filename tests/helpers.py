"""Test doubles and envelope builders."""

from __future__ import annotations

from typing import Any, Mapping

from viewkeeper.channels.base import Channel, ChannelStatus
from viewkeeper.viewonce.models import InboundEnvelope, MediaRef

PRIVATE_CHAT = "15551234567@s.whatsapp.net"
GROUP_CHAT = "120363041234567890@g.us"
OWNER = "15559876543@s.whatsapp.net"


class FakeChannel(Channel):
    """Channel that serves canned media bytes and records sends."""

    def __init__(self, media: Any = b"media-bytes") -> None:
        super().__init__("fake", {})
        self.media = media
        self.download_error: Exception | None = None
        self.send_error: Exception | None = None
        self.downloads: list[MediaRef] = []
        self.sent: list[tuple[str, dict[str, Any]]] = []

    async def start(self) -> None:
        self.status = ChannelStatus.CONNECTED

    async def stop(self) -> None:
        self.status = ChannelStatus.DISCONNECTED

    async def download_media(self, ref: MediaRef) -> bytes:
        self.downloads.append(ref)
        if self.download_error is not None:
            raise self.download_error
        return self.media

    async def send_message(self, chat_id: str, content: Mapping[str, Any]) -> Any:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((chat_id, dict(content)))
        return {"status": "ok"}

    @property
    def sent_texts(self) -> list[str]:
        return [content["text"] for _, content in self.sent if "text" in content]

    @property
    def sent_media(self) -> list[tuple[str, dict[str, Any]]]:
        return [(chat, content) for chat, content in self.sent if "text" not in content]


def wrapped(kind: str, wrapper: str = "viewOnceMessage", **node: Any) -> dict[str, Any]:
    """Content union with a media node behind a view-once wrapper."""
    return {wrapper: {"message": {f"{kind}Message": dict(node)}}}


def flagged(kind: str, **node: Any) -> dict[str, Any]:
    """Content union with a media node carrying viewOnce=true."""
    return {f"{kind}Message": {"viewOnce": True, **node}}


def make_envelope(
    message: Mapping[str, Any],
    chat_id: str = PRIVATE_CHAT,
    sender: str | None = None,
    **kwargs: Any,
) -> InboundEnvelope:
    return InboundEnvelope(
        chat_id=chat_id,
        sender=sender or chat_id,
        message=message,
        message_id=kwargs.pop("message_id", "MSG1"),
        **kwargs,
    )
