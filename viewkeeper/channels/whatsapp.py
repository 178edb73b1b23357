"""WhatsApp channel implementation

Adapts a Baileys-style socket bridge. The socket is injected and must expose
`download_media_message(message)` and `send_message(jid, content)`, either
sync or async; `start()` and `close()` are optional.
"""

import asyncio
import inspect
import logging
from typing import Any, Mapping, Optional

from viewkeeper.viewonce.models import InboundEnvelope, MediaRef
from .base import Channel, ChannelStatus

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class WhatsAppChannel(Channel):
    """WhatsApp messaging channel over an injected socket"""

    def __init__(self, sock: Any, config: Optional[Mapping[str, Any]] = None):
        super().__init__("whatsapp", dict(config or {}))
        self.sock = sock

    async def start(self):
        """Start WhatsApp channel"""
        logger.info("Starting WhatsApp channel...")
        self.status = ChannelStatus.CONNECTING
        try:
            starter = getattr(self.sock, "start", None)
            if callable(starter):
                await _maybe_await(starter())
        except Exception as e:
            logger.error(f"Failed to start WhatsApp channel: {e}", exc_info=True)
            self.status = ChannelStatus.ERROR
            await self.emit("error", error=str(e))
            raise
        self.status = ChannelStatus.CONNECTED
        await self.emit("connected")
        logger.info("✓ WhatsApp channel started")

    async def stop(self):
        """Stop WhatsApp channel"""
        logger.info("Stopping WhatsApp channel...")
        closer = getattr(self.sock, "close", None)
        if callable(closer):
            try:
                await _maybe_await(closer())
            except Exception as e:
                logger.warning(f"Error during WhatsApp shutdown: {e}")
        self.status = ChannelStatus.DISCONNECTED
        await self.emit("disconnected")
        logger.info("✓ WhatsApp channel stopped")

    async def download_media(self, ref: MediaRef) -> bytes:
        message = {
            "key": {"remoteJid": ref.chat_id, "id": ref.message_id},
            "message": {ref.node_type: dict(ref.node)},
        }
        return await _maybe_await(self.sock.download_media_message(message))

    async def send_message(self, chat_id: str, content: Mapping[str, Any]) -> Any:
        return await _maybe_await(self.sock.send_message(chat_id, dict(content)))

    async def _on_message(self, raw: Mapping[str, Any]):
        """Convert a raw socket update into an envelope and dispatch it"""
        try:
            envelope = InboundEnvelope.from_raw(raw)
        except Exception as e:
            logger.debug(f"Skipping malformed WhatsApp update: {e}")
            return
        if not envelope.chat_id:
            return
        await self.emit("message", envelope)

    async def feed(self, updates) -> None:
        """Dispatch a batch of raw updates concurrently"""
        await asyncio.gather(*(self._on_message(u) for u in updates))
