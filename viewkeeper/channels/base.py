"""Chat-client contract consumed by the view-once pipeline"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping

from viewkeeper.viewonce.models import MediaRef

logger = logging.getLogger(__name__)

# Config keys containing any of these are masked in get_status()
SECRET_MARKERS = ("key", "token", "secret", "auth")


class ChannelStatus(Enum):
    """Transport connection state"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class Channel(ABC):
    """A chat transport that can fetch embedded media and send content

    Inbound traffic is delivered through the event registry: adapters emit
    'message' with an InboundEnvelope, plus 'connected', 'disconnected' and
    'error' as their state changes.
    """

    def __init__(self, channel_name: str, config: Dict[str, Any]):
        """
        Args:
            channel_name: Transport name, e.g. 'whatsapp'
            config: Adapter options; secrets are masked in get_status()
        """
        self.channel_name = channel_name
        self.config = config
        self.status = ChannelStatus.DISCONNECTED
        self.event_handlers: Dict[str, List[Callable]] = {}

    @abstractmethod
    async def start(self):
        """Connect the transport"""

    @abstractmethod
    async def stop(self):
        """Disconnect the transport"""

    @abstractmethod
    async def download_media(self, ref: MediaRef) -> bytes:
        """Fetch the raw bytes behind an extracted media node

        Raises:
            Exception: expired or invalid reference, or transport failure
        """

    @abstractmethod
    async def send_message(self, chat_id: str, content: Mapping[str, Any]) -> Any:
        """Send tagged content to a conversation

        `content` is one of {"text": str}, {"image"|"video": bytes, "caption": str}
        or {"audio": bytes, "mimetype": str}. Returns the transport's
        acknowledgement; raises on transport error.
        """

    async def send_text(self, chat_id: str, text: str) -> Any:
        return await self.send_message(chat_id, {"text": text})

    def on(self, event: str, handler: Callable):
        """Subscribe an async handler to `event`"""
        self.event_handlers.setdefault(event, []).append(handler)
        logger.debug(f"Handler subscribed to '{event}' on {self.channel_name}")

    async def emit(self, event: str, *args, **kwargs):
        """Call every handler for `event` in order; a failing handler is logged and skipped"""
        for handler in self.event_handlers.get(event, []):
            try:
                await handler(*args, **kwargs)
            except Exception as e:
                logger.error(f"{self.channel_name} '{event}' handler failed: {e}", exc_info=True)

    def _masked_config(self) -> Dict[str, Any]:
        return {
            k: "***" if any(marker in k.lower() for marker in SECRET_MARKERS) else v
            for k, v in self.config.items()
        }

    def get_status(self) -> Dict[str, Any]:
        return {
            "channel": self.channel_name,
            "status": self.status.value,
            "config": self._masked_config(),
        }
