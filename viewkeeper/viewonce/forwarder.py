"""Re-send recovered view-once media through the chat client"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from viewkeeper.utils.jid import is_group_jid
from viewkeeper.observability.metrics import StatsRecorder
from .errors import ForwardError
from .models import HandlerConfig, HandlerConfigHolder, MediaKind, MediaPayload

if TYPE_CHECKING:
    from viewkeeper.channels.base import Channel

logger = logging.getLogger(__name__)

DEFAULT_CAPTION = "🔓 ViewOnce revealed"
DEFAULT_AUDIO_MIME_TYPE = "audio/mp4"


def build_send_content(payload: MediaPayload) -> Optional[Dict[str, Any]]:
    """Transport send payload keyed by media kind; None for unsupported kinds"""
    if payload.media_kind in (MediaKind.IMAGE, MediaKind.VIDEO):
        return {
            payload.media_kind.value: payload.data,
            "caption": payload.caption or DEFAULT_CAPTION,
        }
    if payload.media_kind is MediaKind.AUDIO:
        return {
            "audio": payload.data,
            "mimetype": payload.mime_type or DEFAULT_AUDIO_MIME_TYPE,
        }
    return None


def chat_kind_enabled(chat_id: str, config: HandlerConfig) -> bool:
    if is_group_jid(chat_id):
        return config.enable_in_groups
    return config.enable_in_private


class Forwarder:
    """Sends payloads back into a conversation; never raises"""

    def __init__(
        self,
        client: "Channel",
        stats: StatsRecorder,
        config: Optional[HandlerConfigHolder] = None,
    ):
        self.client = client
        self.stats = stats
        self.config = config or HandlerConfigHolder()

    async def forward(
        self,
        chat_id: str,
        payload: MediaPayload,
        config: Optional[HandlerConfig] = None,
    ) -> bool:
        """Send `payload` to `chat_id`.

        Returns:
            True only if the send call completed; False for disabled
            forwarding, a disabled chat kind, an unsupported kind, or a
            transport error (which is logged and counted)
        """
        cfg = config or self.config.snapshot()
        if not cfg.auto_forward:
            return False
        if not chat_kind_enabled(chat_id, cfg):
            logger.debug(f"Forwarding disabled for chat kind of {chat_id}")
            return False

        content = build_send_content(payload)
        if content is None:
            return False

        try:
            await self._send(chat_id, content)
        except ForwardError as e:
            logger.error(f"Error forwarding view-once {payload.media_kind.value} to {chat_id}: {e}")
            self.stats.record_error()
            return False

        self.stats.record_forwarded()
        if cfg.log_activity:
            logger.debug(f"Forwarded view-once {payload.media_kind.value} to {chat_id}")
        return True

    async def _send(self, chat_id: str, content: Dict[str, Any]) -> None:
        try:
            await self.client.send_message(chat_id, content)
        except Exception as e:
            raise ForwardError(f"Send to {chat_id} failed: {e}", cause=e) from e
