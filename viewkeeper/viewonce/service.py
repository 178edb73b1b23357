"""View-once module lifecycle: wiring, message hook, startup/shutdown"""

import logging
from typing import Any, Callable, Dict, List, Optional

from viewkeeper.automation.scheduler import CleanupScheduler
from viewkeeper.channels.base import Channel
from viewkeeper.utils.jid import is_same_user
from viewkeeper.config import Settings
from viewkeeper.config_store import ConfigStore, get_config_store
from viewkeeper.observability.metrics import StatsRecorder
from . import detector
from .models import HandlerConfig, HandlerConfigHolder, InboundEnvelope, PipelineResult
from .pipeline import ViewOncePipeline
from .store import TempStore
from .transcode import MediaTranscoder

logger = logging.getLogger(__name__)

# Config store key (under "viewonce.") -> HandlerConfig field
STORE_KEYS = {
    "autoForward": "auto_forward",
    "saveToTemp": "save_to_temp",
    "enableInGroups": "enable_in_groups",
    "enableInPrivate": "enable_in_private",
    "logActivity": "log_activity",
    "skipOwner": "skip_owner",
}
FIELD_KEYS = {field: key for key, field in STORE_KEYS.items()}


def load_handler_config(settings: Settings, store: ConfigStore) -> HandlerConfig:
    """Settings give the defaults; stored viewonce.* toggles win."""
    base = settings.handler_config()
    overrides = {}
    for key, field in STORE_KEYS.items():
        value = store.get(f"viewonce.{key}")
        if isinstance(value, bool):
            overrides[field] = value
    return HandlerConfigHolder(base).update(**overrides)


class ViewOnceService:
    """Hosts the view-once pipeline inside a bot process"""

    def __init__(
        self,
        channel: Channel,
        settings: Optional[Settings] = None,
        config_store: Optional[ConfigStore] = None,
        stats: Optional[StatsRecorder] = None,
    ):
        self.channel = channel
        self.settings = settings or Settings()
        self.config_store = config_store or get_config_store(self.settings.config_store_path)
        self.config = HandlerConfigHolder(load_handler_config(self.settings, self.config_store))
        self.stats = stats or StatsRecorder()
        self.store = TempStore(self.config)
        self.pipeline = ViewOncePipeline(
            channel,
            self.config,
            self.stats,
            store=self.store,
            transcoder=MediaTranscoder(
                ffmpeg_path=self.settings.ffmpeg_path,
                timeout=self.settings.transcode_timeout,
            ),
        )
        self.scheduler = CleanupScheduler(self.store, cron_expression=self.settings.cleanup_cron)
        self.event_handlers: Dict[str, List[Callable]] = {}
        self._initialized = False

    @property
    def owner(self) -> str:
        return self.config_store.get("bot.owner") or self.settings.owner

    def is_owner(self, jid: str) -> bool:
        return is_same_user(jid, self.owner)

    async def init(self):
        """Hook into the channel and start background cleanup"""
        if self._initialized:
            return
        self.channel.on("message", self.handle_message)
        await self.scheduler.start()
        self._initialized = True
        logger.info("✓ ViewOnce module initialized")

    async def destroy(self):
        """Stop background cleanup"""
        await self.scheduler.stop()
        self._initialized = False
        logger.info("✓ ViewOnce module destroyed")

    async def handle_message(self, envelope: InboundEnvelope) -> Optional[PipelineResult]:
        """Automatic hook for every inbound message; never raises"""
        try:
            if not detector.is_view_once(envelope):
                return None
            logger.debug("ViewOnce message detected")
            # Messages sent from the bot's own account are the owner's
            is_owner = envelope.from_me or self.is_owner(envelope.sender)
            result = await self.pipeline.process(envelope, is_owner=is_owner)
            if result and result.success:
                logger.info(
                    f"✓ ViewOnce handled: {result.media_kind.value} from {result.sender}"
                )
                await self.emit("captured", result)
            return result
        except Exception as e:
            logger.error(f"✗ ViewOnce handling failed: {e}", exc_info=True)
            return None

    async def reveal(self, quoted: InboundEnvelope) -> Optional[PipelineResult]:
        return await self.pipeline.reveal(quoted)

    def update_config(self, **changes: Any) -> HandlerConfig:
        """Swap in a new config snapshot and persist toggles to the store"""
        snapshot = self.config.update(**changes)
        for field, value in changes.items():
            key = FIELD_KEYS.get(field)
            if key:
                self.config_store.set(f"viewonce.{key}", value)
        logger.info(f"ViewOnce configuration updated: {changes}")
        return snapshot

    def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.get_stats()
        stats["temp_dir"] = self.config.snapshot().temp_dir
        stats["temp_dir_exists"] = self.store.directory_exists()
        stats["config"] = self.config.snapshot().to_dict()
        stats["cleanup"] = self.scheduler.get_stats()
        return stats

    def on(self, event: str, handler: Callable):
        self.event_handlers.setdefault(event, []).append(handler)

    async def emit(self, event: str, *args, **kwargs):
        for handler in self.event_handlers.get(event, []):
            try:
                await handler(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event handler for '{event}': {e}", exc_info=True)
