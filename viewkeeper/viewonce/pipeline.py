"""View-once pipeline orchestration

detect -> owner filter -> extract -> download -> transcode (audio) ->
persist (save_to_temp) -> forward (auto_forward) -> record
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from viewkeeper.observability.metrics import StatsRecorder
from . import detector
from .downloader import MediaDownloader, regenerate_filename
from .errors import DownloadError, PersistError, TranscodeError
from .forwarder import Forwarder
from .models import (
    HandlerConfig,
    HandlerConfigHolder,
    InboundEnvelope,
    MediaPayload,
    MediaSummary,
    PipelineResult,
)
from .store import TempStore
from .transcode import TRANSCODED_MIME_TYPE, MediaTranscoder, needs_transcode

if TYPE_CHECKING:
    from viewkeeper.channels.base import Channel

logger = logging.getLogger(__name__)


def _summarize(payload: MediaPayload, source_mime_type: str) -> MediaSummary:
    return MediaSummary(
        media_kind=payload.media_kind,
        mime_type=source_mime_type,
        caption=payload.caption,
        filename=payload.suggested_filename,
        size=payload.size,
        transcoded=payload.transcoded,
    )


class ViewOncePipeline:
    """Runs one inbound envelope through every stage; never raises

    Runs are independent and may execute concurrently. Each run reads a
    single HandlerConfig snapshot at its start.
    """

    def __init__(
        self,
        client: "Channel",
        config: HandlerConfigHolder,
        stats: StatsRecorder,
        store: Optional[TempStore] = None,
        forwarder: Optional[Forwarder] = None,
        downloader: Optional[MediaDownloader] = None,
        transcoder: Optional[MediaTranscoder] = None,
    ):
        self.client = client
        self.config = config
        self.stats = stats
        self.store = store or TempStore(config)
        self.forwarder = forwarder or Forwarder(client, stats, config)
        self.downloader = downloader or MediaDownloader(client)
        self.transcoder = transcoder or MediaTranscoder()

    async def process(
        self, envelope: InboundEnvelope, is_owner: bool = False
    ) -> Optional[PipelineResult]:
        """Process one envelope.

        Returns:
            None when the envelope is not view-once, is skipped by the owner
            filter, or carries unsupported media; otherwise a PipelineResult
        """
        return await self._run(envelope, is_owner=is_owner, apply_owner_filter=True)

    async def reveal(self, quoted: InboundEnvelope) -> Optional[PipelineResult]:
        """Manual reveal of a replied-to message; no owner filtering."""
        return await self._run(quoted, is_owner=False, apply_owner_filter=False)

    async def _run(
        self,
        envelope: InboundEnvelope,
        is_owner: bool,
        apply_owner_filter: bool,
    ) -> Optional[PipelineResult]:
        cfg = self.config.snapshot()

        if not detector.is_view_once(envelope):
            return None
        if apply_owner_filter and is_owner and cfg.skip_owner:
            self._activity(cfg, f"Skipping owner view-once from {envelope.sender}")
            return None

        try:
            return await self._run_stages(envelope, cfg)
        except Exception as e:
            logger.error(f"Error processing view-once from {envelope.chat_id}: {e}", exc_info=True)
            self.stats.record_error()
            return PipelineResult(
                success=False,
                error_message=str(e),
                chat_id=envelope.chat_id,
                sender=envelope.sender,
            )

    async def _run_stages(
        self, envelope: InboundEnvelope, cfg: HandlerConfig
    ) -> Optional[PipelineResult]:
        descriptor = detector.extract(envelope)
        if descriptor is None:
            self._activity(cfg, f"Unsupported view-once content from {envelope.chat_id}")
            return None

        try:
            payload = await self.downloader.download(descriptor)
        except DownloadError as e:
            logger.error(f"View-once download failed for {envelope.chat_id}: {e}")
            self.stats.record_error()
            return PipelineResult(
                success=False,
                error_message=str(e),
                chat_id=envelope.chat_id,
                sender=envelope.sender,
            )

        source_mime_type = payload.mime_type
        if needs_transcode(payload.media_kind, payload.mime_type):
            try:
                payload.data = await self.transcoder.transcode_async(payload.data, payload.mime_type)
                payload.mime_type = TRANSCODED_MIME_TYPE
                payload.suggested_filename = regenerate_filename(
                    payload.suggested_filename, payload.media_kind, TRANSCODED_MIME_TYPE
                )
                payload.transcoded = True
            except TranscodeError as e:
                logger.warning(f"Audio transcoding failed, using original: {e}")

        saved_path = None
        try:
            loop = asyncio.get_running_loop()
            saved_path = await loop.run_in_executor(
                None, lambda: self.store.save(payload, envelope.chat_id, cfg)
            )
        except PersistError as e:
            logger.error(f"Error saving view-once to temp: {e}")
        if saved_path:
            self.stats.record_saved()

        forwarded = await self.forwarder.forward(envelope.chat_id, payload, cfg)

        self.stats.record_processed()
        self._activity(cfg, f"Processed view-once {payload.media_kind.value} from {envelope.chat_id}")

        return PipelineResult(
            success=True,
            payload=_summarize(payload, source_mime_type),
            saved_path=saved_path,
            forwarded=forwarded,
            chat_id=envelope.chat_id,
            sender=envelope.sender,
        )

    @staticmethod
    def _activity(cfg: HandlerConfig, message: str) -> None:
        if cfg.log_activity:
            logger.debug(f"[ViewOnce] {message}")
