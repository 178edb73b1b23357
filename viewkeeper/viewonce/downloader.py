"""Fetch view-once media bytes through the chat client"""

import logging
import time
from typing import TYPE_CHECKING, Optional, Union

from .errors import DownloadError
from .models import MediaKind, MediaPayload, ViewOnceDescriptor

if TYPE_CHECKING:
    from viewkeeper.channels.base import Channel

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "video/3gpp": "3gp",
    "audio/mp4": "mp3",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
}


def generate_filename(
    kind: Union[MediaKind, str],
    mime_type: Optional[str],
    now_ms: Optional[int] = None,
) -> str:
    """Build `<kind>_<timestamp>.<ext>` from the known MIME table.

    Unknown MIME types use the kind name as the extension. Parameters such
    as `; codecs=opus` are ignored for the lookup.
    """
    kind_name = kind.value if isinstance(kind, MediaKind) else str(kind)
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    base_type = (mime_type or "").split(";", 1)[0].strip().lower()
    ext = EXTENSIONS.get(base_type, kind_name)
    return f"{kind_name}_{timestamp}.{ext}"


def regenerate_filename(
    filename: str, kind: Union[MediaKind, str], mime_type: Optional[str]
) -> str:
    """Rebuild a generated filename for a new MIME type, keeping its timestamp."""
    stem = filename.rsplit(".", 1)[0]
    timestamp = stem.rsplit("_", 1)[-1]
    now_ms = int(timestamp) if timestamp.isdigit() else None
    return generate_filename(kind, mime_type, now_ms=now_ms)


class MediaDownloader:
    """Delegates byte retrieval to the chat client; never retries"""

    def __init__(self, client: "Channel"):
        self.client = client

    async def download(self, descriptor: ViewOnceDescriptor) -> MediaPayload:
        """Download the media referenced by `descriptor`.

        Raises:
            DownloadError: on transport failure, expired reference, or empty content
        """
        ref = descriptor.content_ref
        try:
            data = await self.client.download_media(ref)
        except Exception as e:
            raise DownloadError(
                f"Failed to download {descriptor.media_kind.value}: {e}", cause=e
            ) from e

        if isinstance(data, (bytearray, memoryview)):
            data = bytes(data)
        if not isinstance(data, bytes):
            raise DownloadError(
                f"Chat client returned {type(data).__name__} instead of bytes"
            )
        if not data:
            raise DownloadError(f"Downloaded {descriptor.media_kind.value} is empty")

        logger.debug(f"Downloaded {len(data)} bytes for message {ref.message_id}")
        return MediaPayload(
            media_kind=descriptor.media_kind,
            data=data,
            mime_type=descriptor.mime_type,
            caption=descriptor.caption,
            suggested_filename=generate_filename(descriptor.media_kind, descriptor.mime_type),
        )
