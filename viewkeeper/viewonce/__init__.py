"""View-once pipeline: detection, download, transcoding, temp storage, forwarding"""

from .detector import detect, extract, is_view_once
from .downloader import MediaDownloader, generate_filename
from .errors import (
    DownloadError,
    ExtractionError,
    ForwardError,
    PersistError,
    TranscodeError,
    ViewOnceError,
)
from .forwarder import Forwarder
from .models import (
    HandlerConfig,
    HandlerConfigHolder,
    InboundEnvelope,
    MediaKind,
    MediaPayload,
    PipelineResult,
    ViewOnceDescriptor,
    ViewOnceVariant,
)
from .pipeline import ViewOncePipeline
from .store import TempStore
from .transcode import MediaTranscoder

__all__ = [
    "detect", "extract", "is_view_once",
    "MediaDownloader", "generate_filename",
    "ViewOnceError", "ExtractionError", "DownloadError", "TranscodeError",
    "PersistError", "ForwardError",
    "Forwarder",
    "HandlerConfig", "HandlerConfigHolder", "InboundEnvelope", "MediaKind",
    "MediaPayload", "PipelineResult", "ViewOnceDescriptor", "ViewOnceVariant",
    "ViewOncePipeline",
    "TempStore",
    "MediaTranscoder",
]
