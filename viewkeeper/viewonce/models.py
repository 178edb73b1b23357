"""Data model for view-once processing"""

import dataclasses
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class MediaKind(Enum):
    """Supported view-once media kinds, in classification order"""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"

    @property
    def node_type(self) -> str:
        """Key of the media node in the content union (e.g. imageMessage)"""
        return f"{self.value}Message"


class ViewOnceVariant(Enum):
    """Encodings the transport uses to mark a message as view-once"""
    WRAPPER_V1 = "viewOnceMessage"
    WRAPPER_V2 = "viewOnceMessageV2"
    EXTENSION_WRAPPER = "viewOnceMessageV2Extension"
    DIRECT_FLAG = "viewOnce"

    @property
    def is_wrapper(self) -> bool:
        return self is not ViewOnceVariant.DIRECT_FLAG


def _parse_timestamp(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, Mapping):
        value = value.get("low")
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class InboundEnvelope:
    """Inbound chat message as delivered by the transport

    `message` is the raw content union; its shape varies by transport version.
    """
    chat_id: str
    sender: str
    message: Mapping[str, Any]
    message_id: str = ""
    from_me: bool = False
    push_name: Optional[str] = None
    timestamp: Optional[int] = None
    quoted: Optional["InboundEnvelope"] = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "InboundEnvelope":
        """Build an envelope from the transport's JSON update shape."""
        key = raw.get("key") or {}
        chat_id = key.get("remoteJid") or ""
        message = raw.get("message") or {}
        return cls(
            chat_id=chat_id,
            sender=key.get("participant") or chat_id,
            message=message,
            message_id=key.get("id") or "",
            from_me=bool(key.get("fromMe", False)),
            push_name=raw.get("pushName"),
            timestamp=_parse_timestamp(raw.get("messageTimestamp")),
            quoted=cls._parse_quoted(chat_id, message),
        )

    @classmethod
    def _parse_quoted(
        cls, chat_id: str, message: Mapping[str, Any]
    ) -> Optional["InboundEnvelope"]:
        """Find the replied-to message in any node's contextInfo."""
        for node in message.values():
            if not isinstance(node, Mapping):
                continue
            context = node.get("contextInfo")
            if not isinstance(context, Mapping):
                continue
            quoted_message = context.get("quotedMessage")
            if not isinstance(quoted_message, Mapping):
                continue
            return cls(
                chat_id=chat_id,
                sender=context.get("participant") or chat_id,
                message=quoted_message,
                message_id=context.get("stanzaId") or "",
            )
        return None


@dataclass(frozen=True)
class MediaRef:
    """Opaque handle to the embedded media node, passed to the chat client"""
    chat_id: str
    message_id: str
    node_type: str
    node: Mapping[str, Any]


@dataclass(frozen=True)
class ViewOnceDescriptor:
    """Extracted and classified view-once media, before download"""
    media_kind: MediaKind
    content_ref: MediaRef
    caption: str
    mime_type: str
    variant: ViewOnceVariant


@dataclass
class MediaPayload:
    """Downloaded (and possibly transcoded) media bytes"""
    media_kind: MediaKind
    data: bytes
    mime_type: str
    caption: str
    suggested_filename: str
    transcoded: bool = False

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class MediaSummary:
    """Payload descriptor reported in a PipelineResult (no bytes)"""
    media_kind: MediaKind
    mime_type: str
    caption: str
    filename: str
    size: int
    transcoded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.media_kind.value,
            "mime_type": self.mime_type,
            "caption": self.caption,
            "filename": self.filename,
            "size": self.size,
            "transcoded": self.transcoded,
        }


@dataclass
class PipelineResult:
    """Outcome of one pipeline run"""
    success: bool
    payload: Optional[MediaSummary] = None
    saved_path: Optional[str] = None
    forwarded: bool = False
    error_message: Optional[str] = None
    chat_id: Optional[str] = None
    sender: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def media_kind(self) -> Optional[MediaKind]:
        return self.payload.media_kind if self.payload else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "payload": self.payload.to_dict() if self.payload else None,
            "saved_path": self.saved_path,
            "forwarded": self.forwarded,
            "error": self.error_message,
            "chat_id": self.chat_id,
            "sender": self.sender,
            "timestamp": self.timestamp,
        }


DEFAULT_TEMP_DIR = "./temp/viewonce"
DEFAULT_MAX_TEMP_AGE = 24 * 60 * 60  # seconds


@dataclass(frozen=True)
class HandlerConfig:
    """Handler toggles; one immutable snapshot is read per pipeline run"""
    auto_forward: bool = True
    save_to_temp: bool = True
    temp_dir: str = DEFAULT_TEMP_DIR
    enable_in_groups: bool = True
    enable_in_private: bool = True
    log_activity: bool = True
    skip_owner: bool = False
    max_temp_age: float = DEFAULT_MAX_TEMP_AGE

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


class HandlerConfigHolder:
    """Holds the current HandlerConfig and swaps it atomically on update"""

    def __init__(self, config: Optional[HandlerConfig] = None):
        self._config = config or HandlerConfig()
        self._lock = threading.Lock()

    def snapshot(self) -> HandlerConfig:
        return self._config

    def update(self, **changes: Any) -> HandlerConfig:
        """Replace the snapshot with one carrying `changes`.

        Raises:
            ValueError: if a key is not a HandlerConfig field
        """
        known = {f.name for f in dataclasses.fields(HandlerConfig)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown handler config keys: {', '.join(sorted(unknown))}")
        with self._lock:
            self._config = dataclasses.replace(self._config, **changes)
            return self._config

