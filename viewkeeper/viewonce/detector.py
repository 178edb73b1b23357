"""View-once detection and media extraction

The transport marks view-once media in several incompatible ways:

    {"viewOnceMessage": {"message": {"imageMessage": {...}}}}
    {"viewOnceMessageV2": {"message": {"videoMessage": {...}}}}
    {"viewOnceMessageV2Extension": {"message": {"audioMessage": {...}}}}
    {"audioMessage": {"viewOnce": true, ...}}

`detect` resolves the variant once; `extract` unwraps it. Both are pure.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from .errors import ExtractionError
from .models import (
    InboundEnvelope,
    MediaKind,
    MediaRef,
    ViewOnceDescriptor,
    ViewOnceVariant,
)

WRAPPER_VARIANTS = (
    ViewOnceVariant.WRAPPER_V1,
    ViewOnceVariant.WRAPPER_V2,
    ViewOnceVariant.EXTENSION_WRAPPER,
)

# Classification order: first match wins
SUPPORTED_KINDS = (MediaKind.IMAGE, MediaKind.VIDEO, MediaKind.AUDIO)

DEFAULT_MIME_TYPES = {
    MediaKind.IMAGE: "image/jpeg",
    MediaKind.VIDEO: "video/mp4",
    MediaKind.AUDIO: "audio/ogg",
}


@dataclass(frozen=True)
class ViewOnceMatch:
    """Detected variant plus the content mapping that holds the media node"""
    variant: ViewOnceVariant
    content: Mapping[str, Any]


def _as_mapping(value: Any) -> Optional[Mapping[str, Any]]:
    return value if isinstance(value, Mapping) else None


def detect(envelope: InboundEnvelope) -> Optional[ViewOnceMatch]:
    """Resolve which view-once encoding, if any, the envelope uses."""
    message = _as_mapping(envelope.message)
    if not message:
        return None

    for variant in WRAPPER_VARIANTS:
        wrapper = _as_mapping(message.get(variant.value))
        if wrapper is not None:
            return ViewOnceMatch(variant, _as_mapping(wrapper.get("message")) or {})

    # Any flagged node counts, including kinds extract() cannot handle
    for value in message.values():
        node = _as_mapping(value)
        if node is not None and node.get("viewOnce") is True:
            return ViewOnceMatch(ViewOnceVariant.DIRECT_FLAG, message)

    return None


def is_view_once(envelope: InboundEnvelope) -> bool:
    return detect(envelope) is not None


def _classify(
    content: Mapping[str, Any], require_flag: bool
) -> Optional[Tuple[MediaKind, Mapping[str, Any]]]:
    for kind in SUPPORTED_KINDS:
        node = _as_mapping(content.get(kind.node_type))
        if node is None:
            continue
        if require_flag and node.get("viewOnce") is not True:
            continue
        return kind, node
    return None


def extract(envelope: InboundEnvelope) -> Optional[ViewOnceDescriptor]:
    """Locate and classify the embedded media node.

    Returns None for ordinary messages and for view-once envelopes whose
    inner content is missing or not an image, video or audio node.
    """
    match = detect(envelope)
    if match is None:
        return None

    if match.variant.is_wrapper:
        classified = _classify(match.content, require_flag=False)
    elif match.variant is ViewOnceVariant.DIRECT_FLAG:
        classified = _classify(match.content, require_flag=True)
    else:
        raise AssertionError(f"Unhandled view-once variant: {match.variant}")

    if classified is None:
        return None
    kind, node = classified

    caption = node.get("caption")
    mime_type = node.get("mimetype")
    return ViewOnceDescriptor(
        media_kind=kind,
        content_ref=MediaRef(
            chat_id=envelope.chat_id,
            message_id=envelope.message_id,
            node_type=kind.node_type,
            node=node,
        ),
        caption=caption if isinstance(caption, str) else "",
        mime_type=mime_type if isinstance(mime_type, str) and mime_type else DEFAULT_MIME_TYPES[kind],
        variant=match.variant,
    )


def require(envelope: InboundEnvelope) -> ViewOnceDescriptor:
    """Like `extract`, but explain why nothing could be extracted.

    Raises:
        ExtractionError: if the envelope is not view-once, or its media node
            is missing or of an unsupported kind
    """
    match = detect(envelope)
    if match is None:
        raise ExtractionError("Not a view-once message")
    descriptor = extract(envelope)
    if descriptor is None:
        node_types = ", ".join(sorted(match.content)) or "no content"
        raise ExtractionError(
            f"Unsupported view-once content ({match.variant.value}): {node_types}"
        )
    return descriptor
