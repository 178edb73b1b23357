"""Chat-client capability used by the view-once pipeline"""

from viewkeeper.utils.jid import is_group_jid, jid_user, is_same_user
from .base import Channel, ChannelStatus
from .whatsapp import WhatsAppChannel

__all__ = [
    "Channel",
    "ChannelStatus",
    "WhatsAppChannel",
    "is_group_jid",
    "jid_user",
    "is_same_user",
]
