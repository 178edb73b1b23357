"""Conversation identifier (JID) helpers"""

import re

GROUP_SUFFIX = "@g.us"


def is_group_jid(jid: str) -> bool:
    return (jid or "").endswith(GROUP_SUFFIX)


def jid_user(jid: str) -> str:
    """User part of a JID, without device suffix or server.

    '12345:7@s.whatsapp.net' -> '12345'
    """
    user = (jid or "").split("@", 1)[0]
    return user.split(":", 1)[0]


def is_same_user(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a == b or jid_user(a) == jid_user(b)


_JID_PATTERN = re.compile(r"\b(\d{4})(\d+)((?::\d+)?@(?:s\.whatsapp\.net|c\.us|g\.us|lid))")


def redact_jids(text: str) -> str:
    """Mask all but the first four digits of phone-number JIDs in `text`."""
    if not text:
        return text
    return _JID_PATTERN.sub(lambda m: m.group(1) + "*" * len(m.group(2)) + m.group(3), text)
