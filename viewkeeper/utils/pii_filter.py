"""Logging filter that masks phone-number JIDs in log records."""

import logging

from viewkeeper.utils.jid import redact_jids


class JidRedactionFilter(logging.Filter):
    """Masks JIDs in the message and any string arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_jids(str(record.msg))
        if isinstance(record.args, tuple):
            record.args = tuple(redact_jids(a) if isinstance(a, str) else a for a in record.args)
        chat_id = getattr(record, "chat_id", None)
        if isinstance(chat_id, str):
            record.chat_id = redact_jids(chat_id)
        return True
