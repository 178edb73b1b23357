"""Error taxonomy for the view-once pipeline"""

from typing import Optional


class ViewOnceError(Exception):
    """Base class for pipeline stage failures."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class ExtractionError(ViewOnceError):
    """Envelope is malformed or carries an unsupported media kind."""


class DownloadError(ViewOnceError):
    """Media bytes could not be fetched from the chat client."""


class TranscodeError(ViewOnceError):
    """External codec process failed or its output could not be read."""


class PersistError(ViewOnceError):
    """Payload could not be written to the temp directory."""


class ForwardError(ViewOnceError):
    """Send call to the chat client failed."""
