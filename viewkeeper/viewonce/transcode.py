"""Audio transcoding via an external ffmpeg process"""

import asyncio
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Union

from .errors import TranscodeError
from .models import MediaKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60  # seconds
TRANSCODED_MIME_TYPE = "audio/mpeg"


def is_ogg(mime_type: Optional[str]) -> bool:
    return "ogg" in (mime_type or "").lower()


def needs_transcode(kind: Union[MediaKind, str], mime_type: Optional[str]) -> bool:
    """Only Ogg audio is converted; everything else passes through."""
    kind_name = kind.value if isinstance(kind, MediaKind) else str(kind)
    return kind_name == MediaKind.AUDIO.value and is_ogg(mime_type)


class MediaTranscoder:
    """Converts Ogg audio to MP3 with ffmpeg"""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout: float = DEFAULT_TIMEOUT):
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def transcode(self, data: bytes, mime_type: Optional[str]) -> bytes:
        """Return MP3 bytes for Ogg input, or `data` unchanged otherwise.

        Both temporary files live in a scoped directory that is removed on
        every exit path, including timeout and spawn failure.

        Raises:
            TranscodeError: if ffmpeg cannot be started, exits non-zero,
                times out, or leaves no readable output
        """
        if not is_ogg(mime_type):
            return data

        with tempfile.TemporaryDirectory(prefix="viewkeeper_") as tmp:
            input_path = Path(tmp) / "input.ogg"
            output_path = Path(tmp) / "output.mp3"
            input_path.write_bytes(data)
            self._run_ffmpeg(input_path, output_path)
            try:
                converted = output_path.read_bytes()
            except OSError as e:
                raise TranscodeError(f"Could not read transcoded audio: {e}", cause=e) from e

        if not converted:
            raise TranscodeError("ffmpeg produced empty output")
        logger.debug(f"Transcoded {len(data)} bytes of Ogg audio to {len(converted)} bytes MP3")
        return converted

    def _run_ffmpeg(self, input_path: Path, output_path: Path) -> None:
        command = [
            self.ffmpeg_path,
            "-y",
            "-loglevel", "error",
            "-i", str(input_path),
            str(output_path),
        ]
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise TranscodeError(f"ffmpeg not found at '{self.ffmpeg_path}'", cause=e) from e
        except subprocess.TimeoutExpired as e:
            raise TranscodeError(f"ffmpeg timed out after {self.timeout}s", cause=e) from e
        except OSError as e:
            raise TranscodeError(f"Could not start ffmpeg: {e}", cause=e) from e

        if result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
            raise TranscodeError(
                f"ffmpeg exited with code {result.returncode}: {stderr[-300:]}"
            )

    async def transcode_async(self, data: bytes, mime_type: Optional[str]) -> bytes:
        """Run `transcode` in a worker thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.transcode(data, mime_type))
