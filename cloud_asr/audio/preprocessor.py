"""AudioPreprocessor — downmixes oversized audio with ffmpeg before upload."""
import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from cloud_asr.audio.resolver import remove_file
from cloud_asr.constants import (
    FFMPEG_BINARY,
    FFMPEG_BITRATE,
    FFMPEG_CHANNELS,
    FFMPEG_SAMPLE_RATE,
    FFMPEG_STDERR_TAIL,
    PREPROCESSED_MIME_TYPE,
    PREPROCESSED_SUFFIX,
    TEMP_FILE_PREFIX,
)
from cloud_asr.errors import PreprocessingError
from cloud_asr.models import ResolvedAudioFile

logger = logging.getLogger(__name__)


def build_ffmpeg_args(ffmpeg: str, source: Path, target: Path) -> list[str]:
    """Argument list for a mono, 16 kHz, 32 kbps re-encode that overwrites ``target``."""
    return [
        ffmpeg,
        "-i", str(source),
        "-ac", FFMPEG_CHANNELS,
        "-ar", FFMPEG_SAMPLE_RATE,
        "-b:a", FFMPEG_BITRATE,
        "-y",
        str(target),
    ]


class AudioPreprocessor:

    def __init__(self, ffmpeg_path: str = FFMPEG_BINARY, temp_dir: Optional[str] = None) -> None:
        self._ffmpeg = ffmpeg_path
        self._temp_dir = temp_dir

    async def prepare(self, file: ResolvedAudioFile, threshold: int) -> ResolvedAudioFile:
        """Return ``file`` untouched when small enough, else a new owned, re-encoded copy."""
        size = file.size
        if size <= threshold:
            return file

        logger.info(
            "Downsampling %s (%.1fMB > %.1fMB threshold)",
            file.path.name, size / 1024 / 1024, threshold / 1024 / 1024,
        )
        fd, tmp_path = tempfile.mkstemp(
            suffix=PREPROCESSED_SUFFIX, prefix=TEMP_FILE_PREFIX, dir=self._temp_dir
        )
        os.close(fd)
        target = Path(tmp_path)

        try:
            await self._run_ffmpeg(file.path, target)
        except BaseException:
            remove_file(target)
            raise

        logger.info("Downsampled to %.1fMB", target.stat().st_size / 1024 / 1024)
        return ResolvedAudioFile(path=target, mime_type=PREPROCESSED_MIME_TYPE, owned=True)

    async def _run_ffmpeg(self, source: Path, target: Path) -> None:
        args = build_ffmpeg_args(self._ffmpeg, source, target)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise PreprocessingError(
                f"Failed to run ffmpeg. Is it installed? Error: {exc}"
            ) from exc

        _, stderr = await process.communicate()

        match process.returncode:
            case 0:
                pass
            case code:
                err = stderr.decode(errors="replace")[-FFMPEG_STDERR_TAIL:] if stderr else ""
                logger.error("ffmpeg exited with code %s", code)
                raise PreprocessingError(f"ffmpeg failed with code {code}", err.strip())
