"""FileResolver — turns a request's file reference into a concrete local file."""
import base64
import binascii
import logging
import os
import tempfile
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles

from cloud_asr.constants import (
    DEFAULT_MIME_TYPE,
    MSG_MISSING_FILE_NAME,
    MSG_MISSING_FILE_SOURCE,
    READ_CHUNK_SIZE,
    SUPPORTED_FORMATS,
    TEMP_FILE_PREFIX,
)
from cloud_asr.errors import (
    InvalidPayloadError,
    MissingParameterError,
    NotFoundError,
    UnsupportedFormatError,
)
from cloud_asr.models import ResolvedAudioFile, TranscriptionRequest

logger = logging.getLogger(__name__)


def validate_extension(file_name: str) -> str:
    """Return the lower-cased extension of ``file_name`` or raise UnsupportedFormatError."""
    ext = Path(file_name).suffix.lower()
    match ext in SUPPORTED_FORMATS:
        case True:
            return ext
        case False:
            raise UnsupportedFormatError(ext, tuple(SUPPORTED_FORMATS))


def mime_type_for(file_name: str | Path) -> str:
    return SUPPORTED_FORMATS.get(Path(file_name).suffix.lower(), DEFAULT_MIME_TYPE)


def remove_file(path: Path) -> None:
    """Best-effort delete; never raises."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Temp file cleanup failed for %s: %s", path, exc)


async def iter_chunks(path: Path, chunk_size: int = READ_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield the file in ``chunk_size`` pieces without blocking the event loop."""
    async with aiofiles.open(path, "rb") as fh:
        while chunk := await fh.read(chunk_size):
            yield chunk


async def read_bytes(path: Path) -> bytes:
    async with aiofiles.open(path, "rb") as fh:
        return await fh.read()


async def read_base64(path: Path) -> str:
    return base64.standard_b64encode(await read_bytes(path)).decode()


class FileResolver:

    def __init__(self, temp_dir: Optional[str] = None) -> None:
        self._temp_dir = temp_dir

    def resolve(self, request: TranscriptionRequest) -> ResolvedAudioFile:
        match (request.file_path, request.file_content):
            case (str() as path, _) if path:
                return self._resolve_local(path)
            case (_, str() as content) if content:
                return self._resolve_inline(content, request.file_name)
            case _:
                raise MissingParameterError(MSG_MISSING_FILE_SOURCE)

    def cleanup(self, file: ResolvedAudioFile) -> None:
        match file.owned:
            case True:
                remove_file(file.path)
            case False:
                pass

    def _resolve_local(self, file_path: str) -> ResolvedAudioFile:
        path = Path(file_path).expanduser()
        if not path.is_file():
            raise NotFoundError(file_path)
        ext = validate_extension(path.name)
        return ResolvedAudioFile(path=path, mime_type=SUPPORTED_FORMATS[ext], owned=False)

    def _resolve_inline(self, content: str, file_name: Optional[str]) -> ResolvedAudioFile:
        if not file_name:
            raise MissingParameterError(MSG_MISSING_FILE_NAME)
        ext = validate_extension(file_name)

        try:
            data = base64.b64decode("".join(content.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidPayloadError(file_name, exc) from exc

        fd, tmp_path = tempfile.mkstemp(suffix=ext, prefix=TEMP_FILE_PREFIX, dir=self._temp_dir)
        path = Path(tmp_path)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
        except OSError:
            remove_file(path)
            raise

        logger.debug("Wrote %d bytes of inline audio to %s", len(data), path)
        return ResolvedAudioFile(path=path, mime_type=SUPPORTED_FORMATS[ext], owned=True)
