"""FileResolver tests"""
import base64

import pytest

from cloud_asr.audio.resolver import (
    FileResolver,
    iter_chunks,
    mime_type_for,
    read_base64,
    validate_extension,
)
from cloud_asr.constants import SUPPORTED_FORMATS
from cloud_asr.errors import (
    InvalidPayloadError,
    MissingParameterError,
    NotFoundError,
    UnsupportedFormatError,
)
from cloud_asr.models import TranscriptionRequest

SUPPORTED = sorted(ext.lstrip(".") for ext in SUPPORTED_FORMATS)


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode()


# ── local paths ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize("ext", SUPPORTED)
def test_local_supported_extension_is_borrowed(tmp_path, ext):
    audio = tmp_path / f"clip.{ext}"
    audio.write_bytes(b"audio")

    resolved = FileResolver().resolve(TranscriptionRequest(file_path=str(audio)))

    assert resolved.path == audio
    assert resolved.owned is False
    assert resolved.mime_type == SUPPORTED_FORMATS[f".{ext}"]


def test_local_extension_is_case_insensitive(tmp_path):
    audio = tmp_path / "LOUD.MP3"
    audio.write_bytes(b"audio")

    resolved = FileResolver().resolve(TranscriptionRequest(file_path=str(audio)))

    assert resolved.mime_type == "audio/mp3"


@pytest.mark.parametrize("name", ["notes.txt", "video.mp4", "archive.tar.gz", "noext"])
def test_local_unsupported_extension_fails(tmp_path, name):
    bogus = tmp_path / name
    bogus.write_bytes(b"data")

    with pytest.raises(UnsupportedFormatError) as exc_info:
        FileResolver().resolve(TranscriptionRequest(file_path=str(bogus)))

    assert ".mp3" in str(exc_info.value)


def test_local_missing_file_fails(tmp_path):
    with pytest.raises(NotFoundError, match="File not found"):
        FileResolver().resolve(TranscriptionRequest(file_path=str(tmp_path / "gone.wav")))


def test_not_found_error_is_a_file_not_found_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        FileResolver().resolve(TranscriptionRequest(file_path=str(tmp_path / "gone.wav")))


def test_borrowed_file_survives_cleanup(tmp_path):
    audio = tmp_path / "keep.wav"
    audio.write_bytes(b"audio")
    resolver = FileResolver()

    resolver.cleanup(resolver.resolve(TranscriptionRequest(file_path=str(audio))))

    assert audio.exists()


# ── inline payloads ───────────────────────────────────────────────────────────


def test_inline_payload_written_to_owned_temp_file(tmp_path):
    resolver = FileResolver(temp_dir=str(tmp_path))
    request = TranscriptionRequest(file_content=encode(b"RIFFdata"), file_name="memo.wav")

    resolved = resolver.resolve(request)

    assert resolved.owned is True
    assert resolved.path.suffix == ".wav"
    assert resolved.path.read_bytes() == b"RIFFdata"
    assert resolved.mime_type == "audio/wav"


def test_inline_payload_names_are_unique(tmp_path):
    resolver = FileResolver(temp_dir=str(tmp_path))
    request = TranscriptionRequest(file_content=encode(b"x"), file_name="memo.ogg")

    first = resolver.resolve(request)
    second = resolver.resolve(request)

    assert first.path != second.path


def test_inline_payload_tolerates_line_wrapped_base64(tmp_path):
    data = bytes(range(256)) * 4
    wrapped = "\n".join(encode(data)[i:i + 76] for i in range(0, len(encode(data)), 76))

    resolved = FileResolver(temp_dir=str(tmp_path)).resolve(
        TranscriptionRequest(file_content=wrapped, file_name="a.flac")
    )

    assert resolved.path.read_bytes() == data


def test_inline_payload_without_file_name_fails(tmp_path):
    with pytest.raises(MissingParameterError, match="file_name"):
        FileResolver(temp_dir=str(tmp_path)).resolve(
            TranscriptionRequest(file_content=encode(b"x"))
        )
    assert list(tmp_path.iterdir()) == []


def test_inline_payload_unsupported_name_writes_nothing(tmp_path):
    with pytest.raises(UnsupportedFormatError):
        FileResolver(temp_dir=str(tmp_path)).resolve(
            TranscriptionRequest(file_content=encode(b"x"), file_name="doc.pdf")
        )
    assert list(tmp_path.iterdir()) == []


def test_inline_payload_invalid_base64_fails(tmp_path):
    with pytest.raises(InvalidPayloadError):
        FileResolver(temp_dir=str(tmp_path)).resolve(
            TranscriptionRequest(file_content="not base64!!", file_name="memo.mp3")
        )
    assert list(tmp_path.iterdir()) == []


def test_cleanup_removes_owned_file(tmp_path):
    resolver = FileResolver(temp_dir=str(tmp_path))
    resolved = resolver.resolve(TranscriptionRequest(file_content=encode(b"x"), file_name="m.aac"))

    resolver.cleanup(resolved)

    assert not resolved.path.exists()


def test_cleanup_is_silent_when_file_already_gone(tmp_path):
    resolver = FileResolver(temp_dir=str(tmp_path))
    resolved = resolver.resolve(TranscriptionRequest(file_content=encode(b"x"), file_name="m.aac"))
    resolved.path.unlink()

    resolver.cleanup(resolved)


def test_no_source_fails():
    with pytest.raises(MissingParameterError):
        FileResolver().resolve(TranscriptionRequest())


# ── helpers ───────────────────────────────────────────────────────────────────


def test_validate_extension_returns_lowercase():
    assert validate_extension("Song.WEBM") == ".webm"


def test_mime_type_for_m4a_and_mpga():
    assert mime_type_for("a.m4a") == "audio/mp4"
    assert mime_type_for("a.mpga") == "audio/mpeg"
    assert mime_type_for("a.unknown") == "audio/mpeg"


@pytest.mark.asyncio
async def test_iter_chunks_splits_file(tmp_path):
    audio = tmp_path / "clip.wav"
    audio.write_bytes(b"abcdefg")

    chunks = [chunk async for chunk in iter_chunks(audio, chunk_size=3)]

    assert chunks == [b"abc", b"def", b"g"]


@pytest.mark.asyncio
async def test_iter_chunks_of_empty_file_yields_nothing(tmp_path):
    audio = tmp_path / "empty.wav"
    audio.write_bytes(b"")

    assert [chunk async for chunk in iter_chunks(audio)] == []


@pytest.mark.asyncio
async def test_read_base64_encodes_whole_file(tmp_path):
    audio = tmp_path / "clip.mp3"
    audio.write_bytes(b"ID3audio")

    assert await read_base64(audio) == "SUQzYXVkaW8="
