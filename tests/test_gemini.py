"""GeminiTranscriptionClient tests — upload/ready/generate handshake and JSON fallback"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cloud_asr.errors import EmptyResultError, PollingTimeoutError, RemoteProcessingError
from cloud_asr.models import ResolvedAudioFile
from cloud_asr.transcription.gemini import (
    GeminiTranscriptionClient,
    parse_structured_response,
    strip_code_fence,
)

GENAI_CLIENT = "cloud_asr.transcription.gemini.genai.Client"


def make_file(tmp_path) -> ResolvedAudioFile:
    path = tmp_path / "note.ogg"
    path.write_bytes(b"OggS")
    return ResolvedAudioFile(path=path, mime_type="audio/ogg", owned=False)


def file_state(state: str) -> SimpleNamespace:
    return SimpleNamespace(
        name="files/abc123",
        state=state,
        uri="https://generativelanguage.googleapis.com/v1beta/files/abc123",
        mime_type="audio/ogg",
    )


def make_genai(states=("ACTIVE",), text='{"title": "T", "description": "D", "transcript": "Body"}',
               usage=None, generate_error=None) -> MagicMock:
    genai_client = MagicMock()
    genai_client.aio.files.upload = AsyncMock(return_value=file_state("PROCESSING"))
    genai_client.aio.files.get = AsyncMock(side_effect=[file_state(s) for s in states])
    genai_client.aio.files.delete = AsyncMock()
    response = SimpleNamespace(text=text, usage_metadata=usage, response_id="resp-1")
    genai_client.aio.models.generate_content = AsyncMock(
        return_value=response, side_effect=generate_error
    )
    return genai_client


# ── pure helpers ──────────────────────────────────────────────────────────────


def test_strip_code_fence_handles_json_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_strip_code_fence_handles_bare_fence():
    assert strip_code_fence('```\n{"a": 1}```') == '{"a": 1}'


def test_strip_code_fence_leaves_plain_text():
    assert strip_code_fence("  plain  ") == "plain"


def test_parse_structured_response_reads_fields():
    parsed = parse_structured_response(
        '```json\n{"title": "Standup", "description": "Daily sync.", "transcript": "We shipped."}\n```'
    )

    assert parsed == {"title": "Standup", "description": "Daily sync.", "transcript": "We shipped."}


def test_parse_structured_response_falls_back_on_invalid_json():
    parsed = parse_structured_response("just words, no json")

    assert parsed == {
        "title": "Voice Note",
        "description": "Transcribed voice note.",
        "transcript": "just words, no json",
    }


def test_parse_structured_response_falls_back_on_non_object_json():
    parsed = parse_structured_response("[1, 2, 3]")

    assert parsed["title"] == "Voice Note"
    assert parsed["transcript"] == "[1, 2, 3]"


def test_parse_structured_response_fills_missing_fields():
    parsed = parse_structured_response('{"transcript": "Only body"}')

    assert parsed["title"] == "Voice Note"
    assert parsed["description"] == "Transcribed voice note."
    assert parsed["transcript"] == "Only body"


# ── handshake ─────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_gemini_waits_for_processing_then_generates(tmp_path):
    genai_client = make_genai(states=("PROCESSING", "PROCESSING", "ACTIVE"))
    sleep = AsyncMock()
    client = GeminiTranscriptionClient(api_key="g-key", sleep=sleep)

    with patch(GENAI_CLIENT, return_value=genai_client) as cls:
        raw = await client.transcribe(make_file(tmp_path))

    cls.assert_called_once_with(api_key="g-key")
    assert genai_client.aio.files.get.await_count == 3
    assert sleep.await_count == 2
    upload_kwargs = genai_client.aio.files.upload.call_args.kwargs
    assert upload_kwargs["file"].endswith("note.ogg")
    assert upload_kwargs["config"].mime_type == "audio/ogg"
    generate_kwargs = genai_client.aio.models.generate_content.call_args.kwargs
    assert generate_kwargs["model"] == "gemini-2.0-flash"
    assert raw.title == "T"
    assert raw.description == "D"
    assert raw.text == "Body"
    genai_client.aio.files.delete.assert_awaited_once_with(name="files/abc123")


@pytest.mark.asyncio
async def test_gemini_failed_state_raises_and_still_deletes(tmp_path):
    genai_client = make_genai(states=("PROCESSING", "FAILED"))
    client = GeminiTranscriptionClient(api_key="g-key", sleep=AsyncMock())

    with patch(GENAI_CLIENT, return_value=genai_client):
        with pytest.raises(RemoteProcessingError):
            await client.transcribe(make_file(tmp_path))

    genai_client.aio.models.generate_content.assert_not_called()
    genai_client.aio.files.delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_gemini_processing_forever_hits_ceiling(tmp_path):
    genai_client = make_genai(states=("PROCESSING",) * 3)
    sleep = AsyncMock()
    client = GeminiTranscriptionClient(api_key="g-key", max_polls=3, sleep=sleep)

    with patch(GENAI_CLIENT, return_value=genai_client):
        with pytest.raises(PollingTimeoutError):
            await client.transcribe(make_file(tmp_path))

    assert genai_client.aio.files.get.await_count == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_gemini_generation_error_propagates_and_deletion_failure_is_swallowed(tmp_path):
    genai_client = make_genai(generate_error=RuntimeError("quota exceeded"))
    genai_client.aio.files.delete = AsyncMock(side_effect=RuntimeError("delete failed"))
    client = GeminiTranscriptionClient(api_key="g-key", sleep=AsyncMock())

    with patch(GENAI_CLIENT, return_value=genai_client):
        with pytest.raises(RuntimeError, match="quota exceeded"):
            await client.transcribe(make_file(tmp_path))

    genai_client.aio.files.delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_gemini_deletion_failure_does_not_mask_success(tmp_path):
    genai_client = make_genai()
    genai_client.aio.files.delete = AsyncMock(side_effect=RuntimeError("delete failed"))
    client = GeminiTranscriptionClient(api_key="g-key", sleep=AsyncMock())

    with patch(GENAI_CLIENT, return_value=genai_client):
        raw = await client.transcribe(make_file(tmp_path))

    assert raw.text == "Body"


@pytest.mark.asyncio
async def test_gemini_malformed_json_degrades_to_raw_text(tmp_path):
    genai_client = make_genai(text="Hello, this is not JSON at all.")
    client = GeminiTranscriptionClient(api_key="g-key", sleep=AsyncMock())

    with patch(GENAI_CLIENT, return_value=genai_client):
        raw = await client.transcribe(make_file(tmp_path))

    assert raw.text == "Hello, this is not JSON at all."
    assert raw.title == "Voice Note"
    assert raw.description == "Transcribed voice note."


@pytest.mark.asyncio
async def test_gemini_empty_response_raises(tmp_path):
    genai_client = make_genai(text="")
    client = GeminiTranscriptionClient(api_key="g-key", sleep=AsyncMock())

    with patch(GENAI_CLIENT, return_value=genai_client):
        with pytest.raises(EmptyResultError):
            await client.transcribe(make_file(tmp_path))

    genai_client.aio.files.delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_gemini_raw_mode_and_user_prompt_shape_the_prompt(tmp_path):
    genai_client = make_genai()
    client = GeminiTranscriptionClient(api_key="g-key", raw=True, sleep=AsyncMock())

    with patch(GENAI_CLIENT, return_value=genai_client):
        await client.transcribe(make_file(tmp_path), prompt="Speakers: Ada, Grace")

    contents = genai_client.aio.models.generate_content.call_args.kwargs["contents"]
    prompt = contents[-1]
    assert "verbatim" in prompt
    assert prompt.endswith("Speakers: Ada, Grace")


@pytest.mark.asyncio
async def test_gemini_records_usage_metadata(tmp_path):
    usage = SimpleNamespace(prompt_token_count=900, candidates_token_count=45)
    genai_client = make_genai(usage=usage)
    client = GeminiTranscriptionClient(api_key="g-key", sleep=AsyncMock())

    with patch(GENAI_CLIENT, return_value=genai_client):
        raw = await client.transcribe(make_file(tmp_path))

    assert raw.usage.input_tokens == 900
    assert raw.usage.output_tokens == 45
    assert raw.usage.generation_id == "resp-1"


def test_gemini_preprocess_threshold_defaults_to_15mb():
    assert GeminiTranscriptionClient(api_key="k").preprocess_threshold == 15 * 1024 * 1024
