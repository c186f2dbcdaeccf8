"""GeminiTranscriptionClient — Google Gemini via the Files API handshake.

The audio is uploaded as a file artifact, polled until Gemini has finished
ingesting it, referenced from a ``generate_content`` call and finally
deleted. Gemini is asked for a JSON object carrying title, description and
transcript; anything unparseable degrades to the raw text.
"""
import asyncio
import json
import logging
import time
from typing import Any, Optional

from google import genai
from google.genai import types

from cloud_asr.constants import (
    BACKEND_GEMINI,
    GEMINI_CLEANED_PROMPT,
    GEMINI_DEFAULT_MODEL,
    GEMINI_EXTRA_CONTEXT,
    GEMINI_FALLBACK_DESCRIPTION,
    GEMINI_FALLBACK_TITLE,
    GEMINI_FILE_MAX_POLLS,
    GEMINI_FILE_POLL_INTERVAL,
    GEMINI_MAX_FILE_SIZE,
    GEMINI_PREPROCESS_THRESHOLD,
    GEMINI_RAW_PROMPT,
    GEMINI_STATE_FAILED,
    GEMINI_STATE_PROCESSING,
    GEMINI_UPLOAD_DISPLAY_NAME,
)
from cloud_asr.errors import PollingTimeoutError, RemoteProcessingError
from cloud_asr.models import RawTranscript, ResolvedAudioFile, Usage
from cloud_asr.transcription.client import SinglePassClient, Sleep

logger = logging.getLogger(__name__)


# ── response parsing ──────────────────────────────────────────────────────────


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```"):]
    if cleaned.endswith("```"):
        cleaned = cleaned[: -len("```")]
    return cleaned.strip()


def parse_structured_response(text: str) -> dict[str, str]:
    """Return title/description/transcript; placeholders plus raw text when parsing fails."""
    fallback = {
        "title": GEMINI_FALLBACK_TITLE,
        "description": GEMINI_FALLBACK_DESCRIPTION,
        "transcript": text,
    }
    try:
        parsed = json.loads(strip_code_fence(text))
    except (json.JSONDecodeError, TypeError):
        logger.warning("Gemini returned non-JSON output, using raw text")
        return fallback

    match parsed:
        case dict():
            return {
                "title": _text_field(parsed, "title") or GEMINI_FALLBACK_TITLE,
                "description": _text_field(parsed, "description") or GEMINI_FALLBACK_DESCRIPTION,
                "transcript": _text_field(parsed, "transcript") or text,
            }
        case _:
            logger.warning("Gemini returned JSON that is not an object, using raw text")
            return fallback


def _text_field(payload: dict[str, Any], key: str) -> str:
    match payload.get(key):
        case str() as value:
            return value.strip()
        case _:
            return ""


def _state_name(file: Any) -> str:
    state = getattr(file, "state", None)
    return getattr(state, "name", None) or str(state or "")


# ── client ────────────────────────────────────────────────────────────────────


class GeminiTranscriptionClient(SinglePassClient):
    backend = BACKEND_GEMINI
    credential_env = "GEMINI_API_KEY"
    fallback_model = GEMINI_DEFAULT_MODEL

    def __init__(
        self,
        api_key: Optional[str],
        default_model: Optional[str] = None,
        max_file_size: int = GEMINI_MAX_FILE_SIZE,
        preprocess_threshold: Optional[int] = GEMINI_PREPROCESS_THRESHOLD,
        raw: bool = False,
        poll_interval: float = GEMINI_FILE_POLL_INTERVAL,
        max_polls: int = GEMINI_FILE_MAX_POLLS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        super().__init__(api_key, max_file_size, default_model)
        self.preprocess_threshold = preprocess_threshold
        self.raw = raw
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._sleep = sleep

    async def _generate(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str],
        model: str,
        api_key: str,
    ) -> RawTranscript:
        client = genai.Client(api_key=api_key)
        uploaded_name: Optional[str] = None
        try:
            uploaded = await client.aio.files.upload(
                file=str(file.path),
                config=types.UploadFileConfig(
                    mime_type=file.mime_type,
                    display_name=GEMINI_UPLOAD_DISPLAY_NAME % int(time.time() * 1000),
                ),
            )
            uploaded_name = uploaded.name
            ready = await self._wait_until_active(client, uploaded_name)

            response = await client.aio.models.generate_content(
                model=model,
                contents=[
                    types.Part.from_uri(file_uri=ready.uri, mime_type=ready.mime_type),
                    self._build_prompt(prompt),
                ],
            )
            text = response.text or ""
            parsed = parse_structured_response(text) if text.strip() else {}
            return RawTranscript(
                text=parsed.get("transcript", ""),
                model=model,
                usage=self._usage(response),
                title=parsed.get("title"),
                description=parsed.get("description"),
            )
        finally:
            if uploaded_name:
                await self._delete_quietly(client, uploaded_name)

    def _build_prompt(self, prompt: Optional[str]) -> str:
        base = GEMINI_RAW_PROMPT if self.raw else GEMINI_CLEANED_PROMPT
        return base + GEMINI_EXTRA_CONTEXT % prompt if prompt else base

    async def _wait_until_active(self, client: genai.Client, name: str) -> Any:
        for attempt in range(1, self._max_polls + 1):
            current = await client.aio.files.get(name=name)
            match _state_name(current):
                case state if state == GEMINI_STATE_PROCESSING:
                    if attempt < self._max_polls:
                        await self._sleep(self._poll_interval)
                case state if state == GEMINI_STATE_FAILED:
                    raise RemoteProcessingError("File processing failed in Gemini")
                case _:
                    return current
        raise PollingTimeoutError(self._max_polls, self._poll_interval)

    async def _delete_quietly(self, client: genai.Client, name: str) -> None:
        try:
            await client.aio.files.delete(name=name)
        except Exception as exc:
            logger.debug("Ignoring Gemini file deletion failure for %s: %s", name, exc)

    @staticmethod
    def _usage(response: Any) -> Optional[Usage]:
        metadata = getattr(response, "usage_metadata", None)
        if metadata is None:
            return None
        return Usage(
            input_tokens=getattr(metadata, "prompt_token_count", None) or 0,
            output_tokens=getattr(metadata, "candidates_token_count", None) or 0,
            generation_id=getattr(response, "response_id", None),
        )
