"""Dispatcher — tool id → backend client, plus the resolve/transcribe/persist pipeline."""
import logging
import time
from contextlib import AsyncExitStack
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from cloud_asr.audio.preprocessor import AudioPreprocessor
from cloud_asr.audio.resolver import FileResolver
from cloud_asr.config import Config
from cloud_asr.constants import (
    BACKEND_ASSEMBLYAI,
    BACKEND_GEMINI,
    BACKEND_OPENAI,
    BACKEND_OPENROUTER,
    BACKEND_VOXTRAL,
    MSG_BOTH_FILE_SOURCES,
    MSG_DISPATCH,
    MSG_DONE,
    MSG_FAILED,
    MSG_MISSING_FILE_NAME,
    MSG_MISSING_FILE_SOURCE,
    MSG_TRANSCRIPTION_FAILED,
    OPENAI_ECONOMY_MODEL,
    TOOL_ASSEMBLYAI,
    TOOL_GEMINI,
    TOOL_GEMINI_RAW,
    TOOL_OPENAI,
    TOOL_OPENAI_ECONOMY,
    TOOL_OPENROUTER,
    TOOL_OPENROUTER_GEMINI,
    TOOL_OPENROUTER_GPT4O,
    TOOL_OPENROUTER_VOXTRAL,
    TOOL_VOXTRAL,
)
from cloud_asr.errors import MissingParameterError, UnknownToolError
from cloud_asr.models import TranscriptionRequest, TranscriptionResponse, TranscriptionResult
from cloud_asr.normalizer import normalize
from cloud_asr.persister import TranscriptPersister
from cloud_asr.transcription.assemblyai import AssemblyAITranscriptionClient
from cloud_asr.transcription.client import TranscriptionClient
from cloud_asr.transcription.gemini import GeminiTranscriptionClient
from cloud_asr.transcription.openai import OpenAITranscriptionClient
from cloud_asr.transcription.openrouter import OpenRouterTranscriptionClient
from cloud_asr.transcription.voxtral import VoxtralTranscriptionClient

logger = logging.getLogger(__name__)

GEMINI_RAW_CLIENT = "gemini_raw"


@dataclass(frozen=True)
class Tool:
    client: str
    # Model preset for the tool; an explicit request model still wins.
    model: Optional[str] = None


TOOLS: dict[str, Tool] = {
    TOOL_OPENROUTER: Tool(BACKEND_OPENROUTER),
    TOOL_OPENROUTER_GEMINI: Tool(BACKEND_OPENROUTER, "gemini-flash"),
    TOOL_OPENROUTER_VOXTRAL: Tool(BACKEND_OPENROUTER, "voxtral-mini"),
    TOOL_OPENROUTER_GPT4O: Tool(BACKEND_OPENROUTER, "gpt-4o-audio"),
    TOOL_VOXTRAL: Tool(BACKEND_VOXTRAL),
    TOOL_GEMINI: Tool(BACKEND_GEMINI),
    TOOL_GEMINI_RAW: Tool(GEMINI_RAW_CLIENT),
    TOOL_OPENAI: Tool(BACKEND_OPENAI),
    TOOL_OPENAI_ECONOMY: Tool(BACKEND_OPENAI, OPENAI_ECONOMY_MODEL),
    TOOL_ASSEMBLYAI: Tool(BACKEND_ASSEMBLYAI),
}


def build_clients(config: Config) -> dict[str, TranscriptionClient]:
    """One client per backend, each holding only its own slice of the config."""

    def gemini(raw: bool) -> GeminiTranscriptionClient:
        return GeminiTranscriptionClient(
            config.gemini_api_key,
            default_model=config.gemini_model,
            max_file_size=config.gemini_max_file_size,
            preprocess_threshold=config.preprocess_threshold,
            raw=raw,
        )

    return {
        BACKEND_OPENAI: OpenAITranscriptionClient(
            config.openai_api_key,
            default_model=config.openai_model,
            max_file_size=config.openai_max_file_size,
        ),
        BACKEND_OPENROUTER: OpenRouterTranscriptionClient(
            config.openrouter_api_key,
            default_model=config.openrouter_model,
            max_file_size=config.openrouter_max_file_size,
        ),
        BACKEND_VOXTRAL: VoxtralTranscriptionClient(
            config.mistral_api_key,
            default_model=config.voxtral_model,
            max_file_size=config.voxtral_max_file_size,
            timeout=config.request_timeout,
        ),
        BACKEND_GEMINI: gemini(raw=False),
        GEMINI_RAW_CLIENT: gemini(raw=True),
        BACKEND_ASSEMBLYAI: AssemblyAITranscriptionClient(
            config.assemblyai_api_key,
            max_file_size=config.assemblyai_max_file_size,
            poll_interval=config.poll_interval,
            max_poll_attempts=config.max_poll_attempts,
            timeout=config.request_timeout,
        ),
    }


def validate_request(request: TranscriptionRequest) -> None:
    match (bool(request.file_path), bool(request.file_content), bool(request.file_name)):
        case (False, False, _):
            raise MissingParameterError(MSG_MISSING_FILE_SOURCE)
        case (True, True, _):
            raise MissingParameterError(MSG_BOTH_FILE_SOURCES)
        case (False, True, False):
            raise MissingParameterError(MSG_MISSING_FILE_NAME)
        case _:
            pass


class Dispatcher:

    def __init__(
        self,
        config: Config,
        clients: Optional[Mapping[str, TranscriptionClient]] = None,
        resolver: Optional[FileResolver] = None,
        preprocessor: Optional[AudioPreprocessor] = None,
        persister: Optional[TranscriptPersister] = None,
        tools: Optional[Mapping[str, Tool]] = None,
    ) -> None:
        self._config = config
        self._clients = dict(clients) if clients is not None else build_clients(config)
        self._resolver = resolver or FileResolver()
        self._preprocessor = preprocessor or AudioPreprocessor(config.ffmpeg_path)
        self._persister = persister or TranscriptPersister()
        self._tools = dict(tools) if tools is not None else dict(TOOLS)

    @property
    def tool_ids(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def client_for(self, tool_id: str) -> TranscriptionClient:
        match self._tools.get(tool_id):
            case Tool(client=name) if name in self._clients:
                return self._clients[name]
            case _:
                raise UnknownToolError(tool_id)

    async def handle(self, tool_id: str, request: TranscriptionRequest) -> TranscriptionResponse:
        """Run the whole pipeline for one request. Raises a CloudASRError on failure."""
        client = self.client_for(tool_id)
        tool = self._tools[tool_id]
        validate_request(request)
        client.require_key()

        logger.info(MSG_DISPATCH, tool_id, client.backend)
        started = time.monotonic()

        async with AsyncExitStack() as cleanup:
            resolved = self._resolver.resolve(request)
            cleanup.callback(self._resolver.cleanup, resolved)

            client.ensure_within_limit(resolved)
            prepared = resolved
            if client.preprocess_threshold is not None:
                prepared = await self._preprocessor.prepare(resolved, client.preprocess_threshold)
                if prepared is not resolved:
                    cleanup.callback(self._resolver.cleanup, prepared)

            raw = await client.transcribe(
                prepared,
                prompt=request.prompt,
                model=request.model or tool.model,
            )

        response = normalize(raw, client.backend)
        if request.output_dir:
            saved = self._persister.persist(request.output_dir, response)
            response = replace(response, saved_to=str(saved))

        logger.info(MSG_DONE, tool_id, time.monotonic() - started)
        return response

    async def dispatch(
        self,
        tool_id: str,
        arguments: TranscriptionRequest | Mapping[str, Any] | None,
    ) -> TranscriptionResult:
        """Like ``handle`` but reports failures as a value instead of raising."""
        request = (
            arguments
            if isinstance(arguments, TranscriptionRequest)
            else TranscriptionRequest.from_arguments(arguments)
        )
        try:
            response = await self.handle(tool_id, request)
        except (UnknownToolError, MissingParameterError) as exc:
            logger.warning(MSG_FAILED, tool_id, exc)
            return TranscriptionResult(success=False, error=str(exc))
        except Exception as exc:
            logger.error(MSG_FAILED, tool_id, exc)
            return TranscriptionResult(success=False, error=MSG_TRANSCRIPTION_FAILED % exc)
        return TranscriptionResult(success=True, data=response)
