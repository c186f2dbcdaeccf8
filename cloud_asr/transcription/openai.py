"""OpenAITranscriptionClient — OpenAI gpt-4o-transcribe speech-to-text backend."""
from typing import Optional

from openai import AsyncOpenAI

from cloud_asr.audio.resolver import read_bytes
from cloud_asr.constants import (
    BACKEND_OPENAI,
    OPENAI_DEFAULT_MODEL,
    OPENAI_MAX_FILE_SIZE,
    OPENAI_RESPONSE_FORMAT,
)
from cloud_asr.models import RawTranscript, ResolvedAudioFile
from cloud_asr.transcription.client import SinglePassClient


class OpenAITranscriptionClient(SinglePassClient):
    backend = BACKEND_OPENAI
    credential_env = "OPENAI_API_KEY"
    fallback_model = OPENAI_DEFAULT_MODEL

    def __init__(
        self,
        api_key: Optional[str],
        default_model: Optional[str] = None,
        max_file_size: int = OPENAI_MAX_FILE_SIZE,
    ) -> None:
        super().__init__(api_key, max_file_size, default_model)

    async def _generate(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str],
        model: str,
        api_key: str,
    ) -> RawTranscript:
        client = AsyncOpenAI(api_key=api_key)
        options = {"model": model, "response_format": OPENAI_RESPONSE_FORMAT}
        if prompt:
            options["prompt"] = prompt
        audio = await read_bytes(file.path)
        response = await client.audio.transcriptions.create(
            file=(file.path.name, audio), **options
        )
        # response_format="text" yields a bare string; older SDKs wrap it
        text = response if isinstance(response, str) else response.text
        return RawTranscript(text=text.strip(), model=model)
