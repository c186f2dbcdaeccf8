"""OpenRouterTranscriptionClient — multimodal chat models behind OpenRouter."""
from typing import Optional

from openai import AsyncOpenAI

from cloud_asr.audio.resolver import read_base64
from cloud_asr.constants import (
    BACKEND_OPENROUTER,
    DEFAULT_TRANSCRIPTION_PROMPT,
    OPENROUTER_AUDIO_FORMATS,
    OPENROUTER_BASE_URL,
    OPENROUTER_DEFAULT_ALIAS,
    OPENROUTER_FALLBACK_AUDIO_FORMAT,
    OPENROUTER_MAX_FILE_SIZE,
    OPENROUTER_MODEL_ALIASES,
)
from cloud_asr.models import RawTranscript, ResolvedAudioFile, Usage
from cloud_asr.transcription.client import SinglePassClient


class OpenRouterTranscriptionClient(SinglePassClient):
    backend = BACKEND_OPENROUTER
    credential_env = "OPENROUTER_API_KEY"
    fallback_model = OPENROUTER_DEFAULT_ALIAS
    model_aliases = OPENROUTER_MODEL_ALIASES

    def __init__(
        self,
        api_key: Optional[str],
        default_model: Optional[str] = None,
        max_file_size: int = OPENROUTER_MAX_FILE_SIZE,
        base_url: str = OPENROUTER_BASE_URL,
    ) -> None:
        super().__init__(api_key, max_file_size, default_model)
        self._base_url = base_url

    async def _generate(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str],
        model: str,
        api_key: str,
    ) -> RawTranscript:
        client = AsyncOpenAI(api_key=api_key, base_url=self._base_url)
        audio_data = await read_base64(file.path)
        audio_format = OPENROUTER_AUDIO_FORMATS.get(
            file.extension, OPENROUTER_FALLBACK_AUDIO_FORMAT
        )
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt or DEFAULT_TRANSCRIPTION_PROMPT},
                        {
                            "type": "input_audio",
                            "input_audio": {"data": audio_data, "format": audio_format},
                        },
                    ],
                }
            ],
        )
        content = response.choices[0].message.content if response.choices else None
        usage = response.usage
        return RawTranscript(
            text=content.strip() if content else "",
            model=model,
            usage=Usage(
                input_tokens=(usage.prompt_tokens or 0) if usage else 0,
                output_tokens=(usage.completion_tokens or 0) if usage else 0,
                generation_id=response.id,
            ),
        )
