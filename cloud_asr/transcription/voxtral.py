"""VoxtralTranscriptionClient — Mistral Voxtral via the chat completions API."""
import logging
from typing import Optional

import httpx

from cloud_asr.audio.resolver import read_base64
from cloud_asr.constants import (
    BACKEND_VOXTRAL,
    DEFAULT_TRANSCRIPTION_PROMPT,
    MISTRAL_CHAT_URL,
    REQUEST_TIMEOUT,
    VOXTRAL_DEFAULT_MODEL,
    VOXTRAL_MAX_FILE_SIZE,
)
from cloud_asr.errors import BackendRequestError
from cloud_asr.models import RawTranscript, ResolvedAudioFile, Usage
from cloud_asr.transcription.client import SinglePassClient

logger = logging.getLogger(__name__)


class VoxtralTranscriptionClient(SinglePassClient):
    backend = BACKEND_VOXTRAL
    credential_env = "MISTRAL_API_KEY"
    fallback_model = VOXTRAL_DEFAULT_MODEL

    def __init__(
        self,
        api_key: Optional[str],
        default_model: Optional[str] = None,
        max_file_size: int = VOXTRAL_MAX_FILE_SIZE,
        url: str = MISTRAL_CHAT_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(api_key, max_file_size, default_model)
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def _generate(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str],
        model: str,
        api_key: str,
    ) -> RawTranscript:
        audio_data = await read_base64(file.path)
        body = {
            "model": model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_audio", "input_audio": audio_data},
                        {"type": "text", "text": prompt or DEFAULT_TRANSCRIPTION_PROMPT},
                    ],
                }
            ],
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                self._url,
                json=body,
                headers={"Authorization": f"Bearer {api_key}"},
            )

        match response.status_code:
            case 200:
                pass
            case status:
                logger.error("Mistral API error (%s)", status)
                raise BackendRequestError(self.backend, status, response.text)

        payload = response.json()
        choices = payload.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        usage = payload.get("usage") or {}
        return RawTranscript(
            text=content.strip() if isinstance(content, str) else "",
            model=model,
            usage=Usage(
                input_tokens=usage.get("prompt_tokens", 0),
                output_tokens=usage.get("completion_tokens", 0),
                generation_id=payload.get("id"),
            ),
        )
