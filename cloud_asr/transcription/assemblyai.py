"""AssemblyAITranscriptionClient — upload, create a job, poll until it settles."""
import asyncio
import logging
from typing import Optional

import httpx

from cloud_asr.audio.resolver import iter_chunks
from cloud_asr.constants import (
    ASSEMBLYAI_BASE_URL,
    ASSEMBLYAI_DEFAULT_MODEL,
    ASSEMBLYAI_MAX_FILE_SIZE,
    ASSEMBLYAI_MAX_POLL_ATTEMPTS,
    ASSEMBLYAI_POLL_INTERVAL,
    ASSEMBLYAI_TRANSCRIPT_PATH,
    ASSEMBLYAI_UPLOAD_PATH,
    BACKEND_ASSEMBLYAI,
    CONTENT_TYPE_OCTET,
    REQUEST_TIMEOUT,
)
from cloud_asr.errors import BackendRequestError, JobCreationError, UploadError
from cloud_asr.models import BackendJob, ResolvedAudioFile
from cloud_asr.transcription.client import JobPollingClient, Sleep

logger = logging.getLogger(__name__)


class AssemblyAITranscriptionClient(JobPollingClient):
    backend = BACKEND_ASSEMBLYAI
    credential_env = "ASSEMBLYAI_API_KEY"
    default_model_name = ASSEMBLYAI_DEFAULT_MODEL

    def __init__(
        self,
        api_key: Optional[str],
        max_file_size: int = ASSEMBLYAI_MAX_FILE_SIZE,
        poll_interval: float = ASSEMBLYAI_POLL_INTERVAL,
        max_poll_attempts: int = ASSEMBLYAI_MAX_POLL_ATTEMPTS,
        base_url: str = ASSEMBLYAI_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        super().__init__(api_key, max_file_size, poll_interval, max_poll_attempts, sleep)
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    def _connect(self, api_key: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": api_key},
            timeout=self._timeout,
            transport=self._transport,
        )

    async def submit(
        self, conn: httpx.AsyncClient, file: ResolvedAudioFile, model: Optional[str]
    ) -> BackendJob:
        upload_url = await self._upload(conn, file)
        return await self._create_job(conn, upload_url, model)

    async def fetch(self, conn: httpx.AsyncClient, job_id: str) -> BackendJob:
        response = await conn.get(f"{ASSEMBLYAI_TRANSCRIPT_PATH}/{job_id}")
        match response.status_code:
            case 200:
                return BackendJob.from_payload(response.json())
            case status:
                raise BackendRequestError(self.backend, status, response.text)

    async def _upload(self, conn: httpx.AsyncClient, file: ResolvedAudioFile) -> str:
        logger.info("Uploading %s to AssemblyAI (%.1fMB)", file.path.name, file.size / 1024 / 1024)
        try:
            response = await conn.post(
                ASSEMBLYAI_UPLOAD_PATH,
                content=iter_chunks(file.path),
                headers={"Content-Type": CONTENT_TYPE_OCTET},
            )
        except httpx.HTTPError as exc:
            raise UploadError(None, f"Upload request failed: {exc}") from exc

        match response.status_code:
            case 200:
                pass
            case status:
                raise UploadError(status, response.text)

        upload_url = _json_or_empty(response).get("upload_url")
        if not upload_url:
            raise UploadError(response.status_code, f"No upload_url in response: {response.text}")
        return upload_url

    async def _create_job(
        self, conn: httpx.AsyncClient, audio_url: str, model: Optional[str]
    ) -> BackendJob:
        body = {"audio_url": audio_url}
        if model:
            body["speech_model"] = model
        try:
            response = await conn.post(ASSEMBLYAI_TRANSCRIPT_PATH, json=body)
        except httpx.HTTPError as exc:
            raise JobCreationError(None, f"Transcript creation request failed: {exc}") from exc

        match response.status_code:
            case 200:
                pass
            case status:
                raise JobCreationError(status, response.text)

        payload = _json_or_empty(response)
        if not payload.get("id"):
            raise JobCreationError(response.status_code, f"No job id in response: {response.text}")
        return BackendJob.from_payload(payload)


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
