"""TranscriptionClient — abstract bases for speech-to-text backends.

Two families share the ``transcribe(file, prompt, model)`` contract:

* ``SinglePassClient`` sends the whole payload in one logical call and gets
  the transcript back synchronously.
* ``JobPollingClient`` uploads, creates a remote job and polls it until a
  terminal state.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Awaitable, Callable, Optional

from cloud_asr.errors import (
    EmptyResultError,
    FileTooLargeError,
    MissingCredentialError,
    PollingTimeoutError,
    RemoteProcessingError,
)
from cloud_asr.models import BackendJob, JobStatus, RawTranscript, ResolvedAudioFile

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class TranscriptionClient(ABC):
    backend: str = ""
    credential_env: str = ""
    # Files above this size are downsampled before submission; None disables it.
    preprocess_threshold: Optional[int] = None

    def __init__(self, api_key: Optional[str], max_file_size: int) -> None:
        self._api_key = api_key
        self.max_file_size = max_file_size

    def ensure_within_limit(self, file: ResolvedAudioFile) -> None:
        size = file.size
        if size > self.max_file_size:
            raise FileTooLargeError(size, self.max_file_size, self.backend)

    def require_key(self) -> str:
        match self._api_key:
            case str() as key if key:
                return key
            case _:
                raise MissingCredentialError(self.credential_env)

    @abstractmethod
    async def transcribe(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> RawTranscript:
        """Transcribe ``file``. Raises a CloudASRError subclass on failure."""
        ...


class SinglePassClient(TranscriptionClient):
    fallback_model: str = ""
    model_aliases: dict[str, str] = {}

    def __init__(
        self,
        api_key: Optional[str],
        max_file_size: int,
        default_model: Optional[str] = None,
    ) -> None:
        super().__init__(api_key, max_file_size)
        self._default_model = default_model

    def resolve_model(self, model: Optional[str] = None) -> str:
        """Explicit model, else configured default, else fallback; aliases expanded."""
        chosen = model or self._default_model or self.fallback_model
        return self.model_aliases.get(chosen, chosen)

    async def transcribe(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> RawTranscript:
        self.ensure_within_limit(file)
        api_key = self.require_key()
        resolved = self.resolve_model(model)
        logger.info("Calling %s with %s…", self.backend, resolved)
        raw = await self._generate(file, prompt, resolved, api_key)
        if not raw.text.strip():
            raise EmptyResultError(f"No transcript text returned by {self.backend}")
        return raw

    @abstractmethod
    async def _generate(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str],
        model: str,
        api_key: str,
    ) -> RawTranscript: ...


class JobPollingClient(TranscriptionClient):
    default_model_name: str = ""

    def __init__(
        self,
        api_key: Optional[str],
        max_file_size: int,
        poll_interval: float,
        max_poll_attempts: int,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        super().__init__(api_key, max_file_size)
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self._sleep = sleep

    async def transcribe(
        self,
        file: ResolvedAudioFile,
        prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> RawTranscript:
        self.ensure_within_limit(file)
        api_key = self.require_key()
        async with self._connect(api_key) as conn:
            job = await self.submit(conn, file, model)
            logger.info("%s job %s %s", self.backend, job.id, job.status.value)
            text = await self.wait_for(conn, job)
        return RawTranscript(text=text, model=model or self.default_model_name)

    async def wait_for(self, conn: Any, job: BackendJob) -> str:
        """Poll ``job`` until it completes, fails or the attempt ceiling is hit."""
        for attempt in range(1, self.max_poll_attempts + 1):
            job = await self.fetch(conn, job.id)
            match job.status:
                case JobStatus.COMPLETED:
                    if not job.text:
                        raise EmptyResultError(
                            "Transcription completed but no text was returned"
                        )
                    logger.info("%s job %s completed after %d polls", self.backend, job.id, attempt)
                    return job.text
                case JobStatus.ERROR:
                    raise RemoteProcessingError(
                        f"Transcription failed: {job.error or 'Unknown error'}"
                    )
                case _:
                    logger.debug("%s job %s %s (poll %d)", self.backend, job.id, job.status.value, attempt)
            if attempt < self.max_poll_attempts:
                await self._sleep(self.poll_interval)
        raise PollingTimeoutError(self.max_poll_attempts, self.poll_interval)

    @abstractmethod
    def _connect(self, api_key: str) -> AbstractAsyncContextManager[Any]:
        """Open whatever session ``submit`` and ``fetch`` share."""
        ...

    @abstractmethod
    async def submit(self, conn: Any, file: ResolvedAudioFile, model: Optional[str]) -> BackendJob:
        """Upload ``file`` and create the remote job."""
        ...

    @abstractmethod
    async def fetch(self, conn: Any, job_id: str) -> BackendJob: ...
