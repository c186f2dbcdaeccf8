from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from cloud_asr.constants import (
    ASSEMBLYAI_MAX_FILE_SIZE,
    ASSEMBLYAI_MAX_POLL_ATTEMPTS,
    ASSEMBLYAI_POLL_INTERVAL,
    FFMPEG_BINARY,
    GEMINI_MAX_FILE_SIZE,
    GEMINI_PREPROCESS_THRESHOLD,
    MB,
    OPENAI_MAX_FILE_SIZE,
    OPENROUTER_MAX_FILE_SIZE,
    REQUEST_TIMEOUT,
    VOXTRAL_MAX_FILE_SIZE,
)


@dataclass(frozen=True)
class Config:
    openai_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    mistral_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    assemblyai_api_key: Optional[str] = None
    openai_model: Optional[str] = None
    openrouter_model: Optional[str] = None
    voxtral_model: Optional[str] = None
    gemini_model: Optional[str] = None
    openai_max_file_size: int = OPENAI_MAX_FILE_SIZE
    openrouter_max_file_size: int = OPENROUTER_MAX_FILE_SIZE
    voxtral_max_file_size: int = VOXTRAL_MAX_FILE_SIZE
    gemini_max_file_size: int = GEMINI_MAX_FILE_SIZE
    assemblyai_max_file_size: int = ASSEMBLYAI_MAX_FILE_SIZE
    preprocess_threshold: int = GEMINI_PREPROCESS_THRESHOLD
    poll_interval: float = ASSEMBLYAI_POLL_INTERVAL
    max_poll_attempts: int = ASSEMBLYAI_MAX_POLL_ATTEMPTS
    request_timeout: float = REQUEST_TIMEOUT
    ffmpeg_path: str = FFMPEG_BINARY
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        threshold_mb = os.getenv("CLOUD_ASR_PREPROCESS_THRESHOLD_MB")
        poll_interval = os.getenv("CLOUD_ASR_POLL_INTERVAL", str(ASSEMBLYAI_POLL_INTERVAL))
        max_polls = os.getenv("CLOUD_ASR_MAX_POLL_ATTEMPTS", str(ASSEMBLYAI_MAX_POLL_ATTEMPTS))
        timeout = os.getenv("CLOUD_ASR_REQUEST_TIMEOUT", str(REQUEST_TIMEOUT))

        return cls._validate(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or None,
            mistral_api_key=os.getenv("MISTRAL_API_KEY") or None,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            assemblyai_api_key=(
                os.getenv("ASSEMBLYAI_API_KEY") or os.getenv("ASSEMBLY_API_KEY") or None
            ),
            openai_model=os.getenv("OPENAI_TRANSCRIPTION_MODEL") or None,
            openrouter_model=os.getenv("OPENROUTER_DEFAULT_MODEL") or None,
            voxtral_model=os.getenv("VOXTRAL_MODEL") or None,
            gemini_model=os.getenv("GEMINI_MODEL") or None,
            preprocess_threshold=(
                int(float(threshold_mb) * MB) if threshold_mb else GEMINI_PREPROCESS_THRESHOLD
            ),
            poll_interval=float(poll_interval),
            max_poll_attempts=int(max_polls),
            request_timeout=float(timeout),
            ffmpeg_path=os.getenv("FFMPEG_PATH") or FFMPEG_BINARY,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @staticmethod
    def _validate(**fields) -> "Config":
        match fields.get("poll_interval"):
            case float() as v if v < 0:
                raise ValueError("CLOUD_ASR_POLL_INTERVAL must not be negative")
            case _:
                pass

        match fields.get("max_poll_attempts"):
            case int() as v if v < 1:
                raise ValueError("CLOUD_ASR_MAX_POLL_ATTEMPTS must be at least 1")
            case _:
                pass

        match fields.get("preprocess_threshold"):
            case int() as v if v < 0:
                raise ValueError("CLOUD_ASR_PREPROCESS_THRESHOLD_MB must not be negative")
            case _:
                pass

        return Config(**fields)
