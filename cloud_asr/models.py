"""Value types passed between the resolver, clients, normalizer and dispatcher."""
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class TranscriptionRequest:
    file_path: Optional[str] = None
    file_content: Optional[str] = None
    file_name: Optional[str] = None
    prompt: Optional[str] = None
    model: Optional[str] = None
    output_dir: Optional[str] = None

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any] | None) -> "TranscriptionRequest":
        """Build a request from a loosely typed argument mapping; blank strings count as absent."""
        args = arguments or {}

        def pick(key: str) -> Optional[str]:
            match args.get(key):
                case str() as value if value.strip():
                    return value
                case _:
                    return None

        return cls(
            file_path=pick("file_path"),
            file_content=pick("file_content"),
            file_name=pick("file_name"),
            prompt=pick("prompt"),
            model=pick("model"),
            output_dir=pick("output_dir"),
        )


@dataclass(frozen=True)
class ResolvedAudioFile:
    """A concrete local file. ``owned`` files must be deleted by whoever holds them."""

    path: Path
    mime_type: str
    owned: bool

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class BackendJob:
    id: str
    status: JobStatus
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.ERROR)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BackendJob":
        return cls(
            id=str(payload.get("id", "")),
            status=JobStatus(payload.get("status", JobStatus.QUEUED.value)),
            text=payload.get("text"),
            error=payload.get("error"),
        )


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0
    generation_id: Optional[str] = None


@dataclass(frozen=True)
class RawTranscript:
    """What a backend client hands back before normalization."""

    text: str
    model: str
    usage: Optional[Usage] = None
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class TranscriptionResponse:
    title: str
    description: str
    transcript: str
    timestamp: str
    timestamp_readable: str
    backend: str
    model: str
    usage: Optional[Usage] = None
    saved_to: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.usage is None:
            data.pop("usage")
        elif self.usage.generation_id is None:
            data["usage"].pop("generation_id")
        if self.saved_to is None:
            data.pop("saved_to")
        return data


@dataclass(frozen=True)
class TranscriptionResult:
    success: bool
    data: Optional[TranscriptionResponse] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        match self.success:
            case True:
                return {"success": True, "data": self.data.to_dict() if self.data else None}
            case False:
                return {"success": False, "error": self.error}
