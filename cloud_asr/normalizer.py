"""ResponseNormalizer — pure helpers that turn raw backend text into a response."""
import re
from datetime import datetime
from typing import Optional

from cloud_asr.constants import (
    DEFAULT_DESCRIPTION,
    DEFAULT_TITLE,
    DESCRIPTION_CHAR_LIMIT,
    ELLIPSIS,
    READABLE_TIMESTAMP_FORMAT,
    TITLE_WORD_LIMIT,
)
from cloud_asr.models import RawTranscript, TranscriptionResponse

_FIRST_SENTENCE = re.compile(r"([^.!?]*)([.!?]?)")


def generate_title(transcript: str) -> str:
    words = transcript.split()
    match words:
        case []:
            return DEFAULT_TITLE
        case _ if len(words) > TITLE_WORD_LIMIT:
            return " ".join(words[:TITLE_WORD_LIMIT]) + ELLIPSIS
        case _:
            return " ".join(words)


def generate_description(transcript: str) -> str:
    """First sentence, or its first 100 characters plus an ellipsis when longer."""
    text = transcript.strip()
    if not text:
        return DEFAULT_DESCRIPTION
    sentence, terminator = _FIRST_SENTENCE.match(text).groups()
    if len(sentence) > DESCRIPTION_CHAR_LIMIT:
        return sentence[:DESCRIPTION_CHAR_LIMIT].strip() + ELLIPSIS
    return sentence.strip() + (terminator or ".")


def format_timestamp(now: Optional[datetime] = None) -> tuple[str, str]:
    """Return (ISO 8601, "D Mon YYYY HH:MM") for one captured instant in local time."""
    moment = (now or datetime.now()).astimezone()
    return moment.isoformat(), f"{moment.day} {moment.strftime(READABLE_TIMESTAMP_FORMAT)}"


def normalize(
    raw: RawTranscript,
    backend: str,
    now: Optional[datetime] = None,
) -> TranscriptionResponse:
    timestamp, readable = format_timestamp(now)
    return TranscriptionResponse(
        title=raw.title or generate_title(raw.text),
        description=raw.description or generate_description(raw.text),
        transcript=raw.text,
        timestamp=timestamp,
        timestamp_readable=readable,
        backend=backend,
        model=raw.model,
        usage=raw.usage,
    )
