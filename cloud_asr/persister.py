"""TranscriptPersister — writes a normalized transcript to a markdown file."""
import logging
import re
from pathlib import Path

from cloud_asr.constants import (
    DEFAULT_SLUG,
    MSG_SAVED,
    SLUG_MAX_LENGTH,
    TRANSCRIPT_EXTENSION,
    TRANSCRIPT_TEMPLATE,
)
from cloud_asr.models import TranscriptionResponse

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(text: str) -> str:
    """Lower-case ``[a-z0-9-]`` slug of at most 80 characters; idempotent."""
    slug = _NON_SLUG_CHARS.sub("", text.lower())
    slug = _HYPHENS.sub("-", _WHITESPACE.sub("-", slug)).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].strip("-")
    return slug or DEFAULT_SLUG


def render_markdown(response: TranscriptionResponse) -> str:
    return TRANSCRIPT_TEMPLATE.format(
        title=response.title,
        description=response.description,
        timestamp=response.timestamp_readable,
        transcript=response.transcript,
    )


class TranscriptPersister:

    def persist(self, output_dir: str | Path, response: TranscriptionResponse) -> Path:
        """Write ``<slug>.md`` under ``output_dir``; an existing file of that name is replaced."""
        directory = Path(output_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / f"{slugify(response.title)}{TRANSCRIPT_EXTENSION}"
        target.write_text(render_markdown(response), encoding="utf-8")
        logger.info(MSG_SAVED, target)
        return target
