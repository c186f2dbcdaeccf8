"""All magic values live here — no inline literals anywhere else."""

MB = 1024 * 1024

# Supported input formats: extension → MIME type
SUPPORTED_FORMATS: dict[str, str] = {
    ".mp3": "audio/mp3",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
    ".aiff": "audio/aiff",
    ".m4a": "audio/mp4",
    ".webm": "audio/webm",
    ".mpeg": "audio/mpeg",
    ".mpga": "audio/mpeg",
}
DEFAULT_MIME_TYPE = "audio/mpeg"
TEMP_FILE_PREFIX = "cloud_asr_"
READ_CHUNK_SIZE = 1 * MB

# Size ceilings (bytes)
OPENAI_MAX_FILE_SIZE = 25 * MB
OPENROUTER_MAX_FILE_SIZE = 25 * MB
VOXTRAL_MAX_FILE_SIZE = 25 * MB
GEMINI_MAX_FILE_SIZE = 100 * MB
GEMINI_PREPROCESS_THRESHOLD = 15 * MB
ASSEMBLYAI_MAX_FILE_SIZE = 5 * 1024 * MB

# ffmpeg downmix: mono, 16 kHz, 32 kbps mp3
FFMPEG_BINARY = "ffmpeg"
FFMPEG_CHANNELS = "1"
FFMPEG_SAMPLE_RATE = "16000"
FFMPEG_BITRATE = "32k"
PREPROCESSED_SUFFIX = ".mp3"
PREPROCESSED_MIME_TYPE = "audio/mp3"
FFMPEG_STDERR_TAIL = 2000

# Backend identifiers
BACKEND_OPENAI = "openai"
BACKEND_OPENROUTER = "openrouter"
BACKEND_VOXTRAL = "voxtral"
BACKEND_GEMINI = "gemini"
BACKEND_ASSEMBLYAI = "assemblyai"

# OpenAI
OPENAI_DEFAULT_MODEL = "gpt-4o-transcribe"
OPENAI_ECONOMY_MODEL = "gpt-4o-mini-transcribe"
OPENAI_RESPONSE_FORMAT = "text"

# OpenRouter
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_MODEL_ALIASES: dict[str, str] = {
    "gemini-flash": "google/gemini-2.5-flash-preview-05-20",
    "gemini-pro": "google/gemini-2.5-pro-preview",
    "gpt-4o-audio": "openai/gpt-4o-audio-preview",
    "voxtral-small": "mistralai/voxtral-small-latest",
    "voxtral-mini": "mistralai/voxtral-mini-latest",
}
OPENROUTER_DEFAULT_ALIAS = "gemini-flash"
OPENROUTER_AUDIO_FORMATS: dict[str, str] = {
    ".wav": "wav",
    ".mp3": "mp3",
    ".ogg": "ogg",
    ".flac": "flac",
    ".m4a": "mp4",
    ".webm": "webm",
}
OPENROUTER_FALLBACK_AUDIO_FORMAT = "wav"

# Voxtral (Mistral API)
MISTRAL_CHAT_URL = "https://api.mistral.ai/v1/chat/completions"
VOXTRAL_DEFAULT_MODEL = "voxtral-mini-latest"
VOXTRAL_SMALL_MODEL = "voxtral-small-latest"

# Gemini
GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"
GEMINI_FILE_POLL_INTERVAL: float = 1.0
GEMINI_FILE_MAX_POLLS = 300
GEMINI_STATE_PROCESSING = "PROCESSING"
GEMINI_STATE_FAILED = "FAILED"
GEMINI_UPLOAD_DISPLAY_NAME = "transcription_%d"
GEMINI_FALLBACK_TITLE = "Voice Note"
GEMINI_FALLBACK_DESCRIPTION = "Transcribed voice note."

# AssemblyAI
ASSEMBLYAI_BASE_URL = "https://api.assemblyai.com"
ASSEMBLYAI_UPLOAD_PATH = "/v2/upload"
ASSEMBLYAI_TRANSCRIPT_PATH = "/v2/transcript"
ASSEMBLYAI_DEFAULT_MODEL = "assemblyai-default"
# 120 polls × 5 s = 10 minute ceiling
ASSEMBLYAI_POLL_INTERVAL: float = 5.0
ASSEMBLYAI_MAX_POLL_ATTEMPTS = 120

# HTTP
REQUEST_TIMEOUT: float = 300.0
CONTENT_TYPE_OCTET = "application/octet-stream"

# Prompts
DEFAULT_TRANSCRIPTION_PROMPT = (
    "Transcribe this audio accurately. Return only the transcription text."
)
GEMINI_CLEANED_PROMPT = (
    "Transcribe this audio recording. Remove filler words (um, uh, like), "
    "false starts and repetitions, fix obvious grammar slips and add paragraph "
    "breaks, but keep the speaker's meaning and wording otherwise intact.\n\n"
    "Respond with JSON only, using exactly these keys:\n"
    '{"title": "<short title, at most 8 words>", '
    '"description": "<one sentence summary>", '
    '"transcript": "<the cleaned transcript>"}'
)
GEMINI_RAW_PROMPT = (
    "Transcribe this audio recording verbatim. Keep every filler word, false "
    "start and repetition exactly as spoken. Do not summarize or rephrase.\n\n"
    "Respond with JSON only, using exactly these keys:\n"
    '{"title": "<short title, at most 8 words>", '
    '"description": "<one sentence summary>", '
    '"transcript": "<the verbatim transcript>"}'
)
GEMINI_EXTRA_CONTEXT = "\n\nAdditional context from the user: %s"

# Normalization
TITLE_WORD_LIMIT = 6
DESCRIPTION_CHAR_LIMIT = 100
ELLIPSIS = "..."
DEFAULT_TITLE = "Audio Transcription"
DEFAULT_DESCRIPTION = "Transcribed audio."
READABLE_TIMESTAMP_FORMAT = "%b %Y %H:%M"

# Persistence
SLUG_MAX_LENGTH = 80
DEFAULT_SLUG = "transcript"
TRANSCRIPT_EXTENSION = ".md"
TRANSCRIPT_TEMPLATE = (
    "# {title}\n"
    "\n"
    "> {description}\n"
    "\n"
    "*Transcribed: {timestamp}*\n"
    "\n"
    "---\n"
    "\n"
    "{transcript}\n"
)

# Tool identifiers
TOOL_OPENROUTER = "openrouter_transcribe"
TOOL_OPENROUTER_GEMINI = "openrouter_gemini"
TOOL_OPENROUTER_VOXTRAL = "openrouter_voxtral"
TOOL_OPENROUTER_GPT4O = "openrouter_gpt4o"
TOOL_VOXTRAL = "voxtral_transcribe"
TOOL_GEMINI = "gemini_transcribe"
TOOL_GEMINI_RAW = "gemini_transcribe_raw"
TOOL_OPENAI = "openai_transcribe"
TOOL_OPENAI_ECONOMY = "openai_transcribe_economy"
TOOL_ASSEMBLYAI = "assemblyai_transcribe"

# Log / user-facing messages
MSG_MISSING_FILE_SOURCE = (
    "Missing required parameter: Either file_path (for local files) or "
    "file_content (base64 for remote files) must be provided"
)
MSG_BOTH_FILE_SOURCES = (
    "Invalid parameters: provide either file_path or file_content, not both"
)
MSG_MISSING_FILE_NAME = (
    "Missing required parameter: file_name is required when using "
    "file_content (for MIME type detection)"
)
MSG_TRANSCRIPTION_FAILED = "Transcription failed: %s"
MSG_UNKNOWN_TOOL = "Unknown tool: %s"
MSG_DISPATCH = "→ %s (%s)"
MSG_DONE = "✓ %s transcribed (%.1fs)"
MSG_FAILED = "✗ %s failed: %s"
MSG_SAVED = "Transcript saved to %s"
