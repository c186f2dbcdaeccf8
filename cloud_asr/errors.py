"""Exception taxonomy for the transcription pipeline."""


class CloudASRError(Exception):
    """Base class for every failure surfaced to a caller."""


class MissingCredentialError(CloudASRError):
    """Raised when a backend is used without its API key configured."""

    def __init__(self, env_var: str):
        self.env_var = env_var
        super().__init__(f"{env_var} environment variable is not set")


class MissingParameterError(CloudASRError):
    """Raised when a request lacks a required parameter or combines exclusive ones."""


class InvalidPayloadError(MissingParameterError):
    """Raised when inline file content cannot be decoded."""

    def __init__(self, file_name: str, cause: Exception | None = None):
        self.file_name = file_name
        self.cause = cause
        super().__init__(f"file_content for '{file_name}' is not valid base64")


class NotFoundError(CloudASRError, FileNotFoundError):
    """Raised when a local audio file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"File not found: {self.path}"


class UnsupportedFormatError(CloudASRError):
    """Raised when the file extension is not a supported audio format."""

    def __init__(self, extension: str, supported: tuple[str, ...]):
        self.extension = extension
        self.supported = supported
        super().__init__(
            f"Unsupported audio format: {extension or '(none)'}. "
            f"Supported formats: {', '.join(supported)}"
        )


class FileTooLargeError(CloudASRError):
    """Raised when a file exceeds a backend's hard size ceiling."""

    def __init__(self, size: int, max_size: int, backend: str):
        self.size = size
        self.max_size = max_size
        self.backend = backend
        super().__init__(
            f"File too large for {backend} ({round(size / 1024 / 1024)}MB). "
            f"Maximum size is {round(max_size / 1024 / 1024)}MB."
        )


class PreprocessingError(CloudASRError):
    """Raised when the external transcoder is missing or fails."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        super().__init__(f"{message}: {stderr}" if stderr else message)


class BackendRequestError(CloudASRError):
    """Raised when a backend HTTP call returns a non-success status."""

    def __init__(self, backend: str, status_code: int, body: str):
        self.backend = backend
        self.status_code = status_code
        self.body = body
        super().__init__(f"{backend} API error ({status_code}): {body}")


class UploadError(CloudASRError):
    """Raised when uploading audio to a job-based backend fails."""

    def __init__(self, status_code: int | None, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upload failed with status {status_code}: {body}")


class JobCreationError(CloudASRError):
    """Raised when a transcription job cannot be created."""

    def __init__(self, status_code: int | None, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Transcript creation failed with status {status_code}: {body}")


class RemoteProcessingError(CloudASRError):
    """Raised when a remote job or uploaded artifact reaches a failure state."""


class EmptyResultError(CloudASRError):
    """Raised when a backend reports success but returns no text."""


class PollingTimeoutError(CloudASRError, TimeoutError):
    """Raised when polling exhausts its attempt ceiling in a non-terminal state."""

    def __init__(self, attempts: int, interval: float):
        self.attempts = attempts
        self.interval = interval
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Transcription timed out after {self.attempts} polls "
            f"({self.attempts * self.interval:.0f}s)"
        )


class UnknownToolError(CloudASRError):
    """Raised when a tool identifier has no registered backend."""

    def __init__(self, tool_id: str):
        self.tool_id = tool_id
        super().__init__(f"Unknown tool: {tool_id}")
