"""Exception hierarchy for vidsearch.

Every error carries an HTTP-equivalent ``status_code`` so request boundaries
can tell client mistakes (4xx) from internal failures (5xx).
"""


class VidSearchError(Exception):
    """Base exception for all vidsearch errors."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None):
        self.details = details
        super().__init__(message)


class ConfigError(VidSearchError):
    """Configuration is missing or invalid."""


class EmptyQueryError(VidSearchError):
    """Search called with a blank or missing query."""

    status_code = 400


class DocumentBuildError(VidSearchError):
    """Video metadata could not be rendered into document text."""

    status_code = 422

    def __init__(self, message: str, video_id: int | None = None, details: str | None = None):
        self.video_id = video_id
        super().__init__(message, details)


class EncodingError(VidSearchError):
    """Text encoder call failed or timed out."""

    status_code = 502

    def __init__(self, message: str, provider: str | None = None, details: str | None = None):
        self.provider = provider
        super().__init__(message, details)


class IndexIOError(VidSearchError):
    """Embedding index could not be read or written."""


class NotFoundError(VidSearchError):
    """Video ID not found in the catalog."""

    status_code = 404


class DimensionMismatchError(VidSearchError):
    """Vector length disagrees with the dimensionality of the index."""

    status_code = 409

    def __init__(self, expected: int | None, actual: int):
        self.expected = expected
        self.actual = actual
        if expected is None:
            message = f"Embedding vector is empty (got {actual} dimensions)"
        else:
            message = f"Embedding has {actual} dimensions, index expects {expected}"
        super().__init__(message)


class ServiceNotReadyError(VidSearchError):
    """SearchService used before initialize() completed."""

    status_code = 503
