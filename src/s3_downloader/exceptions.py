"""Common exception hierarchy for S3 downloads."""


class S3DownloaderError(Exception):
    """Base exception for every failure surfaced by a download operation."""


class InvalidUriError(S3DownloaderError):
    """Raised when the supplied URI cannot be resolved to an object key."""

    def __init__(self, message: str, uri: str | None = None):
        self.uri = uri
        super().__init__(message)


class DownloadCancelledError(S3DownloaderError):
    """Raised when the user dismisses the folder prompt."""


class RetrievalError(S3DownloaderError):
    """Base exception for object fetch failures."""

    def __init__(
        self,
        message: str,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ):
        self.bucket = bucket
        self.key = key
        self.cause = cause
        super().__init__(message)


class ObjectNotFoundError(RetrievalError):
    """Raised when the bucket or key does not exist."""


class AccessDeniedError(RetrievalError):
    """Raised when credentials are missing, invalid or lack permission."""


class RedirectLoopError(RetrievalError):
    """Raised when the store redirects again after the region retry."""


class EmptyResponseError(RetrievalError):
    """Raised when the store answers without a body."""


class StorageConnectionError(RetrievalError):
    """Raised when the storage endpoint is unreachable."""


class WriteError(S3DownloaderError):
    """Base exception for local materialization failures."""

    def __init__(self, message: str, path: str | None = None, cause: Exception | None = None):
        self.path = path
        self.cause = cause
        super().__init__(message)


class FolderCreateError(WriteError):
    """Raised when the destination folder cannot be created."""


class StreamWriteError(WriteError):
    """Raised when copying the object stream to disk fails midway."""


class DiskFullError(WriteError):
    """Raised when the destination volume runs out of space."""
