"""Download single S3 objects to local files with region-aware routing."""

__version__ = "0.1.0"

from .destination import (
    DestinationFolder,
    DestinationStrategy,
    PromptRequired,
    resolve_destination,
)
from .downloader import DownloadMode, S3Downloader
from .exceptions import (
    AccessDeniedError,
    DiskFullError,
    DownloadCancelledError,
    EmptyResponseError,
    FolderCreateError,
    InvalidUriError,
    ObjectNotFoundError,
    RedirectLoopError,
    RetrievalError,
    S3DownloaderError,
    StorageConnectionError,
    StreamWriteError,
    WriteError,
)
from .materialize import DownloadOutcome, extract_filename, materialize
from .settings import DownloaderSettings
from .storage import RetrievalResult, S3ObjectRetriever
from .uri import ObjectLocator, parse_s3_uri

__all__ = [
    "__version__",
    "AccessDeniedError",
    "DestinationFolder",
    "DestinationStrategy",
    "DiskFullError",
    "DownloadCancelledError",
    "DownloadMode",
    "DownloadOutcome",
    "DownloaderSettings",
    "EmptyResponseError",
    "FolderCreateError",
    "InvalidUriError",
    "ObjectLocator",
    "ObjectNotFoundError",
    "PromptRequired",
    "RedirectLoopError",
    "RetrievalError",
    "RetrievalResult",
    "S3Downloader",
    "S3DownloaderError",
    "S3ObjectRetriever",
    "StorageConnectionError",
    "StreamWriteError",
    "WriteError",
    "extract_filename",
    "materialize",
    "parse_s3_uri",
    "resolve_destination",
]
