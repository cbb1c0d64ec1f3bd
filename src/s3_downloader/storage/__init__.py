"""Object retrieval from S3 with region-aware routing."""

from .base import ObjectRetriever, RetrievalResult
from .s3_client import (
    DEFAULT_REGION,
    S3ObjectRetriever,
    extract_region,
    is_permanent_redirect,
    normalize_location_constraint,
)

__all__ = [
    "DEFAULT_REGION",
    "ObjectRetriever",
    "RetrievalResult",
    "S3ObjectRetriever",
    "extract_region",
    "is_permanent_redirect",
    "normalize_location_constraint",
]
