"""
S3 URI parsing and validation.

Accepted forms:
    s3://bucket/key
    https://bucket.s3.amazonaws.com/key
    https://bucket.s3.<region>.amazonaws.com/key
    https://bucket.s3-<region>.amazonaws.com/key
    https://s3.amazonaws.com/bucket/key
    https://s3.<region>.amazonaws.com/bucket/key
    https://s3-<region>.amazonaws.com/bucket/key

Dualstack hosts, plain http and the .amazonaws.com.cn partition are accepted
as well. The region is only set when the host names one; otherwise it is
left for the retriever to discover.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlsplit

EMPTY_URI_MESSAGE = "S3 URI cannot be empty"
MISSING_KEY_MESSAGE = "S3 URI must include a file key (not just a bucket or directory)"
DIRECTORY_KEY_MESSAGE = "S3 URI must point to a file, not a directory (URI ends with /)"

_REGION = r"[a-z]{2}(?:-[a-z]+)+-\d+"
_SUFFIX = r"\.amazonaws\.com(?:\.cn)?"
_PATH_STYLE_HOST = re.compile(rf"^s3(?:[.-](?:dualstack\.)?(?P<region>{_REGION}))?{_SUFFIX}$")
_VIRTUAL_HOST = re.compile(
    rf"^(?P<bucket>.+?)\.s3(?:[.-](?:dualstack\.)?(?P<region>{_REGION}))?{_SUFFIX}$"
)
_BUCKET_NAME = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


@dataclass(frozen=True)
class ObjectLocator:
    """Structured (bucket, key, region) identification of an S3 object."""

    bucket: str
    key: str
    region: Optional[str] = None
    is_valid: bool = True
    error_message: Optional[str] = None

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    @classmethod
    def invalid(
        cls,
        error_message: str,
        bucket: str = "",
        key: str = "",
        region: Optional[str] = None,
    ) -> "ObjectLocator":
        return cls(
            bucket=bucket,
            key=key,
            region=region,
            is_valid=False,
            error_message=error_message,
        )


def _split_uri(uri: str) -> tuple[str, str, Optional[str]]:
    """Split a trimmed URI into (bucket, key, region). Raises ValueError."""
    scheme, sep, _ = uri.partition("://")
    if not sep:
        raise ValueError(f"missing scheme in {uri!r} (expected s3:// or https://)")
    scheme = scheme.lower()

    if scheme == "s3":
        # Keys are taken verbatim: '?' and '#' are legal key characters
        bucket, _, key = uri[len("s3://"):].partition("/")
        return bucket, key, None

    if scheme not in ("http", "https"):
        raise ValueError(f"unsupported scheme {scheme!r}")

    parts = urlsplit(uri)
    host = (parts.hostname or "").lower()
    if not host:
        raise ValueError("URL has no host")

    path_match = _PATH_STYLE_HOST.match(host)
    if path_match:
        bucket, _, key = parts.path.lstrip("/").partition("/")
        return bucket, unquote(key), path_match.group("region")

    host_match = _VIRTUAL_HOST.match(host)
    if host_match:
        key = parts.path[1:] if parts.path.startswith("/") else parts.path
        return host_match.group("bucket"), unquote(key), host_match.group("region")

    raise ValueError(f"{host!r} is not an S3 endpoint")


def parse_s3_uri(raw: str) -> ObjectLocator:
    """
    Parse and validate an S3 URI that must point at a single object.

    Never raises: every failure is reported through ``is_valid`` and
    ``error_message`` on the returned locator.
    """
    try:
        uri = (raw or "").strip()
        if not uri:
            return ObjectLocator.invalid(EMPTY_URI_MESSAGE)

        bucket, key, region = _split_uri(uri)
        if not _BUCKET_NAME.match(bucket):
            raise ValueError(f"invalid bucket name {bucket!r}")

        if not key or not key.strip():
            return ObjectLocator.invalid(MISSING_KEY_MESSAGE, bucket=bucket, region=region)

        if key.endswith("/"):
            return ObjectLocator.invalid(
                DIRECTORY_KEY_MESSAGE, bucket=bucket, key=key, region=region
            )

        return ObjectLocator(bucket=bucket, key=key, region=region)
    except Exception as e:
        return ObjectLocator.invalid(f"Failed to parse S3 URI: {e}")
