"""S3 object retriever with bucket region discovery and redirect recovery."""

import asyncio
import logging
import os
import re
from typing import Any, Callable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from ..exceptions import (
    AccessDeniedError,
    EmptyResponseError,
    ObjectNotFoundError,
    RedirectLoopError,
    RetrievalError,
    StorageConnectionError,
)
from ..uri import ObjectLocator
from .base import ObjectRetriever, RetrievalResult

log = logging.getLogger(__name__)

# GetBucketLocation answers for every bucket when sent to the global endpoint
DEFAULT_REGION = "us-east-1"

_LEGACY_LOCATIONS = {"EU": "eu-west-1"}

_ENDPOINT_REGION = re.compile(r"s3[.-](?:dualstack\.)?([a-z]{2}(?:-[a-z]+)+-\d+)\.amazonaws\.com")

_ERROR_CODE_MAP = {
    "NoSuchKey": ObjectNotFoundError,
    "NoSuchBucket": ObjectNotFoundError,
    "NotFound": ObjectNotFoundError,
    "404": ObjectNotFoundError,
    "AccessDenied": AccessDeniedError,
    "AllAccessDisabled": AccessDeniedError,
    "403": AccessDeniedError,
    "InvalidAccessKeyId": AccessDeniedError,
    "SignatureDoesNotMatch": AccessDeniedError,
    "ExpiredToken": AccessDeniedError,
}

ClientFactory = Callable[[str], Any]


def normalize_location_constraint(constraint: Optional[str]) -> str:
    """Map a GetBucketLocation LocationConstraint to a region name."""
    if not constraint:
        return DEFAULT_REGION
    return _LEGACY_LOCATIONS.get(constraint, constraint)


def is_permanent_redirect(error: Exception) -> bool:
    if not isinstance(error, ClientError):
        return False
    code = error.response.get("Error", {}).get("Code", "")
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in ("PermanentRedirect", "301") or status == 301


def extract_region(error: Exception) -> Optional[str]:
    """Best-effort recovery of the bucket region from a failed S3 call.

    Looks at the x-amz-bucket-region response header first, then searches
    the error message and the Endpoint element for a regional S3 host name.
    Returns None when nothing region-shaped is found.
    """
    texts = [str(error)]
    if isinstance(error, ClientError):
        headers = error.response.get("ResponseMetadata", {}).get("HTTPHeaders", {}) or {}
        header_region = headers.get("x-amz-bucket-region")
        if header_region:
            return header_region
        endpoint = error.response.get("Error", {}).get("Endpoint")
        if endpoint:
            texts.append(endpoint)

    for text in texts:
        match = _ENDPOINT_REGION.search(text)
        if match:
            return match.group(1)
    return None


class S3ObjectRetriever(ObjectRetriever):
    """Fetches single objects from S3, routing each request to the bucket's region.

    Credentials come from the boto3 default chain (environment, shared
    config, instance profile). ``client_factory`` receives a region name
    and returns an S3 client; it defaults to ``boto3.client``.
    """

    def __init__(
        self,
        fallback_region: str | None = None,
        endpoint_url: str | None = None,
        client_factory: ClientFactory | None = None,
        logger: logging.Logger | None = None,
    ):
        self._fallback_region = fallback_region
        self._endpoint_url = endpoint_url
        self._client_factory = client_factory or self._create_client
        self._log = logger or log

    def _create_client(self, region: str):
        kwargs: dict = {
            "config": Config(
                region_name=region,
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "standard"},
            ),
        }
        if self._endpoint_url:
            kwargs["endpoint_url"] = self._endpoint_url
        return boto3.client("s3", **kwargs)

    def detect_bucket_region(self, bucket: str) -> str:
        """Ask S3 which region hosts ``bucket``.

        Raises:
            RetrievalError: If the location query fails and no region can be
                read from the failure.
        """
        self._log.debug("Detecting region for bucket: %s", bucket)
        try:
            client = self._client_factory(DEFAULT_REGION)
            response = client.get_bucket_location(Bucket=bucket)
        except (ClientError, BotoCoreError, ValueError) as e:
            self._log.error("Error detecting bucket region: %s", e)
            region = extract_region(e)
            if region:
                self._log.info("Extracted region from error message: %s", region)
                return region
            raise RetrievalError(
                f"Could not determine bucket region: {e}", bucket=bucket, cause=e
            ) from e

        constraint = response.get("LocationConstraint")
        region = normalize_location_constraint(constraint)
        if constraint in _LEGACY_LOCATIONS:
            self._log.debug("Found legacy %s location, mapping to %s", constraint, region)
        self._log.info("Detected bucket region: %s", region)
        return region

    def resolve_region(self, bucket: str) -> str:
        """Discover the bucket region, falling back to configured defaults on failure."""
        self._log.info("Region not specified, attempting auto-detection...")
        try:
            return self.detect_bucket_region(bucket)
        except RetrievalError as e:
            region = (
                self._fallback_region
                or os.getenv("AWS_REGION")
                or os.getenv("AWS_DEFAULT_REGION")
                or DEFAULT_REGION
            )
            self._log.warning("Could not detect region, using default: %s", region)
            self._log.debug("Region detection error: %s", e)
            return region

    async def retrieve(
        self, locator: ObjectLocator, region: Optional[str] = None
    ) -> RetrievalResult:
        if not locator.is_valid:
            raise ValueError(f"Cannot retrieve from an invalid locator: {locator.error_message}")
        return await asyncio.to_thread(self._retrieve, locator, region)

    def _retrieve(self, locator: ObjectLocator, region: Optional[str]) -> RetrievalResult:
        region = region or locator.region
        if region:
            self._log.info("Using specified region: %s", region)
        else:
            region = self.resolve_region(locator.bucket)

        self._log.info("Downloading object from S3: %s", locator.uri)
        try:
            return self._fetch(locator, region)
        except ClientError as e:
            if not is_permanent_redirect(e):
                raise self._translate_error(e, locator) from e
            redirect_region = extract_region(e)
            if not redirect_region:
                raise self._translate_error(e, locator) from e

        self._log.warning("Received redirect to region: %s, retrying...", redirect_region)
        try:
            result = self._fetch(locator, redirect_region)
        except ClientError as e:
            if is_permanent_redirect(e):
                raise RedirectLoopError(
                    f"S3 redirected {locator.uri} again after retrying in {redirect_region}",
                    bucket=locator.bucket,
                    key=locator.key,
                    cause=e,
                ) from e
            raise self._translate_error(e, locator) from e

        self._log.info("Successfully downloaded after redirect")
        return result

    def _fetch(self, locator: ObjectLocator, region: str) -> RetrievalResult:
        """Issue one GetObject against ``region``. ClientError is left to the caller."""
        self._log.debug("Creating S3 client with region: %s", region)
        try:
            # boto3 rejects malformed regions and endpoint URLs while building the client
            client = self._client_factory(region)
            response = client.get_object(Bucket=locator.bucket, Key=locator.key)
        except (BotoCoreError, ValueError) as e:
            raise self._translate_error(e, locator) from e

        self._log.info("Successfully received response from S3")
        body = response.get("Body")
        if body is None:
            raise EmptyResponseError(
                "No file content received from S3", bucket=locator.bucket, key=locator.key
            )

        content_length = response.get("ContentLength")
        content_type = response.get("ContentType")
        if content_length is not None:
            self._log.debug("File size: %s bytes", content_length)
        if content_type:
            self._log.debug("Content type: %s", content_type)

        return RetrievalResult(
            stream=body,
            content_length=content_length,
            content_type=content_type,
            metadata=dict(response.get("Metadata") or {}),
            region=region,
        )

    def _translate_error(self, error: Exception, locator: ObjectLocator) -> RetrievalError:
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            exc_cls = _ERROR_CODE_MAP.get(code, RetrievalError)
        elif isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            exc_cls = AccessDeniedError
        elif isinstance(error, (HTTPClientError, BotoConnectionError)):
            exc_cls = StorageConnectionError
        else:
            exc_cls = RetrievalError
        return exc_cls(
            f"Failed to download {locator.uri}: {error}",
            bucket=locator.bucket,
            key=locator.key,
            cause=error,
        )
