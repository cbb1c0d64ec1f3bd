"""
End-to-end S3 download: parse, retrieve, pick a folder, write, optionally open.

Usage:
    downloader = S3Downloader(
        retriever=S3ObjectRetriever(),
        settings=DownloaderSettings.from_env(),
    )
    outcome = await downloader.run("s3://my-bucket/reports/q1.pdf")
    print(f"Saved {outcome.size_bytes} bytes to {outcome.file_path}")
"""

import logging
import os
from enum import Enum
from typing import Awaitable, Callable, Optional

from .destination import (
    DestinationFolder,
    DestinationStrategy,
    FolderPrompt,
    PromptRequired,
    resolve_destination,
)
from .exceptions import DownloadCancelledError, InvalidUriError
from .materialize import DownloadOutcome, extract_filename, materialize
from .settings import DownloaderSettings
from .storage.base import ObjectRetriever, RetrievalResult
from .uri import parse_s3_uri

log = logging.getLogger(__name__)

FileOpener = Callable[[DownloadOutcome], Awaitable[None]]


class DownloadMode(str, Enum):
    DOWNLOAD_ONLY = "download"
    DOWNLOAD_AND_OPEN = "open"


class S3Downloader:
    """
    Runs one download per ``run`` call as a linear pipeline.

    Any failure ends the operation; only the region redirect retry inside
    the retriever is automatic. Interactive folder selection and file
    opening are delegated to the ``prompt`` and ``opener`` collaborators.
    """

    def __init__(
        self,
        retriever: ObjectRetriever,
        settings: DownloaderSettings,
        prompt: Optional[FolderPrompt] = None,
        opener: Optional[FileOpener] = None,
        workspace_root: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._retriever = retriever
        self._settings = settings
        self._prompt = prompt
        self._opener = opener
        self._workspace_root = workspace_root
        self._log = logger or log

    async def run(
        self,
        raw_uri: str,
        mode: DownloadMode = DownloadMode.DOWNLOAD_ONLY,
        region: Optional[str] = None,
        folder: Optional[str] = None,
        overwrite: bool = False,
    ) -> DownloadOutcome:
        """
        Download the object named by ``raw_uri``.

        Args:
            raw_uri: S3 URI in any supported form
            mode: DOWNLOAD_ONLY, or DOWNLOAD_AND_OPEN to hand the file to the opener
                (the plain values "download" and "open" are accepted too)
            region: Explicit region, skipping discovery
            folder: Explicit destination, bypassing the location policy
            overwrite: Replace an existing file instead of adding a suffix

        Raises:
            InvalidUriError: The URI does not name a single object.
            DownloadCancelledError: The folder prompt was dismissed.
            RetrievalError: The object could not be fetched.
            WriteError: The file could not be written.
        """
        mode = DownloadMode(mode)
        if mode is DownloadMode.DOWNLOAD_AND_OPEN and self._opener is None:
            raise ValueError("DOWNLOAD_AND_OPEN requires an opener")

        self._log.info("Input URI: %s", raw_uri)
        locator = parse_s3_uri(raw_uri)
        if not locator.is_valid:
            raise InvalidUriError(f"Invalid S3 URI: {locator.error_message}", uri=raw_uri)
        self._log.info(
            "Parsed URI successfully: bucket=%s key=%s region=%s",
            locator.bucket,
            locator.key,
            locator.region or "(auto)",
        )

        file_name = extract_filename(locator.key)
        result = await self._retriever.retrieve(locator, region)

        try:
            destination = await self._resolve_folder(file_name, folder)
        except BaseException:
            result.close()
            raise

        outcome = await self._write(result, file_name, destination, overwrite)
        self._log.info("Downloaded: %s", outcome.file_name)
        self._log.info("Location: %s", outcome.file_path)
        self._log.info("Size: %s bytes", outcome.size_bytes)

        if mode is DownloadMode.DOWNLOAD_AND_OPEN:
            self._log.debug("Opening file: %s", outcome.file_path)
            await self._opener(outcome)

        return outcome

    async def _resolve_folder(self, file_name: str, folder: Optional[str]) -> DestinationFolder:
        if folder:
            return DestinationFolder(os.path.abspath(folder), DestinationStrategy.USER_SELECTED)

        resolved = resolve_destination(self._settings, self._workspace_root, logger=self._log)
        if isinstance(resolved, DestinationFolder):
            self._log.debug("Using configured download folder: %s", resolved.path)
            return resolved

        return await self._ask_for_folder(resolved, file_name)

    async def _ask_for_folder(self, request: PromptRequired, file_name: str) -> DestinationFolder:
        if self._prompt is None:
            raise DownloadCancelledError("Download cancelled - no folder prompt available")

        selected = await self._prompt(request.default_folder, file_name)
        if not selected:
            raise DownloadCancelledError("Download cancelled - no folder selected")

        path = os.path.abspath(os.path.expanduser(selected))
        self._log.info("User selected download folder: %s", path)
        return DestinationFolder(path, DestinationStrategy.USER_SELECTED)

    async def _write(
        self,
        result: RetrievalResult,
        file_name: str,
        destination: DestinationFolder,
        overwrite: bool,
    ) -> DownloadOutcome:
        return await materialize(
            result.stream,
            file_name,
            destination.path,
            overwrite=overwrite,
            logger=self._log,
        )
