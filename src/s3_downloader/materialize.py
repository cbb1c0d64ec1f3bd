"""
Writes a retrieved object stream to a collision-free local file.
"""

import asyncio
import errno
import logging
import os
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from botocore.exceptions import BotoCoreError

from .exceptions import DiskFullError, FolderCreateError, StreamWriteError

log = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class DownloadOutcome:
    """Terminal artifact of one download."""

    file_name: str
    file_path: str
    size_bytes: int
    folder: str


def extract_filename(key: str) -> str:
    """Return the part of an object key after the last '/'."""
    return key.rsplit("/", 1)[-1] or key


def unique_file_path(
    folder: str,
    file_name: str,
    exists: Callable[[str], bool] = os.path.exists,
) -> str:
    """
    Return ``folder/file_name``, or the first free ``name_N.ext`` variant.

    Suffixes are probed in order starting at 1, so the lowest free one wins.
    The probe is not atomic: a concurrent writer may claim the same name
    between this check and the write.
    """
    candidate = os.path.join(folder, file_name)
    if not exists(candidate):
        return candidate

    stem, ext = os.path.splitext(file_name)
    counter = 1
    while True:
        candidate = os.path.join(folder, f"{stem}_{counter}{ext}")
        if not exists(candidate):
            return candidate
        counter += 1


def _iter_chunks(stream) -> Iterator[bytes]:
    read = getattr(stream, "read", None)
    if read is None:
        yield from stream
        return
    while True:
        chunk = read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


def _close_quietly(stream) -> None:
    close = getattr(stream, "close", None)
    if close is None:
        return
    try:
        close()
    except (OSError, BotoCoreError) as e:
        log.debug("Ignoring error while closing source stream: %s", e)


def _remove_partial(path: str, logger: logging.Logger) -> None:
    try:
        os.remove(path)
        logger.debug("Removed partially written file: %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove partially written file %s: %s", path, e)


def _write(stream, file_name: str, folder: str, overwrite: bool, logger: logging.Logger) -> DownloadOutcome:
    try:
        os.makedirs(folder, exist_ok=True)
    except OSError as e:
        _close_quietly(stream)
        raise FolderCreateError(
            f"Could not create download folder {folder}: {e}", path=folder, cause=e
        ) from e

    final_path = os.path.join(folder, file_name) if overwrite else unique_file_path(folder, file_name)
    logger.info("Saving file to: %s", final_path)

    logger.debug("Writing file to disk...")
    try:
        with open(final_path, "wb") as f:
            for chunk in _iter_chunks(stream):
                f.write(chunk)
    except (OSError, BotoCoreError) as e:
        _remove_partial(final_path, logger)
        if isinstance(e, OSError) and e.errno == errno.ENOSPC:
            raise DiskFullError(
                f"Not enough disk space to write {final_path}", path=final_path, cause=e
            ) from e
        raise StreamWriteError(
            f"Failed to write {final_path}: {e}", path=final_path, cause=e
        ) from e
    finally:
        _close_quietly(stream)

    size = os.path.getsize(final_path)
    logger.info("File saved successfully (%s bytes)", size)
    return DownloadOutcome(
        file_name=file_name,
        file_path=os.path.abspath(final_path),
        size_bytes=size,
        folder=folder,
    )


async def materialize(
    stream,
    file_name: str,
    folder: str,
    overwrite: bool = False,
    logger: Optional[logging.Logger] = None,
) -> DownloadOutcome:
    """
    Copy ``stream`` into ``folder`` under ``file_name`` (or a suffixed variant).

    The stream is consumed in a single pass and closed afterwards, whether
    the write succeeds or not. The reported size is read back from disk.

    Raises:
        FolderCreateError: The folder could not be created.
        DiskFullError: The volume ran out of space.
        StreamWriteError: Reading the source or writing the file failed.
    """
    return await asyncio.to_thread(_write, stream, file_name, folder, overwrite, logger or log)
