"""
Destination folder resolution.

Maps the configured download location strategy to an absolute folder.
Misconfiguration never fails a download: every bad setting falls back to
the system downloads folder with a logged warning. When the user asked to
be prompted every time, a PromptRequired signal is returned and the
caller performs the interactive selection.
"""

import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Mapping, Optional, Union

from .settings import DownloaderSettings

log = logging.getLogger(__name__)

TEMP_SUBFOLDER = "s3Downloader"


class DestinationStrategy(str, Enum):
    DOWNLOADS = "downloads"
    WORKSPACE = "workspace"
    TEMP = "temp"
    CUSTOM = "custom"
    USER_SELECTED = "user-selected"


@dataclass(frozen=True)
class DestinationFolder:
    """Absolute folder a download will be written to. It may not exist yet."""

    path: str
    strategy: DestinationStrategy


@dataclass(frozen=True)
class PromptRequired:
    """The folder must be chosen interactively; ``default_folder`` is the suggestion."""

    default_folder: str


# (default folder, file name) -> chosen absolute folder, or None when cancelled
FolderPrompt = Callable[[str, str], Awaitable[Optional[str]]]


def get_system_downloads_folder(
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[str] = None,
) -> str:
    """Return the OS-conventional downloads folder."""
    platform = platform or sys.platform
    env = os.environ if environ is None else environ
    home = home or os.path.expanduser("~")

    if platform == "win32":
        return os.path.join(env.get("USERPROFILE") or home, "Downloads")

    if platform.startswith("linux"):
        xdg_dir = env.get("XDG_DOWNLOAD_DIR")
        if xdg_dir:
            # user-dirs.dirs style values reference $HOME
            return xdg_dir.replace("$HOME", home)

    return os.path.join(home, "Downloads")


def get_temp_download_folder() -> str:
    return os.path.join(tempfile.gettempdir(), TEMP_SUBFOLDER)


def _downloads(logger: logging.Logger) -> DestinationFolder:
    folder = os.path.abspath(get_system_downloads_folder())
    logger.debug("Using downloads folder: %s", folder)
    return DestinationFolder(folder, DestinationStrategy.DOWNLOADS)


def _workspace(workspace_root: Optional[str], logger: logging.Logger) -> DestinationFolder:
    if not workspace_root:
        logger.warning("No workspace folder available, falling back to Downloads folder")
        return _downloads(logger)

    folder = os.path.abspath(workspace_root)
    logger.debug("Using workspace root: %s", folder)
    return DestinationFolder(folder, DestinationStrategy.WORKSPACE)


def _custom(custom_path: str, logger: logging.Logger) -> DestinationFolder:
    custom_path = (custom_path or "").strip()
    if not custom_path:
        logger.warning("Custom download path is empty, falling back to Downloads folder")
        return _downloads(logger)

    if not os.path.isabs(custom_path):
        logger.error("Custom download path must be absolute: %s", custom_path)
        logger.warning("Falling back to Downloads folder")
        return _downloads(logger)

    # The final folder is created on write; only its parent has to exist
    parent_dir = os.path.dirname(os.path.normpath(custom_path))
    if not os.path.isdir(parent_dir):
        logger.error("Parent directory does not exist: %s", parent_dir)
        logger.warning("Falling back to Downloads folder")
        return _downloads(logger)

    logger.debug("Using custom download path: %s", custom_path)
    return DestinationFolder(os.path.normpath(custom_path), DestinationStrategy.CUSTOM)


def resolve_destination(
    settings: DownloaderSettings,
    workspace_root: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> Union[DestinationFolder, PromptRequired]:
    """
    Resolve the download folder for the configured strategy.

    Args:
        settings: Downloader settings
        workspace_root: Root of the active project, if any
        logger: Optional logger (module logger when omitted)

    Returns:
        DestinationFolder, or PromptRequired when always_prompt_for_location is set
    """
    logger = logger or log

    if settings.always_prompt_for_location:
        logger.debug("Always prompt for location is enabled")
        return PromptRequired(default_folder=get_system_downloads_folder())

    location = settings.download_location
    if location == DestinationStrategy.DOWNLOADS.value:
        return _downloads(logger)
    if location == DestinationStrategy.WORKSPACE.value:
        return _workspace(workspace_root, logger)
    if location == DestinationStrategy.TEMP.value:
        folder = get_temp_download_folder()
        logger.debug("Using temp folder: %s", folder)
        return DestinationFolder(folder, DestinationStrategy.TEMP)
    if location == DestinationStrategy.CUSTOM.value:
        return _custom(settings.custom_download_path, logger)

    logger.warning("Unknown download location setting: %s", location)
    return _downloads(logger)
