"""
CLI commands that download an S3 object, and optionally open it.

Usage:
    s3-downloader download [URI] [OPTIONS]
    s3-downloader open [URI] [OPTIONS]
"""

import asyncio
import logging
from typing import Optional

import click
from dotenv import find_dotenv, load_dotenv

from cli.utils import error_exit, find_workspace_root
from s3_downloader.common.logging_config import log_error
from s3_downloader.downloader import DownloadMode, S3Downloader
from s3_downloader.exceptions import DownloadCancelledError, S3DownloaderError
from s3_downloader.materialize import DownloadOutcome
from s3_downloader.settings import DownloaderSettings
from s3_downloader.storage import S3ObjectRetriever
from s3_downloader.uri import parse_s3_uri

log = logging.getLogger(__name__)

URI_PROMPT = "Enter S3 URI (s3://bucket/key or https://bucket.s3.region.amazonaws.com/key)"


def _validate_uri(value: str) -> str:
    locator = parse_s3_uri(value)
    if not locator.is_valid:
        raise click.BadParameter(locator.error_message or "Invalid S3 URI")
    return value.strip()


async def prompt_for_folder(default_folder: str, file_name: str) -> Optional[str]:
    """Ask for a download folder on the terminal.

    An empty answer accepts ``default_folder``. Abort (Ctrl-C, end of input)
    returns None, which cancels the download.
    """
    try:
        answer = click.prompt(
            f"Select download location for {file_name}",
            default=default_folder,
            show_default=True,
        )
    except click.Abort:
        return None
    return answer.strip() or None


async def launch_file(outcome: DownloadOutcome) -> None:
    """Open a downloaded file in the system default application."""
    status = click.launch(outcome.file_path)
    if status != 0:
        log.warning("Opening %s exited with status %s", outcome.file_path, status)
    else:
        log.info("File opened in system default application")


def _load_settings(
    system_env: bool,
    location: Optional[str],
    custom_path: Optional[str],
    always_prompt: Optional[bool],
) -> DownloaderSettings:
    if not system_env:
        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(dotenv_path=env_path, override=True)
            log.debug("Loaded environment variables from: %s", env_path)

    settings = DownloaderSettings.from_env()
    overrides: dict = {}
    if location:
        overrides["download_location"] = location
    if custom_path:
        overrides["custom_download_path"] = custom_path
        overrides.setdefault("download_location", "custom")
    if always_prompt is not None:
        overrides["always_prompt_for_location"] = always_prompt
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


def _run(
    mode: DownloadMode,
    uri: Optional[str],
    location: Optional[str],
    custom_path: Optional[str],
    always_prompt: Optional[bool],
    region: Optional[str],
    workspace: Optional[str],
    output_dir: Optional[str],
    overwrite: bool,
    system_env: bool,
) -> DownloadOutcome:
    action = "open" if mode is DownloadMode.DOWNLOAD_AND_OPEN else "download"
    log.info("S3 %s command started", action)

    if not uri:
        uri = click.prompt(URI_PROMPT, value_proc=_validate_uri)

    settings = _load_settings(system_env, location, custom_path, always_prompt)
    downloader = S3Downloader(
        retriever=S3ObjectRetriever(
            fallback_region=settings.default_region,
            endpoint_url=settings.endpoint_url,
        ),
        settings=settings,
        prompt=prompt_for_folder,
        opener=launch_file,
        workspace_root=workspace or find_workspace_root(),
    )

    try:
        return asyncio.run(
            downloader.run(
                uri,
                mode=mode,
                region=region,
                folder=output_dir,
                overwrite=overwrite,
            )
        )
    except DownloadCancelledError as e:
        error_exit(str(e))
    except S3DownloaderError as e:
        message = log_error(log, e)
        error_exit(f"Failed to {action} S3 file: {message}")
    finally:
        log.info("S3 %s command ended", action)


def download_options(func):
    """Options shared by the download and open commands."""
    options = [
        click.argument("uri", required=False),
        click.option(
            "-l",
            "--location",
            type=click.Choice(["downloads", "workspace", "temp", "custom"]),
            help="Download location strategy (overrides S3_DOWNLOADER_DOWNLOAD_LOCATION).",
        ),
        click.option(
            "--custom-path",
            type=click.Path(file_okay=False),
            help="Absolute folder for the 'custom' location.",
        ),
        click.option(
            "--prompt/--no-prompt",
            "always_prompt",
            default=None,
            help="Always ask where to save the file.",
        ),
        click.option("-r", "--region", help="Bucket region; skips region auto-detection."),
        click.option(
            "-w",
            "--workspace",
            type=click.Path(exists=True, file_okay=False, resolve_path=True),
            help="Workspace root for the 'workspace' location (default: detected from cwd).",
        ),
        click.option(
            "-o",
            "--output-dir",
            type=click.Path(file_okay=False),
            help="Save into this folder, ignoring the location settings.",
        ),
        click.option(
            "--overwrite",
            is_flag=True,
            default=False,
            help="Replace an existing file instead of adding a numeric suffix.",
        ),
        click.option(
            "-u",
            "--system-env",
            is_flag=True,
            default=False,
            help="Use system environment variables only; do not load .env file.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command(name="download")
@download_options
@click.option(
    "--reveal",
    is_flag=True,
    default=False,
    help="Show the downloaded file in the system file manager.",
)
def download(reveal: bool, **kwargs):
    """
    Download an S3 object to a local file.

    The URI can be given as s3://bucket/key or as a virtual-hosted or
    path-style https URL. When omitted, it is prompted for.
    """
    outcome = _run(DownloadMode.DOWNLOAD_ONLY, **kwargs)

    click.echo(click.style(f"Successfully downloaded: {outcome.file_name}", fg="green"))
    click.echo(f"  Path: {outcome.file_path}")
    click.echo(f"  Size: {outcome.size_bytes} bytes")

    if reveal:
        click.launch(outcome.file_path, locate=True)


@click.command(name="open")
@download_options
def open_file(**kwargs):
    """
    Download an S3 object and open it in the default application.
    """
    outcome = _run(DownloadMode.DOWNLOAD_AND_OPEN, **kwargs)
    click.echo(click.style(f"Successfully opened: {outcome.file_name}", fg="green"))
    click.echo(f"  Path: {outcome.file_path}")
