import click
from dotenv import find_dotenv, load_dotenv

from s3_downloader.destination import (
    DestinationFolder,
    get_system_downloads_folder,
    get_temp_download_folder,
    resolve_destination,
)
from s3_downloader.settings import (
    ALWAYS_PROMPT_ENV,
    CUSTOM_DOWNLOAD_PATH_ENV,
    DOWNLOAD_LOCATION_ENV,
    ENDPOINT_URL_ENV,
    REGION_ENVS,
    DownloaderSettings,
)
from cli.utils import find_workspace_root


@click.command(name="settings")
@click.option(
    "-u",
    "--system-env",
    is_flag=True,
    default=False,
    help="Use system environment variables only; do not load .env file.",
)
def settings(system_env: bool):
    """
    Show the effective download settings and where they come from.
    """
    if not system_env:
        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(dotenv_path=env_path, override=True)
            click.echo(f"Loaded environment variables from: {env_path}")

    current = DownloaderSettings.from_env()
    rows = [
        (DOWNLOAD_LOCATION_ENV, "download location", current.download_location),
        (CUSTOM_DOWNLOAD_PATH_ENV, "custom download path", current.custom_download_path or "(not set)"),
        (ALWAYS_PROMPT_ENV, "always prompt for location", str(current.always_prompt_for_location).lower()),
        (" / ".join(REGION_ENVS), "fallback region", current.default_region or "(not set)"),
        (ENDPOINT_URL_ENV, "endpoint url", current.endpoint_url or "(AWS default)"),
    ]
    for env_name, label, value in rows:
        click.echo(f"{label:<28} {value}")
        click.echo(click.style(f"{'':<28} from {env_name}", fg="bright_black"))

    click.echo()
    click.echo(f"{'downloads folder':<28} {get_system_downloads_folder()}")
    click.echo(f"{'temp folder':<28} {get_temp_download_folder()}")

    resolved = resolve_destination(current, find_workspace_root())
    if isinstance(resolved, DestinationFolder):
        click.echo(click.style(f"{'files will be saved to':<28} {resolved.path}", fg="green"))
    else:
        click.echo(click.style(f"{'files will be saved to':<28} (asked on each download)", fg="green"))
