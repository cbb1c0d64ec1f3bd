import logging

import click

from cli import __version__
from cli.commands.download_cmd import download, open_file
from cli.commands.settings_cmd import settings
from s3_downloader.common.logging_config import setup_colored_logging


@click.group(context_settings=dict(help_option_names=['-h', '--help']))
@click.version_option(
    __version__, "-v", "--version", help="Show the CLI version and exit."
)
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging.")
def cli(debug: bool):
    """Download files from Amazon S3 by URI."""
    setup_colored_logging(level=logging.DEBUG if debug else logging.INFO)


cli.add_command(download)
cli.add_command(open_file)
cli.add_command(settings)


def main():
    cli()


if __name__ == "__main__":
    main()
