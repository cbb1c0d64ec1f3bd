import os
import sys
from pathlib import Path
from typing import Optional

import click

WORKSPACE_MARKERS = (".git", ".hg", "pyproject.toml", "setup.cfg")


def error_exit(message: str, code: int = 1):
    """Print an error message in red to stderr and exit."""
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(code)


def find_workspace_root(start: Optional[str] = None) -> Optional[str]:
    """
    Return the nearest ancestor of ``start`` (default: cwd) that looks like
    a project root, or None when there is none.
    """
    current = Path(start or os.getcwd()).resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in WORKSPACE_MARKERS):
            return str(candidate)
    return None
