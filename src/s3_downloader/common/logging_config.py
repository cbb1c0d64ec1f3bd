"""
Colored console logging for the S3 downloader.

Every download stage takes an optional logger. When none is supplied it
uses its module logger, so output is controlled entirely by the handlers
configured here (or by the embedding application).
"""

import logging
import os
import sys
from typing import Optional, TextIO


class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colors the level name and the names of storage loggers.

    Color scheme:
    - DEBUG: Cyan
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red
    - boto3/botocore/storage logger names: Blue
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    STORAGE_KEYWORDS = ['boto', 'storage', 's3transfer', 'urllib3']

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
        stream: Optional[TextIO] = None,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and self._supports_color(stream if stream is not None else sys.stderr)

    @staticmethod
    def _supports_color(stream: TextIO) -> bool:
        """
        Check if the terminal behind ``stream`` supports color output.

        Returns:
            True if colors are supported, False otherwise
        """
        if not hasattr(stream, 'isatty'):
            return False
        if not stream.isatty():
            return False

        if os.environ.get('NO_COLOR'):
            return False

        if os.environ.get('FORCE_COLOR'):
            return True

        # Windows Terminal and ANSICON understand escape codes, the legacy console does not
        if sys.platform == 'win32':
            return bool(os.environ.get('ANSICON') or os.environ.get('WT_SESSION'))

        return True

    def _is_storage_log(self, record: logging.LogRecord) -> bool:
        logger_name = record.name.lower()
        return any(keyword in logger_name for keyword in self.STORAGE_KEYWORDS)

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        levelname_orig = record.levelname
        name_orig = record.name

        level_color = self.LEVEL_COLORS.get(record.levelno, '')
        record.levelname = f"{level_color}{record.levelname}{Colors.RESET}"

        if self._is_storage_log(record):
            record.name = f"{Colors.BLUE}{record.name}{Colors.RESET}"

        result = super().format(record)

        record.levelname = levelname_orig
        record.name = name_orig

        return result


def setup_colored_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None,
    use_colors: bool = True
) -> None:
    """
    Configure colored console logging on the root logger.

    Existing root handlers are removed so repeated calls do not duplicate
    output. botocore is held at WARNING unless DEBUG is requested, since its
    INFO chatter drowns out the download progress messages.

    Args:
        level: The logging level (default: INFO)
        format_string: Custom format string (default: timestamp, name, level, message)
        date_format: Custom date format string
        use_colors: Whether to use colors (auto-detects TTY support)

    Example:
        >>> from s3_downloader.common.logging_config import setup_colored_logging
        >>> setup_colored_logging(level=logging.DEBUG)
    """
    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    formatter = ColoredFormatter(
        fmt=format_string,
        datefmt=date_format,
        use_colors=use_colors,
        stream=sys.stderr,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr keeps stdout free for the command results
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in ('boto3', 'botocore', 's3transfer', 'urllib3'):
        logging.getLogger(name).setLevel(library_level)


def log_error(log: Optional[logging.Logger], error: object) -> str:
    """
    Log an exception or a plain message at ERROR level and return the
    string to show the user.

    Exceptions are logged by message, with the traceback attached at DEBUG
    so the console stays readable. ``log`` may be None, in which case
    nothing is logged and only the display string is produced.
    """
    if isinstance(error, BaseException):
        message = str(error) or error.__class__.__name__
        if log is not None:
            log.error("%s", message)
            log.debug("Failure details", exc_info=(type(error), error, error.__traceback__))
        return message

    message = error if isinstance(error, str) else str(error)
    if log is not None:
        log.error("%s", message)
    return message
