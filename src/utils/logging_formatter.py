import copy
import logging
import sys

from .colors import Colors
from .structured_logging import JSONFormatter

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter to add colors to log levels and specific messages.
    Highlights extraction results and dims the per-part decode chatter.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GREY,
        logging.INFO: Colors.BLUE,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED
    }

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: str = "%Y-%m-%d %H:%M:%S"):
        super().__init__(fmt, datefmt)

    def format(self, record):
        # Copy so that other handlers (e.g. a file handler) never see ANSI codes
        record = copy.copy(record)

        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        record.levelname = f"{color}{record.levelname}{Colors.RESET}"

        if isinstance(record.msg, str):
            if record.msg.startswith("Verification code found"):
                record.msg = f"{Colors.GREEN}{record.msg}{Colors.RESET}"
            elif record.msg.startswith("Parsed "):
                record.msg = f"{Colors.MAGENTA}{Colors.BOLD}{record.msg}{Colors.RESET}"
            elif record.levelno == logging.DEBUG:
                record.msg = f"{Colors.GREY}{record.msg}{Colors.RESET}"

        return super().format(record)


def setup_logging(level: str = "INFO", fmt: str = "text", stream=None) -> logging.Handler:
    """
    Install a single stream handler on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO with a warning
        fmt: "json" for JSONFormatter, anything else for ColoredFormatter
        stream: Output stream (default: sys.stdout)

    Returns:
        The installed handler
    """
    level_name = str(level).upper()
    resolved = logging.getLevelName(level_name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ColoredFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(resolved)

    if resolved == logging.INFO and level_name != "INFO":
        logging.getLogger(__name__).warning(
            "Invalid log level '%s'; defaulting to INFO", level
        )

    return handler
