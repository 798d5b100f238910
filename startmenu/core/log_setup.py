import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional
import structlog
from structlog.stdlib import ProcessorFormatter, BoundLogger, add_logger_name
from structlog.processors import (
    JSONRenderer,
    TimeStamper,
    add_log_level,
    StackInfoRenderer,
    format_exc_info,
)
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer


XDG_STATE_HOME = os.environ.get("XDG_STATE_HOME") or os.path.expanduser(
    "~/.local/state"
)
APP_DIR = "startmenu"

LOG_FILE_PATH = os.path.join(XDG_STATE_HOME, APP_DIR, "startmenu.log")

LOGGER_NAME = "startmenu"

RELOAD_MESSAGE_PREFIX = "Categories file changed"
SELF_ECHO_MESSAGE_PREFIX = "Ignoring change event for"


class SpamFilter(logging.Filter):
    """Lets the first of a run of identical reload or self-echo lines through."""

    def __init__(self):
        super().__init__()
        self._last_repeatable: Optional[str] = None

    def filter(self, record):
        message = record.getMessage()
        if message.startswith((RELOAD_MESSAGE_PREFIX, SELF_ECHO_MESSAGE_PREFIX)):
            if message == self._last_repeatable:
                return False
            self._last_repeatable = message
        else:
            self._last_repeatable = None
        return True


def level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    level: int = logging.DEBUG, log_file_path: str = LOG_FILE_PATH
) -> BoundLogger:
    os.makedirs(os.path.dirname(log_file_path), exist_ok=True)
    shared_processors = [
        add_log_level,
        TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        StackInfoRenderer(),
        format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors
        + [
            add_logger_name,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    std_logger = logging.getLogger(LOGGER_NAME)
    std_logger.setLevel(level)
    std_logger.propagate = False
    for handler in std_logger.handlers[:]:
        std_logger.removeHandler(handler)
    spam_filter = SpamFilter()
    file_handler = RotatingFileHandler(
        log_file_path,
        maxBytes=1024 * 1024,
        backupCount=2,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.addFilter(spam_filter)
    file_handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=shared_processors + [add_logger_name],
            processor=JSONRenderer(),
        )
    )
    std_logger.addHandler(file_handler)
    console_handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_path=False,
        show_time=False,
    )
    console_handler.setLevel(level)
    console_handler.addFilter(spam_filter)
    console_handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processor=ConsoleRenderer(colors=False),
            fmt="%(message)s",
        )
    )
    std_logger.addHandler(console_handler)
    return structlog.get_logger(LOGGER_NAME)
