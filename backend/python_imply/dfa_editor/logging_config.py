"""
Logging for the DFA editor.

structlog events and plain stdlib records share the same handlers: a plain
console stream, and rotating JSON files once a log directory is configured.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional

import structlog

EDITOR_LOG = "editor.log"
ERROR_LOG = "error.log"

# Libraries whose per-request chatter drowns out editor events
QUIET_LOGGERS = ("httpx", "httpcore")

FOREIGN_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _formatter(renderer) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=FOREIGN_PRE_CHAIN)


def _rotating_file(path: Path, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    handler.setLevel(level)
    return handler


def build_handlers(
    log_dir: Optional[str],
    level: int,
    max_bytes: int,
    backup_count: int,
    console_output: bool,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_file(log_path / EDITOR_LOG, logging.DEBUG, max_bytes, backup_count))
        handlers.append(_rotating_file(log_path / ERROR_LOG, logging.ERROR, max_bytes, backup_count))
    if console_output:
        console = logging.StreamHandler()
        console.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=False)))
        console.setLevel(level)
        handlers.append(console)
    return handlers


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: str = "INFO",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    console_output: bool = True,
) -> None:
    """
    Route structlog through the stdlib root logger.

    Args:
        log_dir: Directory for editor.log and error.log. No files when None
        log_level: Root level (DEBUG, INFO, WARNING, ERROR)
        max_bytes: Size at which a log file is rotated
        backup_count: Rotated files kept per log
        console_output: Also log to stderr
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in build_handlers(log_dir, level, max_bytes, backup_count, console_output):
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *FOREIGN_PRE_CHAIN,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
