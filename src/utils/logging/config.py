"""
Logging configuration for automerge.

Provides setup functions for configuring application-wide logging
with support for file rotation, console output, and JSON formatting.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter

TRUTHY = ("true", "1", "yes")


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = "automerge",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure logging for the application

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, file logging is disabled)
        console_output: Whether to output to console
        json_format: Use JSON format for both console and file logs
        app_name: Application name for log context
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    def _formatter(plain: logging.Formatter) -> logging.Formatter:
        if json_format:
            return JSONFormatter(
                include_timestamp=True,
                include_hostname=True,
                app_name=app_name,
            )
        return plain

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(_formatter(ConsoleFormatter(use_colors=True)))
        root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            _formatter(
                logging.Formatter(
                    fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        )
        root_logger.addHandler(file_handler)

    # Driver and exporter chatter stays at WARNING unless explicitly asked for
    for noisy in ("opentelemetry", "grpc", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging initialized: level=%s, file=%s, console=%s, json=%s",
        level, log_file or "none", console_output, json_format,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically for __name__)"""
    return logging.getLogger(name)


def configure_from_env(level: str | None = None, json_format: bool | None = None) -> None:
    """
    Configure logging from environment variables

    Explicit arguments, when given, take precedence over the environment.

    Environment variables:
        LOG_LEVEL: Log level (default: INFO)
        LOG_FILE: Log file path (default: none)
        LOG_JSON: Use JSON format (default: false)
        LOG_CONSOLE: Enable console output (default: true)
    """
    setup_logging(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE"),
        console_output=os.getenv("LOG_CONSOLE", "true").lower() in TRUTHY,
        json_format=(
            json_format
            if json_format is not None
            else os.getenv("LOG_JSON", "false").lower() in TRUTHY
        ),
    )
