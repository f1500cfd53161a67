"""
Logger wrapper that binds contextual fields to every message.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        logger = ContextLogger(__name__, destination="public.customers")
        logger.info("Executing MERGE", key="customers_pkey")
        # Output includes both destination and key
    """

    def __init__(self, name: str, **context):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def bind(self, **context) -> "ContextLogger":
        """
        Return a new ContextLogger with additional context

        Args:
            **context: Context key-value pairs layered over the current ones

        Returns:
            New ContextLogger sharing the same underlying logger
        """
        return ContextLogger(self.logger.name, **{**self.context, **context})

    def get_context(self) -> dict[str, Any]:
        return self.context.copy()
