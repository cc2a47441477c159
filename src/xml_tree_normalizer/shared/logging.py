"""Structured logging utilities for XML tree normalization.

Every record emitted while normalizing a document carries the component
that produced it and the correlation ID of the run, so records from
concurrent runs can be told apart.
"""

import logging
from typing import Any, Dict, Optional

Extra = Optional[Dict[str, Any]]


class CorrelationLogger:
    """Wraps a standard logger and tags each record with run context.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Identifier shared by all records of one run
        component: Short component label; defaults to the last part of
            ``name``
    """

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]

    def _context(self, extra: Extra) -> Dict[str, Any]:
        context = {"component": self.component, "correlation_id": self.correlation_id}
        context.update(extra or {})
        return context

    def _log(self, level: int, message: str, extra: Extra, exc_info: bool) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra=self._context(extra), exc_info=exc_info)

    def debug(self, message: str, extra: Extra = None) -> None:
        self._log(logging.DEBUG, message, extra, False)

    def info(self, message: str, extra: Extra = None) -> None:
        self._log(logging.INFO, message, extra, False)

    def warning(self, message: str, extra: Extra = None) -> None:
        self._log(logging.WARNING, message, extra, False)

    def exception(self, message: str, extra: Extra = None) -> None:
        """Log at ERROR level with the traceback of the exception being handled."""
        self._log(logging.ERROR, message, extra, True)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance."""
    return CorrelationLogger(name, correlation_id, component)
