"""
Diagnostics sink for failures an operator should see.

The validator folds almost every failure into the result; reconciliation
faults are the exception and are reported here.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from config_logging import StructuredLogger, get_logger


class DiagnosticsSink(ABC):
    """Fire-and-forget error reporting. Implementations must not raise."""

    @abstractmethod
    def log_error(self, message: str, error: BaseException, source: Any = None) -> None:
        pass


class LoggingDiagnosticsSink(DiagnosticsSink):
    """Forward diagnostics to the structured logger."""

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self._logger = logger

    @property
    def logger(self) -> StructuredLogger:
        if self._logger is None:
            self._logger = get_logger('richtext_links.diagnostics')
        return self._logger

    def log_error(self, message: str, error: BaseException, source: Any = None) -> None:
        try:
            self.logger.error(
                message,
                exc_info=(type(error), error, error.__traceback__),
                error_type=type(error).__name__,
                error=str(error),
                reporter=type(source).__name__ if source is not None else None,
            )
        except Exception:
            # Last resort: the sink itself must never fail the caller
            logging.getLogger('richtext_links.diagnostics').error(message)
