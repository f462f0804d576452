import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..events.bus import Event, EventBus
from . import LayerDataError, StaleCallback


class ErrorSeverity(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


def classify(error: Exception) -> ErrorSeverity:
    """Return the default severity for *error*.

    Stale callbacks are routine after a style switch and a layer that failed
    to load only degrades the board.  Anything else is a bug.
    """
    if isinstance(error, StaleCallback):
        return ErrorSeverity.DEBUG
    if isinstance(error, LayerDataError):
        return ErrorSeverity.WARNING
    return ErrorSeverity.ERROR


class ErrorHandler:
    """Log board failures, publish them on the bus and forward serious ones to the UI."""

    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]):
        self._ui_callback = callback

    def handle(self, error: Exception, severity: Optional[ErrorSeverity] = None, context: Optional[dict] = None):
        severity = severity or classify(error)
        context = dict(context or {})
        where = " ".join(f"{key}={value}" for key, value in context.items())
        message = f"{error.__class__.__name__}: {error}"
        if where:
            message = f"{message} [{where}]"

        log_method = getattr(self._logger, severity.value, self._logger.error)
        if severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            log_method(message, exc_info=(type(error), error, error.__traceback__))
        else:
            log_method(message)

        self._events.publish(ErrorOccurredEvent(error=error, severity=severity, context=context))

        if self._ui_callback and severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self._ui_callback(str(error), severity)
