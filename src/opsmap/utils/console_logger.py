from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

_INSTALLED_HANDLERS: set[str] = set()


def ensure_console_logger(
    logger: logging.Logger,
    handler_name: str,
    *,
    level: int = logging.INFO,
    rich: bool = False,
) -> None:
    if handler_name in _INSTALLED_HANDLERS:
        for handler in logger.handlers:
            if getattr(handler, "name", None) == handler_name:
                handler.setLevel(level)
                logger.setLevel(level)
        return
    for handler in logger.handlers:
        if getattr(handler, "name", None) == handler_name:
            _INSTALLED_HANDLERS.add(handler_name)
            return
    if rich:
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    handler.name = handler_name
    logger.addHandler(handler)
    logger.setLevel(level)
    _INSTALLED_HANDLERS.add(handler_name)
