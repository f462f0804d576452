import logging

from rich.logging import RichHandler

from opsmap.utils.console_logger import ensure_console_logger


def test_installs_named_handler_once():
    logger = logging.getLogger("opsmap.tests.console")

    ensure_console_logger(logger, "opsmap-test-plain")
    ensure_console_logger(logger, "opsmap-test-plain")

    named = [h for h in logger.handlers if h.name == "opsmap-test-plain"]
    assert len(named) == 1
    assert logger.level == logging.INFO
    logger.removeHandler(named[0])


def test_rich_handler_and_level_update():
    logger = logging.getLogger("opsmap.tests.rich")

    ensure_console_logger(logger, "opsmap-test-rich", level=logging.WARNING, rich=True)
    ensure_console_logger(logger, "opsmap-test-rich", level=logging.DEBUG, rich=True)

    (handler,) = [h for h in logger.handlers if h.name == "opsmap-test-rich"]
    assert isinstance(handler, RichHandler)
    assert handler.level == logging.DEBUG
    assert logger.level == logging.DEBUG
    logger.removeHandler(handler)
