# tests/test_logging_setup.py
import logging
import logging.handlers

import pytest
import structlog
from config import settings
from rich.logging import RichHandler

import utils.logging as logging_utils


@pytest.fixture
def restore_root_handlers():
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    root_logger.handlers = saved_handlers
    root_logger.setLevel(saved_level)
    structlog.reset_defaults()


def test_setup_logging_writes_file(monkeypatch, tmp_path, restore_root_handlers):
    log_file = tmp_path / "logs" / "workshop.log"
    monkeypatch.setattr(settings, "LOG_FILE", str(log_file))
    monkeypatch.setattr(settings, "ENABLE_RICH_LOGGING", False)

    logging_utils.setup_logging()

    handler_types = {type(h) for h in restore_root_handlers.handlers}
    assert logging.handlers.RotatingFileHandler in handler_types
    assert logging.StreamHandler in handler_types
    assert log_file.parent.is_dir()


def test_setup_logging_rich_console(monkeypatch, restore_root_handlers):
    monkeypatch.setattr(settings, "LOG_FILE", None)
    monkeypatch.setattr(settings, "ENABLE_RICH_LOGGING", True)

    logging_utils.setup_logging()

    handlers = restore_root_handlers.handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], RichHandler)
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_json_console(monkeypatch, restore_root_handlers):
    monkeypatch.setattr(settings, "LOG_FILE", None)
    monkeypatch.setattr(settings, "LOG_JSON", True)

    logging_utils.setup_logging()

    handlers = restore_root_handlers.handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
