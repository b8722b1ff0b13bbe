"""Tests for logging setup."""

import logging

from kvfacade.core.logging import setup_logging


def test_console_only():
    logger = setup_logging("info")
    assert logger.name == "kvfacade"
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.INFO


def test_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "kvfacade.log"
    logger = setup_logging(logging.WARNING, log_file=log_file)

    logging.getLogger("kvfacade.store.redis_store").debug("scan page")
    for handler in logger.handlers:
        handler.flush()

    assert len(logger.handlers) == 2
    assert "scan page" in log_file.read_text()
    for handler in logger.handlers:
        handler.close()


def test_repeated_setup_replaces_handlers():
    setup_logging()
    logger = setup_logging()
    assert len(logger.handlers) == 1
