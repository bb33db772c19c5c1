"""Tests for the application logging setup."""
import logging

from purchase_bot.logging import APP_LOGGER, LIBRARY_LOGGERS, get_logger, setup_logging


def test_module_logger_keeps_package_name():
    assert get_logger("purchase_bot.dispatching.dispatcher").name == "purchase_bot.dispatching.dispatcher"
    assert get_logger(APP_LOGGER) is logging.getLogger(APP_LOGGER)


def test_foreign_name_is_prefixed():
    assert get_logger("helpers").name == "purchase_bot.helpers"


def test_library_loggers_share_app_handler():
    app_logger = setup_logging()

    assert len(app_logger.handlers) == 1
    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        assert library_logger.handlers == app_logger.handlers
        assert not library_logger.propagate


def test_repeated_setup_does_not_duplicate_handlers():
    first = setup_logging()
    second = setup_logging()

    assert first is second
    assert len(second.handlers) == 1
    assert logging.getLogger("TeleBot").handlers == second.handlers

