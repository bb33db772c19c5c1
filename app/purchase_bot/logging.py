import logging
import sys

# telebot вешает свой обработчик на stderr при импорте — импортируем заранее,
# чтобы setup_logging заменил его
import telebot  # noqa: F401

from purchase_bot.config import settings

APP_LOGGER = "purchase_bot"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Логгеры библиотек, которые пишут через обработчик приложения (WARNING+, DEBUG — всё)
LIBRARY_LOGGERS = ("TeleBot", "alembic", "werkzeug", "sqlalchemy.engine")


def setup_logging(level: str | None = None) -> logging.Logger:
    """Логгер приложения и логгеры библиотек с единым обработчиком в stdout."""
    level = (level or settings.log_level).upper()
    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(level)

    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        app_logger.addHandler(handler)

        library_level = level if level == "DEBUG" else "WARNING"
        for name in LIBRARY_LOGGERS:
            library_logger = logging.getLogger(name)
            library_logger.handlers = [handler]
            library_logger.setLevel(library_level)
            library_logger.propagate = False

    return app_logger


def get_logger(name: str) -> logging.Logger:
    """
    Логгер модуля. Обычно get_logger(__name__).

    Имена вне пакета получают префикс purchase_bot., чтобы попасть
    под обработчик приложения.
    """
    if name != APP_LOGGER and not name.startswith(f"{APP_LOGGER}."):
        name = f"{APP_LOGGER}.{name}"
    return logging.getLogger(name)


logger = setup_logging()
