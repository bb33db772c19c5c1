import sqlalchemy
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from telebot.async_telebot import AsyncTeleBot
from telebot.types import BotCommand

from purchase_bot.config import settings
from purchase_bot.logging import logger
from purchase_bot.bot.commands import Command
from purchase_bot.bot.handlers import schema
from purchase_bot.bot.runner import DispatchRunner
from purchase_bot.bot.sender import TelebotSender
from purchase_bot.bot.states import default_state, state_serializer
from purchase_bot.bot.webhook_server import app, set_dispatcher
from purchase_bot.dispatching.dispatcher import Dispatcher
from purchase_bot.storage.base import Storage
from purchase_bot.storage.db import get_engine, get_session
from purchase_bot.storage.memory import InMemStorage
from purchase_bot.storage.redis_storage import RedisStorage
from purchase_bot.storage.sql_storage import SqlStorage


def create_storage() -> Storage:
    """Хранилище состояний по настройке STORAGE_BACKEND."""
    if settings.storage_backend == "redis":
        logger.info("Using Redis dialogue storage")
        return RedisStorage.from_url(
            settings.redis_dsn,
            state_serializer,
            default_factory=default_state,
            key_prefix=settings.state_key_prefix,
            ttl_seconds=settings.state_ttl_seconds,
        )
    if settings.storage_backend == "postgres":
        logger.info("Using Postgres dialogue storage")
        return SqlStorage(get_session, state_serializer, default_factory=default_state)

    logger.info("Using in-memory dialogue storage")
    return InMemStorage(default_factory=default_state)


def create_dispatcher(bot: AsyncTeleBot, storage: Storage) -> Dispatcher:
    """Создать диспетчер с деревом обработчиков бота."""
    return Dispatcher(
        schema(settings.bot_username),
        storage,
        dependencies={"sender": TelebotSender(bot)},
    )


async def setup_webhook(bot: AsyncTeleBot) -> None:
    """Установить webhook и меню команд в Telegram."""
    logger.info("Removing old webhook...")
    await bot.delete_webhook(drop_pending_updates=True)

    logger.info("Setting webhook: %s", settings.webhook_url)
    await bot.set_webhook(
        url=settings.webhook_url,
        secret_token=settings.webhook_secret_token or None,
        allowed_updates=["message", "callback_query"],
    )
    await bot.set_my_commands([BotCommand(member.name.lower(), member.description) for member in Command])
    logger.info("Webhook set successfully")


def run_migrations() -> None:
    """Применить все pending-миграции Alembic при старте."""
    logger.info("Running database migrations...")
    alembic_cfg = Config("alembic.ini")

    # Если таблица уже есть, а alembic_version — нет,
    # значит БД создана через create_all; штампуем начальную ревизию.
    with get_engine().connect() as conn:
        context = MigrationContext.configure(conn)
        current_rev = context.get_current_revision()
        has_tables = sqlalchemy.inspect(conn).has_table("dialogue_states")

    if current_rev is None and has_tables:
        logger.info("Existing database without alembic_version detected, stamping 001_dialogue_states...")
        command.stamp(alembic_cfg, "001_dialogue_states")

    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations applied")


def start_application() -> tuple[DispatchRunner, Dispatcher, Storage, AsyncTeleBot]:
    """Миграции, бот, диспетчер, webhook. Общая часть main() и wsgi."""
    if settings.storage_backend == "postgres":
        run_migrations()

    bot = AsyncTeleBot(settings.bot_token)
    storage = create_storage()
    dispatcher = create_dispatcher(bot, storage)

    runner = DispatchRunner()
    runner.start()
    set_dispatcher(dispatcher, runner)

    runner.run(setup_webhook(bot))
    return runner, dispatcher, storage, bot


def stop_application(runner: DispatchRunner, dispatcher: Dispatcher, storage: Storage, bot: AsyncTeleBot) -> None:
    """Дождаться обработки принятых событий и закрыть соединения."""
    logger.info("Shutting down...")
    runner.run(dispatcher.shutdown(settings.shutdown_timeout_seconds))
    runner.run(storage.close())
    runner.run(bot.close_session())
    runner.stop()
    logger.info("Stopped")


def main() -> None:
    logger.info("Starting purchase bot...")

    runner, dispatcher, storage, bot = start_application()

    logger.info("Starting webhook server on %s:%d", settings.app_host, settings.app_port)
    try:
        # Запуск Flask через gunicorn (в продакшене) или встроенный сервер
        app.run(host=settings.app_host, port=settings.app_port)
    finally:
        stop_application(runner, dispatcher, storage, bot)


if __name__ == "__main__":
    main()
