"""Tests for application wiring."""
import pytest
from telebot.async_telebot import AsyncTeleBot

from purchase_bot import main
from purchase_bot.bot.sender import TelebotSender
from purchase_bot.bot.states import Start
from purchase_bot.config import settings
from purchase_bot.dispatching.dispatcher import Dispatcher
from purchase_bot.storage.memory import InMemStorage
from purchase_bot.storage.redis_storage import RedisStorage


def test_memory_storage_by_default():
    assert isinstance(main.create_storage(), InMemStorage)


def test_redis_storage_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "storage_backend", "redis")
    monkeypatch.setattr(settings, "redis_dsn", "redis://localhost:6379/5")
    storage = main.create_storage()
    assert isinstance(storage, RedisStorage)
    assert storage._key("42") == "dlg:state:42"


@pytest.mark.asyncio
async def test_dispatcher_wiring():
    bot = AsyncTeleBot("123456:TEST-TOKEN")
    storage = main.create_storage()

    dispatcher = main.create_dispatcher(bot, storage)

    assert isinstance(dispatcher, Dispatcher)
    assert isinstance(dispatcher._dependencies["sender"], TelebotSender)
    assert await storage.get(1) == Start()
