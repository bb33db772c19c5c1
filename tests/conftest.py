"""Pytest configuration and fixtures."""
import os

# Настройки читаются при импорте purchase_bot.config
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("WEBHOOK_DOMAIN", "bot.example.com")
os.environ["WEBHOOK_SECRET_TOKEN"] = "test-secret"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["BOT_USERNAME"] = "purchase_bot"

import pytest

from purchase_bot.bot.handlers import schema
from purchase_bot.bot.states import default_state
from purchase_bot.dispatching.dispatcher import Dispatcher
from purchase_bot.storage.memory import InMemStorage


class RecordingSender:
    """Sender, который запоминает исходящие сообщения вместо отправки."""

    def __init__(self):
        self.sent = []
        self.answered = []

    async def send_message(self, chat_id, text, reply_markup=None):
        self.sent.append((chat_id, text, reply_markup))

    async def answer_callback_query(self, query_id):
        self.answered.append(query_id)

    def texts(self, chat_id):
        return [text for cid, text, _ in self.sent if cid == chat_id]


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def storage():
    return InMemStorage(default_factory=default_state)


@pytest.fixture
def errors():
    """Ошибки, попавшие в канал ошибок диспетчера."""
    return []


@pytest.fixture
def dispatcher(storage, sender, errors):
    async def collect_error(error, event):
        errors.append((error, event))

    return Dispatcher(
        schema("purchase_bot"),
        storage,
        dependencies={"sender": sender},
        error_handler=collect_error,
    )
