"""Tests for the Telegram webhook endpoint."""
import asyncio

import pytest

from purchase_bot.bot import webhook_server
from purchase_bot.bot.webhook_server import app
from purchase_bot.dispatching.events import CallbackQuery, TextMessage

WEBHOOK_URL = "/webhook/secret-path"
SECRET_HEADERS = {"X-Telegram-Bot-Api-Secret-Token": "test-secret"}

MESSAGE_UPDATE = {
    "update_id": 1,
    "message": {
        "message_id": 10,
        "date": 1700000000,
        "chat": {"id": 777, "type": "private"},
        "from": {"id": 777, "is_bot": False, "first_name": "John"},
        "text": "/start",
    },
}


class FakeRunner:
    """Вместо потока с event loop запоминает переданные вызовы."""

    def __init__(self):
        self.calls = []
        self.is_running = True

    def call_soon(self, callback, *args):
        self.calls.append((callback, args))


@pytest.fixture
def runner(monkeypatch, dispatcher):
    fake = FakeRunner()
    monkeypatch.setattr(webhook_server, "_dispatcher", dispatcher)
    monkeypatch.setattr(webhook_server, "_runner", fake)
    return fake


@pytest.fixture
def client():
    app.config["TESTING"] = True
    return app.test_client()


def test_update_is_submitted_to_dispatcher(client, runner, dispatcher):
    response = client.post(WEBHOOK_URL, json=MESSAGE_UPDATE, headers=SECRET_HEADERS)

    assert response.status_code == 200
    assert runner.calls == [(dispatcher.submit, (TextMessage(chat_id=777, text="/start", message_id=10),))]


def test_callback_update_is_submitted(client, runner):
    update = {
        "update_id": 2,
        "callback_query": {
            "id": "cb-9",
            "from": {"id": 777, "is_bot": False, "first_name": "John"},
            "message": MESSAGE_UPDATE["message"],
            "chat_instance": "ci",
            "data": "Orange",
        },
    }
    response = client.post(WEBHOOK_URL, json=update, headers=SECRET_HEADERS)

    assert response.status_code == 200
    _, (event,) = runner.calls[0]
    assert event == CallbackQuery(chat_id=777, data="Orange", query_id="cb-9")


def test_invalid_secret_token(client, runner):
    response = client.post(WEBHOOK_URL, json=MESSAGE_UPDATE, headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"})
    assert response.status_code == 403
    assert runner.calls == []


def test_invalid_content_type(client, runner):
    response = client.post(WEBHOOK_URL, data="text", headers={**SECRET_HEADERS, "Content-Type": "text/plain"})
    assert response.status_code == 400
    assert runner.calls == []


def test_unsupported_update_is_acknowledged(client, runner):
    update = {"update_id": 3, "edited_message": MESSAGE_UPDATE["message"]}
    response = client.post(WEBHOOK_URL, json=update, headers=SECRET_HEADERS)
    assert response.status_code == 200
    assert runner.calls == []


def test_dispatcher_not_set(client, monkeypatch):
    monkeypatch.setattr(webhook_server, "_dispatcher", None)
    response = client.post(WEBHOOK_URL, json=MESSAGE_UPDATE, headers=SECRET_HEADERS)
    assert response.status_code == 500


def test_shutting_down_dispatcher_refuses_updates(client, runner, dispatcher):
    asyncio.run(dispatcher.shutdown())
    response = client.post(WEBHOOK_URL, json=MESSAGE_UPDATE, headers=SECRET_HEADERS)
    assert response.status_code == 503
    assert runner.calls == []


def test_health(client, runner):
    assert client.get("/health").status_code == 200
    runner.is_running = False
    assert client.get("/health").status_code == 503
