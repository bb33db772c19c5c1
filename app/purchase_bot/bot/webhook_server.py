import telebot
from flask import Flask, request, abort

from purchase_bot.bot.runner import DispatchRunner
from purchase_bot.bot.updates import event_from_update
from purchase_bot.config import settings
from purchase_bot.dispatching.dispatcher import Dispatcher
from purchase_bot.logging import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

# Диспетчер и его event loop — устанавливаются из main.py
_dispatcher: Dispatcher | None = None
_runner: DispatchRunner | None = None


def set_dispatcher(dispatcher: Dispatcher, runner: DispatchRunner) -> None:
    """Установить диспетчер для обработки апдейтов."""
    global _dispatcher, _runner
    _dispatcher = dispatcher
    _runner = runner


@app.route(f"/{settings.webhook_path}", methods=["POST"])
def webhook() -> tuple[str, int]:
    """Эндпоинт для приёма webhook-апдейтов от Telegram."""
    if _dispatcher is None or _runner is None:
        logger.error("Dispatcher not set")
        abort(500)

    # Проверка secret token (если задан)
    if settings.webhook_secret_token:
        token = request.headers.get("X-Telegram-Bot-Api-Secret-Token", "")
        if token != settings.webhook_secret_token:
            logger.warning("Invalid secret token in webhook request")
            abort(403)

    if request.headers.get("content-type") != "application/json":
        logger.warning("Invalid content-type: %s", request.headers.get("content-type"))
        abort(400)

    if not _dispatcher.accepting:
        abort(503)

    json_data = request.get_data(as_text=True)
    update = telebot.types.Update.de_json(json_data)
    event = event_from_update(update)
    if event is None:
        logger.debug("Skipping update %s: unsupported type", update.update_id)
        return "OK", 200

    _runner.call_soon(_dispatcher.submit, event)
    return "OK", 200


@app.route("/health", methods=["GET"])
def health() -> tuple[str, int]:
    """Healthcheck эндпоинт."""
    if _runner is not None and not _runner.is_running:
        return "DISPATCH LOOP DOWN", 503
    return "OK", 200
