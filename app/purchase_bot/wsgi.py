"""WSGI entrypoint для gunicorn."""
import atexit

from purchase_bot.main import start_application, stop_application
from purchase_bot.bot.webhook_server import app
from purchase_bot.logging import logger

logger.info("WSGI: Initializing application...")

runner, dispatcher, storage, bot = start_application()
atexit.register(stop_application, runner, dispatcher, storage, bot)

logger.info("WSGI: Application ready")

# gunicorn ищет переменную `application` или `app`
application = app
