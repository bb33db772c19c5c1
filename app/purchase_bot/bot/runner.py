import asyncio
import threading
from typing import Any, Awaitable, Callable, TypeVar

from purchase_bot.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class DispatchRunner:
    """
    Event loop диспетчера в отдельном потоке.

    Flask-обработчики синхронные, а диспетчер и AsyncTeleBot живут в asyncio:
    апдейты передаются в loop через call_soon_threadsafe (порядок сохраняется).
    """

    def __init__(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="dispatch-loop", daemon=True)

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()
        logger.info("Dispatch loop started")

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Выполнить callback в потоке loop."""
        self._loop.call_soon_threadsafe(callback, *args)

    def run(self, coro: Awaitable[T], timeout: float | None = None) -> T:
        """Выполнить корутину в loop и дождаться результата из текущего потока."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout)

    def stop(self) -> None:
        if not self.is_running:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        logger.info("Dispatch loop stopped")
