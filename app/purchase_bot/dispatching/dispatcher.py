"""
Диспетчер событий.

Для каждого события:
  1. берём состояние диалога из хранилища (или default);
  2. выбираем обработчик по дереву, если ничего не подошло — default_handler;
  3. вызываем обработчик;
  4. применяем возвращённую директиву: Update -> set, Exit -> remove.

Шаги 1-4 для одного chat_id не пересекаются (lock на диалог), разные диалоги
обрабатываются параллельно. Если обработчик упал — состояние не меняется.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Hashable, Mapping

from purchase_bot.dispatching.errors import DispatchError, HandlerError, StoreError
from purchase_bot.dispatching.events import Event
from purchase_bot.dispatching.transitions import Exit, NoChange, Transition, Update, as_transition
from purchase_bot.dispatching.tree import Endpoint, Node, Selection
from purchase_bot.logging import get_logger
from purchase_bot.storage.base import Storage

logger = get_logger(__name__)

ErrorHandler = Callable[[DispatchError, Event], Awaitable[None]]


class DispatchStatus(str, Enum):
    HANDLED = "handled"
    FALLBACK = "fallback"
    HANDLER_FAILED = "handler_failed"
    STORE_FAILED = "store_failed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DispatchResult:
    chat_id: Hashable
    status: DispatchStatus
    endpoint: str | None = None
    transition: Transition | None = None
    error: DispatchError | None = None


def log_unhandled(event: Event) -> None:
    """Обработчик по умолчанию: событие никуда не подошло."""
    logger.warning("Unhandled event in chat %s: %r", event.chat_id, event)


async def log_error(error: DispatchError, event: Event) -> None:
    """Канал ошибок по умолчанию — лог приложения."""
    logger.error("Dispatch error in chat %s: %s", event.chat_id, error, exc_info=error)


class Dispatcher:
    def __init__(
        self,
        handler: Node,
        storage: Storage,
        *,
        dependencies: Mapping[str, Any] | None = None,
        default_handler: Callable[..., Any] = log_unhandled,
        error_handler: ErrorHandler = log_error,
    ):
        self._handler = handler
        self._storage = storage
        self._dependencies = dict(dependencies or {})
        self._default = Endpoint(default_handler)
        self._error_handler = error_handler

        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._lock_users: dict[Hashable, int] = {}
        self._tasks: set[asyncio.Task] = set()
        self._accepting = True

    @property
    def accepting(self) -> bool:
        return self._accepting

    def submit(self, event: Event) -> asyncio.Task | None:
        """
        Поставить событие в обработку фоновой задачей.

        Вызывать из потока event loop. Порядок вызовов submit для одного
        chat_id сохраняется при обработке.
        """
        if not self._accepting:
            logger.warning("Dispatcher is shutting down, dropping event for chat %s", event.chat_id)
            return None
        task = asyncio.get_running_loop().create_task(self.ingest(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def ingest(self, event: Event) -> DispatchResult:
        """Обработать одно событие и вернуть итог."""
        chat_id = event.chat_id
        if not self._accepting:
            logger.warning("Dispatcher is shutting down, rejecting event for chat %s", chat_id)
            return DispatchResult(chat_id, DispatchStatus.REJECTED)

        # Прямой вызов ingest тоже должен дождаться shutdown
        task = asyncio.current_task()
        if task is not None:
            self._tasks.add(task)
        try:
            async with self._conversation_lock(chat_id):
                return await self._dispatch(event, chat_id)
        finally:
            if task is not None:
                self._tasks.discard(task)

    async def shutdown(self, timeout: float | None = None) -> None:
        """
        Перестать принимать события и дождаться обработки уже принятых.

        Задачи, не успевшие за timeout, отменяются; их состояние не сохраняется.
        """
        self._accepting = False
        current = asyncio.current_task()
        pending = {task for task in self._tasks if not task.done() and task is not current}
        if not pending:
            return

        logger.info("Waiting for %d in-flight event(s)...", len(pending))
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        if still_running:
            logger.warning("Cancelling %d event(s) that did not finish in time", len(still_running))
            for task in still_running:
                task.cancel()
            await asyncio.gather(*still_running, return_exceptions=True)

    @asynccontextmanager
    async def _conversation_lock(self, chat_id: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = self._locks[chat_id] = asyncio.Lock()
        self._lock_users[chat_id] = self._lock_users.get(chat_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[chat_id] -= 1
            if not self._lock_users[chat_id]:
                del self._lock_users[chat_id]
                del self._locks[chat_id]

    async def _dispatch(self, event: Event, chat_id: Hashable) -> DispatchResult:
        try:
            state = await self._storage.get(chat_id)
        except StoreError as e:
            await self._report(e, event)
            return DispatchResult(chat_id, DispatchStatus.STORE_FAILED, error=e)

        deps = {**self._dependencies, "event": event, "state": state, "chat_id": chat_id}
        status = DispatchStatus.HANDLED
        endpoint_name = None
        try:
            selection = self._handler.select(deps)
            if selection is None:
                status = DispatchStatus.FALLBACK
                selection = Selection(self._default, deps)
            endpoint_name = selection.endpoint.name
            logger.debug("Chat %s: state=%r -> %s", chat_id, state, endpoint_name)
            transition = as_transition(await selection.invoke())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = HandlerError(endpoint_name or "<select>", e)
            error.__cause__ = e
            await self._report(error, event)
            return DispatchResult(chat_id, DispatchStatus.HANDLER_FAILED, endpoint_name, error=error)

        # Запись доводится до конца даже при отмене задачи; lock диалога
        # держим, пока она не завершится
        commit = asyncio.ensure_future(self._commit(chat_id, transition))
        try:
            await asyncio.shield(commit)
        except asyncio.CancelledError:
            try:
                await commit
            except StoreError as e:
                await self._report(e, event)
            raise
        except StoreError as e:
            await self._report(e, event)
            return DispatchResult(chat_id, DispatchStatus.STORE_FAILED, endpoint_name, error=e)

        return DispatchResult(chat_id, status, endpoint_name, transition)

    async def _commit(self, chat_id: Hashable, transition: Transition) -> None:
        if isinstance(transition, Update):
            await self._storage.set(chat_id, transition.state)
            logger.debug("Chat %s: state -> %r", chat_id, transition.state)
        elif isinstance(transition, Exit):
            await self._storage.remove(chat_id)
            logger.debug("Chat %s: dialogue finished", chat_id)
        elif not isinstance(transition, NoChange):
            raise TypeError(f"Unknown transition: {transition!r}")

    async def _report(self, error: DispatchError, event: Event) -> None:
        try:
            await self._error_handler(error, event)
        except Exception:
            logger.exception("Error handler failed while reporting %r", error)
