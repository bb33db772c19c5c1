import asyncio
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from purchase_bot.dispatching.errors import StoreError
from purchase_bot.logging import get_logger
from purchase_bot.storage.base import Storage
from purchase_bot.storage.repo import DialogueStateRepository
from purchase_bot.storage.serializer import JsonStateSerializer

logger = get_logger(__name__)

T = TypeVar("T")


class SqlStorage(Storage):
    """
    Состояния в таблице dialogue_states.

    Сессии SQLAlchemy синхронные, поэтому каждая операция уходит в поток
    через asyncio.to_thread и не держит event loop.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        serializer: JsonStateSerializer,
        default_factory: Callable[[], Any],
    ):
        self._session_factory = session_factory
        self._serializer = serializer
        self._default_factory = default_factory

    async def get(self, chat_id: int) -> Any:
        raw = await asyncio.to_thread(self._run, "read", chat_id, lambda repo: repo.get_payload(chat_id))
        if raw is None:
            return self._default_factory()
        return self._serializer.loads(raw)

    async def set(self, chat_id: int, state: Any) -> None:
        payload = self._serializer.dumps(state)
        await asyncio.to_thread(self._run, "write", chat_id, lambda repo: repo.upsert(chat_id, payload))

    async def remove(self, chat_id: int) -> None:
        await asyncio.to_thread(self._run, "delete", chat_id, lambda repo: repo.delete(chat_id))

    def _run(self, action: str, chat_id: int, operation: Callable[[DialogueStateRepository], T]) -> T:
        session = None
        try:
            session = self._session_factory()
            return operation(DialogueStateRepository(session))
        except SQLAlchemyError as e:
            logger.error("DB error on state %s for chat %s: %s", action, chat_id, e)
            if session is not None:
                session.rollback()
            raise StoreError(f"Database {action} failed for chat {chat_id}") from e
        finally:
            if session is not None:
                session.close()
