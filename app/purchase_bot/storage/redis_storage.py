from typing import Any, Callable, Hashable

import redis.asyncio as redis
from redis.exceptions import RedisError

from purchase_bot.dispatching.errors import StoreError
from purchase_bot.logging import get_logger
from purchase_bot.storage.base import Storage
from purchase_bot.storage.serializer import JsonStateSerializer

logger = get_logger(__name__)


class RedisStorage(Storage):
    """Состояния в Redis: ключ <prefix><chat_id>, значение — JSON."""

    def __init__(
        self,
        client: redis.Redis,
        serializer: JsonStateSerializer,
        default_factory: Callable[[], Any],
        key_prefix: str = "dlg:state:",
        ttl_seconds: int | None = None,
    ):
        self._client = client
        self._serializer = serializer
        self._default_factory = default_factory
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, serializer: JsonStateSerializer, **kwargs: Any) -> "RedisStorage":
        """Создать хранилище с новым клиентом Redis."""
        client = redis.from_url(url, decode_responses=True)
        return cls(client, serializer, **kwargs)

    def _key(self, chat_id: Hashable) -> str:
        return f"{self._key_prefix}{chat_id}"

    async def get(self, chat_id: Hashable) -> Any:
        try:
            raw = await self._client.get(self._key(chat_id))
        except RedisError as e:
            raise StoreError(f"Redis read failed for chat {chat_id}") from e
        if raw is None:
            return self._default_factory()
        return self._serializer.loads(raw)

    async def set(self, chat_id: Hashable, state: Any) -> None:
        payload = self._serializer.dumps(state)
        try:
            await self._client.set(self._key(chat_id), payload, ex=self._ttl_seconds)
        except RedisError as e:
            raise StoreError(f"Redis write failed for chat {chat_id}") from e

    async def remove(self, chat_id: Hashable) -> None:
        try:
            await self._client.delete(self._key(chat_id))
        except RedisError as e:
            raise StoreError(f"Redis delete failed for chat {chat_id}") from e

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis storage closed")
