from typing import Any, Callable, Hashable

from purchase_bot.storage.base import Storage


class InMemStorage(Storage):
    """Состояния в словаре процесса. Для разработки и тестов."""

    def __init__(self, default_factory: Callable[[], Any]):
        self._default_factory = default_factory
        # chat_id -> state
        self._states: dict[Hashable, Any] = {}

    async def get(self, chat_id: Hashable) -> Any:
        if chat_id in self._states:
            return self._states[chat_id]
        return self._default_factory()

    async def set(self, chat_id: Hashable, state: Any) -> None:
        self._states[chat_id] = state

    async def remove(self, chat_id: Hashable) -> None:
        self._states.pop(chat_id, None)
