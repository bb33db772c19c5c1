"""
Хранилище состояний диалогов.

Контракт:
  - get(chat_id)         — текущее состояние или default, если записи нет
  - set(chat_id, state)  — сохранить состояние
  - remove(chat_id)      — удалить запись (диалог завершён)

Ошибки бэкенда поднимаются как StoreError.
"""
from abc import ABC, abstractmethod
from typing import Any, Hashable


class Storage(ABC):
    @abstractmethod
    async def get(self, chat_id: Hashable) -> Any:
        ...

    @abstractmethod
    async def set(self, chat_id: Hashable, state: Any) -> None:
        ...

    @abstractmethod
    async def remove(self, chat_id: Hashable) -> None:
        ...

    async def close(self) -> None:
        """Освободить соединения бэкенда."""
