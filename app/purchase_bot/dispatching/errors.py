"""
Ошибки диспетчера.

  - StoreError             — сбой чтения/записи хранилища состояний
  - HandlerError           — обработчик (или фильтр) упал либо вернул мусор
  - MissingDependencyError — обработчик просит зависимость, которой нет в контексте

Нераспознанная команда ошибкой не считается: парсер возвращает None,
и событие уходит в следующую ветку дерева.
"""


class DispatchError(Exception):
    """Базовая ошибка диспетчера."""


class StoreError(DispatchError):
    """Хранилище состояний недоступно или вернуло битые данные."""


class HandlerError(DispatchError):
    """Исключение внутри обработчика, пойманное на границе Endpoint."""

    def __init__(self, endpoint: str, cause: BaseException):
        super().__init__(f"Handler {endpoint!r} failed: {cause!r}")
        self.endpoint = endpoint
        self.cause = cause


class MissingDependencyError(DispatchError):
    def __init__(self, func_name: str, param: str):
        super().__init__(f"{func_name}() requires {param!r}, which is not available in the dispatch context")
        self.func_name = func_name
        self.param = param
