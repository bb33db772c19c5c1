"""
Директивы смены состояния, которые возвращает обработчик.

  - Update(state) — сохранить новое состояние
  - Exit()        — завершить диалог (запись удаляется, дальше снова default)
  - NoChange()    — ничего не трогать; то же самое, что вернуть None
"""
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Update:
    state: Any


@dataclass(frozen=True)
class Exit:
    pass


@dataclass(frozen=True)
class NoChange:
    pass


Transition = Update | Exit | NoChange

EXIT = Exit()
NO_CHANGE = NoChange()


def as_transition(result: object) -> Transition:
    """Привести возвращённое обработчиком значение к директиве."""
    if result is None:
        return NO_CHANGE
    if isinstance(result, (Update, Exit, NoChange)):
        return result
    raise TypeError(f"Handler must return Update, Exit, NoChange or None, got {type(result).__name__}")
