import inspect
from functools import lru_cache
from typing import Any, Callable, Mapping

from purchase_bot.dispatching.errors import MissingDependencyError

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@lru_cache(maxsize=None)
def _parameters(func: Callable[..., Any]) -> tuple[inspect.Parameter, ...]:
    return tuple(
        param
        for param in inspect.signature(func).parameters.values()
        if param.kind not in _SKIPPED_KINDS
    )


def func_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__name__", None) or type(func).__name__


def resolve_arguments(func: Callable[..., Any], deps: Mapping[str, Any]) -> dict[str, Any]:
    """
    Подобрать аргументы функции из контекста по именам параметров.

    Параметр со значением по умолчанию можно не найти в контексте,
    обязательный — нет (MissingDependencyError).
    """
    kwargs: dict[str, Any] = {}
    for param in _parameters(func):
        if param.name in deps:
            kwargs[param.name] = deps[param.name]
        elif param.default is inspect.Parameter.empty:
            raise MissingDependencyError(func_name(func), param.name)
    return kwargs


def call_with_deps(func: Callable[..., Any], deps: Mapping[str, Any]) -> Any:
    return func(**resolve_arguments(func, deps))
