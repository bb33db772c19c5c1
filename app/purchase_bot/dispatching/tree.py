"""
Дерево обработчиков.

Узлы:
  - Filter   — предикат; False обрывает текущую ветку
  - Case     — сопоставление с образцом; при совпадении добавляет значения в контекст
  - Branch   — дочерние поддеревья по порядку, побеждает первое дошедшее до Endpoint
  - Chain    — последовательная композиция
  - Endpoint — конечный обработчик

Выбор обработчика (select) ничего не вызывает, кроме фильтров и экстракторов,
и для одинакового контекста всегда даёт один и тот же Endpoint. Сам обработчик
вызывает диспетчер через Selection.invoke().

Пример:

    entry()
        .branch(filter_message().branch(...).branch(endpoint(invalid_state)))
        .branch(filter_callback_query().chain(case_state(...)).endpoint(...))
"""
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from purchase_bot.dispatching.injection import call_with_deps, func_name

Deps = Mapping[str, Any]
Continuation = Callable[[Deps], "Selection | None"]


def _unhandled(deps: Deps) -> "Selection | None":
    return None


def _call_sync(func: Callable[..., Any], deps: Deps, what: str) -> Any:
    """Фильтры и экстракторы вызываются при выборе обработчика и не могут быть async."""
    result = call_with_deps(func, deps)
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError(f"{what} must be synchronous")
    return result


@dataclass(frozen=True)
class Selection:
    """Выбранный Endpoint вместе с накопленным контекстом."""

    endpoint: "Endpoint"
    deps: Deps

    async def invoke(self) -> Any:
        result = call_with_deps(self.endpoint.handler, self.deps)
        if inspect.isawaitable(result):
            result = await result
        return result


class Node:
    kind = "node"

    def __init__(self, name: str | None = None):
        self.name = name

    def select(self, deps: Deps) -> Selection | None:
        """Найти обработчик для контекста или вернуть None."""
        return self._select(deps, _unhandled)

    def _select(self, deps: Deps, then: Continuation) -> Selection | None:
        raise NotImplementedError

    def chain(self, other: "Node") -> "Chain":
        return Chain([self, other])

    def branch(self, other: "Node") -> "Chain":
        return Chain([self, Branch([other])])

    def endpoint(self, handler: Callable[..., Any]) -> "Chain":
        return self.chain(Endpoint(handler))

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "name": self.name}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class Filter(Node):
    kind = "filter"

    def __init__(self, predicate: Callable[..., bool], name: str | None = None):
        super().__init__(name or func_name(predicate))
        self.predicate = predicate

    def _select(self, deps: Deps, then: Continuation) -> Selection | None:
        passed = _call_sync(self.predicate, deps, f"Filter {self.name!r}")
        if not passed:
            return None
        return then(deps)


class Case(Node):
    """Экстрактор возвращает словарь новых значений контекста или None."""

    kind = "case"

    def __init__(self, extractor: Callable[..., Mapping[str, Any] | None], name: str | None = None):
        super().__init__(name or func_name(extractor))
        self.extractor = extractor

    def _select(self, deps: Deps, then: Continuation) -> Selection | None:
        bindings = _call_sync(self.extractor, deps, f"Case {self.name!r}")
        if bindings is None:
            return None
        return then({**deps, **bindings})


class Endpoint(Node):
    kind = "endpoint"

    def __init__(self, handler: Callable[..., Any], name: str | None = None):
        super().__init__(name or func_name(handler))
        self.handler = handler

    def _select(self, deps: Deps, then: Continuation) -> Selection | None:
        return Selection(self, deps)


class Branch(Node):
    kind = "branch"

    def __init__(self, children: Iterable[Node] = (), name: str | None = None):
        super().__init__(name)
        self.children = tuple(children)

    def _select(self, deps: Deps, then: Continuation) -> Selection | None:
        for child in self.children:
            selection = child._select(deps, then)
            if selection is not None:
                return selection
        return None

    def describe(self) -> dict[str, Any]:
        return {**super().describe(), "children": [child.describe() for child in self.children]}


class Chain(Node):
    kind = "chain"

    def __init__(self, nodes: Iterable[Node] = (), name: str | None = None):
        super().__init__(name)
        flat: list[Node] = []
        for node in nodes:
            # Вложенные безымянные цепочки разворачиваем: композиция ассоциативна
            if isinstance(node, Chain) and node.name is None:
                flat.extend(node.nodes)
            else:
                flat.append(node)
        self.nodes = tuple(flat)

    def _select(self, deps: Deps, then: Continuation) -> Selection | None:
        return self._select_from(0, deps, then)

    def _select_from(self, index: int, deps: Deps, then: Continuation) -> Selection | None:
        if index == len(self.nodes):
            return then(deps)
        return self.nodes[index]._select(deps, lambda d: self._select_from(index + 1, d, then))

    def branch(self, other: Node) -> "Chain":
        """Повторный .branch() добавляет соседа в ту же Branch."""
        if self.nodes and isinstance(self.nodes[-1], Branch) and self.nodes[-1].name is None:
            last = self.nodes[-1]
            return Chain([*self.nodes[:-1], Branch([*last.children, other])], name=self.name)
        return Chain([*self.nodes, Branch([other])], name=self.name)

    def describe(self) -> dict[str, Any]:
        return {**super().describe(), "nodes": [node.describe() for node in self.nodes]}


def entry() -> Chain:
    """Пустая цепочка — корень дерева."""
    return Chain()


def endpoint(handler: Callable[..., Any], name: str | None = None) -> Endpoint:
    return Endpoint(handler, name=name)
