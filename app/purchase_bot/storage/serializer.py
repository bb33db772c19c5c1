import json
from dataclasses import asdict, is_dataclass
from typing import Any

from purchase_bot.dispatching.errors import StoreError


class JsonStateSerializer:
    """
    Состояние-датакласс <-> JSON.

    Формат: {"type": "<имя класса>", <поля>...}. Принимаются только
    перечисленные при создании варианты.
    """

    def __init__(self, *variants: type):
        self._variants = {variant.__name__: variant for variant in variants}

    def dumps(self, state: Any) -> str:
        name = type(state).__name__
        if self._variants.get(name) is not type(state) or not is_dataclass(state):
            raise StoreError(f"Cannot serialize unknown state {state!r}")
        return json.dumps({"type": name, **asdict(state)}, ensure_ascii=False)

    def loads(self, raw: str | bytes) -> Any:
        try:
            payload = json.loads(raw)
            variant = self._variants[payload.pop("type")]
            return variant(**payload)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreError(f"Corrupted state payload: {raw!r}") from e
