"""
Шаги диалога покупки.

Start -> ReceiveFullName -> ReceiveProductChoice(full_name) -> (exit) Start
"""
from dataclasses import dataclass

from purchase_bot.storage.serializer import JsonStateSerializer


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class ReceiveFullName:
    pass


@dataclass(frozen=True)
class ReceiveProductChoice:
    full_name: str


State = Start | ReceiveFullName | ReceiveProductChoice


def default_state() -> State:
    return Start()


state_serializer = JsonStateSerializer(Start, ReceiveFullName, ReceiveProductChoice)
