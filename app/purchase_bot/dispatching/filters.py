"""Готовые узлы дерева для типовых проверок."""
from dataclasses import fields, is_dataclass
from typing import Any

from purchase_bot.dispatching.commands import BotCommands
from purchase_bot.dispatching.events import CallbackQuery, Event, TextMessage
from purchase_bot.dispatching.tree import Case, Filter


def filter_message() -> Case:
    """Текстовое сообщение; кладёт его в контекст как `message`."""

    def extract_message(event: Event) -> dict[str, Any] | None:
        if isinstance(event, TextMessage):
            return {"message": event}
        return None

    return Case(extract_message, name="filter_message")


def filter_callback_query() -> Case:
    """Нажатие inline-кнопки; кладёт его в контекст как `query`."""

    def extract_query(event: Event) -> dict[str, Any] | None:
        if isinstance(event, CallbackQuery):
            return {"query": event}
        return None

    return Case(extract_query, name="filter_callback_query")


def filter_command(commands: type[BotCommands], bot_username: str | None = None) -> Case:
    """Сообщение с командой из набора `commands`; кладёт её в контекст как `command`."""

    def extract_command(message: TextMessage) -> dict[str, Any] | None:
        command = commands.parse(message.text, bot_username)
        if command is None:
            return None
        return {"command": command}

    return Case(extract_command, name=f"filter_command[{commands.__name__}]")


def case_command(*expected: BotCommands) -> Filter:
    def is_expected(command: BotCommands) -> bool:
        return command in expected

    names = ",".join(member.command for member in expected)
    return Filter(is_expected, name=f"case_command[{names}]")


def case_state(*variants: type) -> Case:
    """
    Текущее состояние — один из `variants`.

    Поля состояния-датакласса попадают в контекст по своим именам,
    например ReceiveProductChoice(full_name=...) -> `full_name`.
    """

    def extract_state(state: Any) -> dict[str, Any] | None:
        if not isinstance(state, variants):
            return None
        if is_dataclass(state):
            return {f.name: getattr(state, f.name) for f in fields(state)}
        return {}

    names = ",".join(variant.__name__ for variant in variants)
    return Case(extract_state, name=f"case_state[{names}]")
