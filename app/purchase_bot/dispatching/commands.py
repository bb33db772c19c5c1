"""
Разбор команд бота.

Команда — первое слово сообщения, начинающееся с "/". Регистр не важен,
суффикс "@имя_бота" отбрасывается. Разбор чистый и тотальный: всё, что не
похоже на известную команду, даёт None.
"""
from enum import Enum
from typing import TypeVar

C = TypeVar("C", bound="BotCommands")

COMMAND_PREFIX = "/"


def extract_command(text: str | None, bot_username: str | None = None) -> tuple[str, str] | None:
    """Вернуть (команда, аргументы) или None, если текст не начинается с команды."""
    if not text:
        return None
    tokens = text.strip().split(maxsplit=1)
    if not tokens:
        return None
    command_token = tokens[0].lower()
    if not command_token.startswith(COMMAND_PREFIX) or len(command_token) == 1:
        return None
    if "@" in command_token:
        command_token, mention = command_token.split("@", 1)
        # Команда адресована другому боту в группе
        if bot_username and mention != bot_username.lower():
            return None
    args = tokens[1] if len(tokens) > 1 else ""
    return command_token[len(COMMAND_PREFIX):], args


class BotCommands(Enum):
    """
    Базовый класс для закрытого набора команд.

    Имя команды — имя элемента в нижнем регистре, значение — описание для /help:

        class Command(BotCommands):
            HELP = "display this text."
    """

    @property
    def command(self) -> str:
        return f"{COMMAND_PREFIX}{self.name.lower()}"

    @property
    def description(self) -> str:
        return self.value

    @classmethod
    def parse(cls: type[C], text: str | None, bot_username: str | None = None) -> C | None:
        extracted = extract_command(text, bot_username)
        if extracted is None:
            return None
        name, _ = extracted
        for member in cls:
            if member.name.lower() == name:
                return member
        return None

    @classmethod
    def descriptions(cls, header: str = "These commands are supported:") -> str:
        lines = [header] if header else []
        lines.extend(f"{member.command} — {member.description}" for member in cls)
        return "\n".join(lines)
