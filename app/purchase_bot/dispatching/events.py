"""Нормализованные входящие события. Транспорт превращает в них апдейты Telegram."""
from dataclasses import dataclass


@dataclass(frozen=True)
class TextMessage:
    chat_id: int
    # None для сообщений без текста (стикер, фото и т.п.)
    text: str | None
    message_id: int | None = None


@dataclass(frozen=True)
class CallbackQuery:
    chat_id: int
    data: str | None
    query_id: str | None = None


Event = TextMessage | CallbackQuery
