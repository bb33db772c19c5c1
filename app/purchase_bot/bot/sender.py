from typing import Any, Protocol

from telebot.async_telebot import AsyncTeleBot


class Sender(Protocol):
    """Исходящие действия, доступные обработчикам как зависимость `sender`."""

    async def send_message(self, chat_id: int, text: str, reply_markup: Any = None) -> None:
        ...

    async def answer_callback_query(self, query_id: str) -> None:
        ...


class TelebotSender:
    def __init__(self, bot: AsyncTeleBot):
        self._bot = bot

    async def send_message(self, chat_id: int, text: str, reply_markup: Any = None) -> None:
        await self._bot.send_message(chat_id, text, reply_markup=reply_markup)

    async def answer_callback_query(self, query_id: str) -> None:
        await self._bot.answer_callback_query(query_id)
