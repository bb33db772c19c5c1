import telebot

from purchase_bot.dispatching.events import CallbackQuery, Event, TextMessage


def event_from_update(update: telebot.types.Update) -> Event | None:
    """Апдейт Telegram -> событие диспетчера. None для апдейтов, которые бот не обрабатывает."""
    message = update.message
    if message is not None:
        return TextMessage(chat_id=message.chat.id, text=message.text, message_id=message.message_id)

    query = update.callback_query
    if query is not None:
        # У старых inline-сообщений может не быть message — тогда пишем в личку
        message = getattr(query, "message", None)
        chat = getattr(message, "chat", None)
        chat_id = chat.id if chat is not None else query.from_user.id
        return CallbackQuery(chat_id=chat_id, data=query.data, query_id=query.id)

    return None
