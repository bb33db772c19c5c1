"""
Диалог покупки.

    - /start
    - Let's start! What's your full name?
    - John Doe
    - Select a product: [Apple, Banana, Orange, Potato]
    - <пользователь выбирает "Banana">
    - John Doe, product 'Banana' has been purchased successfully!
"""
from purchase_bot.bot.commands import Command
from purchase_bot.bot.keyboards import product_keyboard
from purchase_bot.bot.messages import (
    START,
    CANCELLED,
    UNKNOWN,
    SELECT_PRODUCT,
    ASK_FULL_NAME,
    PURCHASED,
    PRODUCTS,
)
from purchase_bot.bot.sender import Sender
from purchase_bot.bot.states import Start, ReceiveFullName, ReceiveProductChoice
from purchase_bot.dispatching.events import CallbackQuery, TextMessage
from purchase_bot.dispatching.filters import (
    case_command,
    case_state,
    filter_callback_query,
    filter_command,
    filter_message,
)
from purchase_bot.dispatching.transitions import EXIT, Transition, Update
from purchase_bot.dispatching.tree import Node, endpoint, entry
from purchase_bot.logging import get_logger

logger = get_logger(__name__)


def schema(bot_username: str | None = None) -> Node:
    """Собрать дерево обработчиков бота."""
    command_handler = (
        filter_command(Command, bot_username)
        .branch(
            case_state(Start)
            .branch(case_command(Command.HELP).endpoint(help_command))
            .branch(case_command(Command.START).endpoint(start))
        )
        .branch(case_command(Command.CANCEL).endpoint(cancel))
    )

    message_handler = (
        filter_message()
        .branch(command_handler)
        .branch(case_state(ReceiveFullName).endpoint(receive_full_name))
        .branch(endpoint(invalid_state))
    )

    callback_query_handler = filter_callback_query().chain(
        case_state(ReceiveProductChoice).endpoint(receive_product_selection)
    )

    return (
        entry()
        .branch(message_handler)
        .branch(callback_query_handler)
    )


async def start(sender: Sender, message: TextMessage) -> Transition:
    logger.info("/start in chat %d", message.chat_id)
    await sender.send_message(message.chat_id, START)
    return Update(ReceiveFullName())


async def help_command(sender: Sender, message: TextMessage) -> None:
    await sender.send_message(message.chat_id, Command.descriptions())


async def cancel(sender: Sender, message: TextMessage) -> Transition:
    logger.info("Dialogue cancelled in chat %d", message.chat_id)
    await sender.send_message(message.chat_id, CANCELLED)
    return EXIT


async def invalid_state(sender: Sender, message: TextMessage) -> None:
    await sender.send_message(message.chat_id, UNKNOWN)


async def receive_full_name(sender: Sender, message: TextMessage) -> Transition | None:
    """Имя получено — предлагаем выбрать товар."""
    if message.text is None:
        await sender.send_message(message.chat_id, ASK_FULL_NAME)
        return None

    await sender.send_message(
        message.chat_id,
        SELECT_PRODUCT,
        reply_markup=product_keyboard(PRODUCTS),
    )
    return Update(ReceiveProductChoice(full_name=message.text))


async def receive_product_selection(sender: Sender, query: CallbackQuery, full_name: str) -> Transition | None:
    """Товар выбран — подтверждаем покупку и завершаем диалог."""
    if query.data is None:
        return None

    if query.query_id is not None:
        await sender.answer_callback_query(query.query_id)
    await sender.send_message(query.chat_id, PURCHASED.format(full_name=full_name, product=query.data))
    logger.info("Purchase in chat %d: %s -> %s", query.chat_id, full_name, query.data)
    return EXIT
