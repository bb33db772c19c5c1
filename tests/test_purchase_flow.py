"""End-to-end tests for the purchase dialogue through the dispatcher."""
import asyncio

import pytest

from purchase_bot.bot.commands import Command
from purchase_bot.bot.messages import ASK_FULL_NAME, CANCELLED, PURCHASED, SELECT_PRODUCT, START, UNKNOWN
from purchase_bot.bot.states import ReceiveFullName, ReceiveProductChoice, Start
from purchase_bot.dispatching.dispatcher import DispatchStatus
from purchase_bot.dispatching.events import CallbackQuery, TextMessage
from purchase_bot.dispatching.transitions import EXIT, NO_CHANGE, Update


@pytest.mark.asyncio
async def test_fresh_conversation_starts_in_default_state(storage):
    assert await storage.get(100) == Start()
    assert await storage.get(200) == Start()


@pytest.mark.asyncio
async def test_start_command_moves_to_receive_full_name(dispatcher, storage, sender):
    await storage.set(2, ReceiveProductChoice("Someone Else"))

    result = await dispatcher.ingest(TextMessage(1, "/start"))

    assert result.status == DispatchStatus.HANDLED
    assert result.endpoint == "start"
    assert result.transition == Update(ReceiveFullName())
    assert await storage.get(1) == ReceiveFullName()
    assert await storage.get(2) == ReceiveProductChoice("Someone Else")
    assert sender.texts(1) == [START]


@pytest.mark.asyncio
async def test_full_name_moves_to_product_choice(dispatcher, storage, sender):
    await storage.set(1, ReceiveFullName())

    await dispatcher.ingest(TextMessage(1, "John Doe"))

    assert await storage.get(1) == ReceiveProductChoice(full_name="John Doe")
    chat_id, text, markup = sender.sent[-1]
    assert (chat_id, text) == (1, SELECT_PRODUCT)
    row = markup.keyboard[0]
    assert [button.text for button in row] == ["Apple", "Banana", "Orange", "Potato"]
    assert [button.callback_data for button in row] == ["Apple", "Banana", "Orange", "Potato"]


@pytest.mark.asyncio
async def test_product_selection_exits_dialogue(dispatcher, storage, sender):
    await storage.set(1, ReceiveProductChoice(full_name="John Doe"))

    result = await dispatcher.ingest(CallbackQuery(1, "Banana", query_id="q-1"))

    assert result.transition == EXIT
    assert await storage.get(1) == Start()
    assert sender.texts(1) == [PURCHASED.format(full_name="John Doe", product="Banana")]
    assert sender.answered == ["q-1"]


@pytest.mark.asyncio
async def test_whole_purchase_conversation(dispatcher, storage, sender):
    await dispatcher.ingest(TextMessage(5, "/start"))
    await dispatcher.ingest(TextMessage(5, "John Doe"))
    await dispatcher.ingest(CallbackQuery(5, "Banana"))

    assert sender.texts(5) == [
        START,
        SELECT_PRODUCT,
        "John Doe, product 'Banana' has been purchased successfully!",
    ]
    assert await storage.get(5) == Start()


@pytest.mark.asyncio
async def test_help_in_start_state(dispatcher, sender):
    result = await dispatcher.ingest(TextMessage(1, "/help"))
    assert result.transition == NO_CHANGE
    assert sender.texts(1) == [Command.descriptions()]


@pytest.mark.asyncio
@pytest.mark.parametrize("state", [Start(), ReceiveFullName(), ReceiveProductChoice("John Doe")])
async def test_cancel_from_any_state(dispatcher, storage, sender, state):
    await storage.set(1, state)

    await dispatcher.ingest(TextMessage(1, "/cancel"))

    assert await storage.get(1) == Start()
    assert sender.texts(1) == [CANCELLED]


@pytest.mark.asyncio
async def test_unrecognized_input_gets_usage_hint(dispatcher, storage, sender):
    result = await dispatcher.ingest(TextMessage(1, "hello"))

    assert result.endpoint == "invalid_state"
    assert await storage.get(1) == Start()
    assert sender.texts(1) == [UNKNOWN]


@pytest.mark.asyncio
async def test_non_text_message_asks_for_name_again(dispatcher, storage, sender):
    await storage.set(1, ReceiveFullName())

    result = await dispatcher.ingest(TextMessage(1, None))

    assert result.transition == NO_CHANGE
    assert await storage.get(1) == ReceiveFullName()
    assert sender.texts(1) == [ASK_FULL_NAME]


@pytest.mark.asyncio
async def test_callback_outside_product_choice_falls_back(dispatcher, storage, sender):
    result = await dispatcher.ingest(CallbackQuery(1, "Banana"))

    assert result.status == DispatchStatus.FALLBACK
    assert result.endpoint == "log_unhandled"
    assert await storage.get(1) == Start()
    assert sender.sent == []


@pytest.mark.asyncio
async def test_command_for_other_bot_is_not_a_command(dispatcher, sender):
    await dispatcher.ingest(TextMessage(1, "/start@other_bot"))
    assert sender.texts(1) == [UNKNOWN]


@pytest.mark.asyncio
async def test_concurrent_conversations_are_isolated(dispatcher, storage, sender):
    async def conversation(chat_id, name, product):
        await dispatcher.ingest(TextMessage(chat_id, "/start"))
        await asyncio.sleep(0)
        await dispatcher.ingest(TextMessage(chat_id, name))
        await asyncio.sleep(0)
        await dispatcher.ingest(CallbackQuery(chat_id, product))

    async def partial(chat_id, name):
        await dispatcher.ingest(TextMessage(chat_id, "/start"))
        await dispatcher.ingest(TextMessage(chat_id, name))

    await asyncio.gather(
        conversation(10, "John Doe", "Apple"),
        conversation(20, "Jane Roe", "Orange"),
        partial(30, "Max Mustermann"),
    )

    assert await storage.get(10) == Start()
    assert await storage.get(20) == Start()
    assert await storage.get(30) == ReceiveProductChoice("Max Mustermann")
    assert sender.texts(10)[-1] == "John Doe, product 'Apple' has been purchased successfully!"
    assert sender.texts(20)[-1] == "Jane Roe, product 'Orange' has been purchased successfully!"
