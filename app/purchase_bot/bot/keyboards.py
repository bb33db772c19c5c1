from typing import Iterable

from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup


def product_keyboard(products: Iterable[str]) -> InlineKeyboardMarkup:
    """Inline-клавиатура выбора товара: одна строка, callback_data = название."""
    markup = InlineKeyboardMarkup()
    markup.row(*(InlineKeyboardButton(product, callback_data=product) for product in products))
    return markup
