# Тексты ответов бота

START = "Let's start! What's your full name?"
CANCELLED = "Cancelling the dialogue."
UNKNOWN = "Unable to handle the message. Type /help to see the usage."
SELECT_PRODUCT = "Select a product:"
ASK_FULL_NAME = "Please, send me your full name."
PURCHASED = "{full_name}, product '{product}' has been purchased successfully!"

PRODUCTS = ("Apple", "Banana", "Orange", "Potato")
