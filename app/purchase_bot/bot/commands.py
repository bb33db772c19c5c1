from purchase_bot.dispatching.commands import BotCommands


class Command(BotCommands):
    HELP = "display this text."
    START = "start the purchase procedure."
    CANCEL = "cancel the purchase procedure."
