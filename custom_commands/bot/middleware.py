"""Access control for bot commands."""
import logging
from functools import wraps
from typing import Awaitable, Callable

from telegram import Update
from telegram.ext import ContextTypes

from .handlers import parse_bot_command

logger = logging.getLogger(__name__)

CommandCallback = Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]


def restrict_to_allowed_users(handler: CommandCallback) -> CommandCallback:
    """Run a command handler only for whitelisted senders.

    Updates without a sender, such as channel posts, are dropped without a
    reply. A rejected sender is told which command was refused, so the
    same guard covers /help, /refresh and every custom command.
    """

    @wraps(handler)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None:
            logger.debug("Ignoring command without a sender")
            return None

        message = update.effective_message
        config = context.bot_data.get("config")
        if config is None:
            if message is not None:
                await message.reply_text("⚠️ Bot not configured")
            return None

        if not config.is_user_allowed(user.id):
            parsed = parse_bot_command(message.text or "") if message is not None else None
            command = f"/{parsed[0]}" if parsed else "this command"
            logger.warning(f"Rejected {command} from user {user.id}")
            if message is not None:
                await message.reply_text(f"⛔ {command} is only available to allowed users.")
            return None

        return await handler(update, context)

    return wrapper
