"""Test access control for bot commands."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from custom_commands.bot.middleware import restrict_to_allowed_users
from custom_commands.config.settings import Config


def _update(text, user_id=12345678):
    update = MagicMock()
    update.effective_message.text = text
    update.effective_message.reply_text = AsyncMock()
    if user_id is None:
        update.effective_user = None
    else:
        update.effective_user.id = user_id
    return update


def _context(config):
    return MagicMock(bot_data={"config": config} if config else {})


@pytest.mark.asyncio
async def test_allowed_user_runs_custom_command():
    """Whitelisted senders reach the handler."""
    handler = AsyncMock()
    update = _update("/deploy prod")
    context = _context(Config(allowed_users=[12345678]))

    await restrict_to_allowed_users(handler)(update, context)

    handler.assert_awaited_once_with(update, context)
    update.effective_message.reply_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_rejection_names_the_command():
    """Other senders are told which command was refused."""
    handler = AsyncMock()
    update = _update("/deploy@TestBot prod", user_id=1)

    await restrict_to_allowed_users(handler)(update, _context(Config(allowed_users=[2])))

    handler.assert_not_awaited()
    reply = update.effective_message.reply_text.call_args[0][0]
    assert "/deploy is only available to allowed users" in reply


@pytest.mark.asyncio
async def test_update_without_sender_is_dropped():
    """Channel posts have no sender and get no reply."""
    handler = AsyncMock()
    update = _update("/help", user_id=None)

    await restrict_to_allowed_users(handler)(update, _context(Config(allowed_users=[1])))

    handler.assert_not_awaited()
    update.effective_message.reply_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_config_rejected():
    """Handlers are not run without a config."""
    handler = AsyncMock()
    update = _update("/help")

    await restrict_to_allowed_users(handler)(update, _context(None))

    handler.assert_not_awaited()
    assert "not configured" in update.effective_message.reply_text.call_args[0][0]
