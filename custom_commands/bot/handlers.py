"""Telegram command handlers."""
import asyncio
import html
import logging

from telegram import Update
from telegram.ext import ContextTypes

from custom_commands.claude import AgentLoop, Transcript
from custom_commands.commands import CommandRegistry, parse_slash_command, resolve_invocation
from custom_commands.exceptions import CommandNotFoundError

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 4000

# Built-ins this bot actually handles
BOT_COMMANDS = [
    ("start", "Start the bot"),
    ("help", "Show help and custom commands"),
    ("refresh", "Rescan custom commands"),
]


def format_help(registry: CommandRegistry) -> str:
    """Render the help listing for a registry snapshot."""
    lines = ["<b>Built-in commands</b>"]
    for name, description in BOT_COMMANDS:
        lines.append(f"/{name} - {html.escape(description)}")

    lines.append("")
    lines.append("<b>Custom commands</b>")
    if not len(registry):
        lines.append("<i>none</i>")
    for record in registry.records:
        entry = f"/{html.escape(record.name)}"
        if record.metadata.argument_hint:
            entry += f" <code>{html.escape(record.metadata.argument_hint)}</code>"
        entry += f" - {html.escape(record.description)}"
        label = record.source.value
        if record.display_scope_label:
            label += f":{record.display_scope_label}"
        entry += f" <i>({html.escape(label)})</i>"
        lines.append(entry)

    if registry.errors:
        lines.append("")
        lines.append("<b>Skipped</b>")
        for error in registry.errors:
            lines.append(
                f"⚠️ <code>{html.escape(error.location)}</code>: {html.escape(error.reason)}"
            )

    text = "\n".join(lines)
    if len(text) > MESSAGE_LIMIT:
        text = text[: MESSAGE_LIMIT - 3] + "..."
    return text


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    user = update.effective_user
    await update.effective_message.reply_text(
        f"👋 Welcome, {user.first_name}!\n\n"
        "Custom commands from .codex/commands/ are available as /name.\n\n"
        "Use /help to list them."
    )


async def help_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    catalog = context.bot_data["command_catalog"]
    await update.effective_message.reply_text(format_help(catalog.snapshot), parse_mode="HTML")


async def refresh_commands(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle /refresh command - rescan custom commands now."""
    scheduler = context.bot_data.get("refresh_scheduler")
    if scheduler is not None:
        registry = await scheduler.refresh_now()
    else:
        catalog = context.bot_data["command_catalog"]
        registry = await asyncio.to_thread(catalog.refresh)

    if registry is None:
        await update.effective_message.reply_text("⚠️ Refresh cancelled.")
        return

    message = f"🔄 Commands refreshed. {len(registry)} custom command(s) loaded."
    if registry.errors:
        message += f"\n⚠️ {len(registry.errors)} skipped, see /help."
    await update.effective_message.reply_text(message)


def parse_bot_command(text: str) -> tuple[str, str] | None:
    """Parse `/name@Bot args` into the bare name and the argument string."""
    parsed = parse_slash_command(text)
    if parsed is None:
        return None
    name, arguments = parsed
    return name.split("@", 1)[0], arguments


def _split_message(text: str) -> list[str]:
    return [text[i:i + MESSAGE_LIMIT] for i in range(0, len(text), MESSAGE_LIMIT)] or [""]


async def handle_custom_command(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle `/name args` for custom commands."""
    catalog = context.bot_data["command_catalog"]
    config = context.bot_data["config"]
    registry = catalog.snapshot  # one snapshot for the whole invocation

    message = update.effective_message
    parsed = parse_bot_command(message.text or "")
    if parsed is None:
        return
    name, arguments = parsed

    try:
        directive = resolve_invocation(registry, name, arguments)
    except CommandNotFoundError as e:
        await message.reply_text(f"❌ {e}")
        return

    transcript = context.user_data.setdefault("transcript", Transcript())
    agent = AgentLoop(config, cwd=catalog.workdir, transcript=transcript)

    if directive.skip_model:
        await agent.run_turn(directive)
        await message.reply_text(
            f"📝 /{directive.command_name} recorded (model invocation disabled)."
        )
        return

    thinking_msg = await message.reply_text("🤔 Thinking...")
    try:
        result = await agent.run_turn(directive)
    except Exception as e:
        logger.exception(f"/{directive.command_name} failed")
        await thinking_msg.edit_text(f"❌ Error: {str(e)}")
        return

    chunks = _split_message(result.text or "(no response)")
    await thinking_msg.edit_text(chunks[0])
    for chunk in chunks[1:]:
        await message.reply_text(chunk)
