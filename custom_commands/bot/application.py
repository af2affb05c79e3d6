"""Telegram bot application setup."""
import logging
import re

from telegram import Bot, BotCommand
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    filters,
)

from custom_commands.commands import (
    CommandCatalog,
    CommandRegistry,
    RefreshScheduler,
    SessionMode,
)
from custom_commands.config.settings import Config
from .middleware import restrict_to_allowed_users
from .handlers import (
    BOT_COMMANDS,
    handle_custom_command,
    help_cmd,
    refresh_commands,
    start,
)

logger = logging.getLogger(__name__)

MENU_LIMIT = 100
_MENU_NAME_RE = re.compile(r"^[a-z0-9_]{1,32}$")


def build_menu(registry: CommandRegistry) -> list[BotCommand]:
    """Telegram menu entries for built-ins plus menu-compatible custom commands."""
    menu = [BotCommand(name, desc) for name, desc in BOT_COMMANDS]

    custom = [r for r in registry.records if _MENU_NAME_RE.match(r.name)]
    remaining_slots = MENU_LIMIT - len(menu)
    if len(custom) > remaining_slots:
        logger.warning(
            f"Too many commands ({len(custom)}), truncated to {remaining_slots}"
        )

    for record in custom[:remaining_slots]:
        description = record.description
        if len(description) > 256:
            description = description[:253] + "..."
        menu.append(BotCommand(record.name, description))
    return menu


async def sync_bot_menu(bot: Bot, registry: CommandRegistry) -> None:
    """Push the command menu for a newly published snapshot."""
    await bot.set_my_commands(build_menu(registry))


async def post_init(application: Application) -> None:
    """Scan commands and start the refresh timer once the bot is ready."""
    catalog: CommandCatalog = application.bot_data["command_catalog"]
    config: Config = application.bot_data["config"]

    registry = catalog.refresh()
    logger.info(
        f"Loaded {len(registry)} custom command(s) at startup ({SessionMode.INTERACTIVE.value} mode)"
    )
    await sync_bot_menu(application.bot, registry)

    async def on_publish(new_registry: CommandRegistry) -> None:
        await sync_bot_menu(application.bot, new_registry)

    scheduler = RefreshScheduler(
        catalog,
        interval=config.commands.refresh_interval_s,
        on_publish=on_publish,
    )
    application.bot_data["refresh_scheduler"] = scheduler
    scheduler.start()


async def post_shutdown(application: Application) -> None:
    """Stop the refresh timer; an in-flight scan is discarded."""
    scheduler = application.bot_data.get("refresh_scheduler")
    if scheduler is not None:
        await scheduler.stop()


def create_application(config: Config, catalog: CommandCatalog | None = None) -> Application:
    """Create and configure Telegram Application."""
    app = (
        Application.builder()
        .token(config.telegram_token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .concurrent_updates(True)
        .build()
    )

    # Store config in bot_data for handlers to access
    app.bot_data["config"] = config
    app.bot_data["command_catalog"] = catalog or CommandCatalog.from_config(config)

    commands = [
        ("start", start),
        ("help", help_cmd),
        ("refresh", refresh_commands),
    ]
    for command, handler in commands:
        app.add_handler(
            CommandHandler(
                command,
                restrict_to_allowed_users(handler),
                filters=filters.UpdateType.MESSAGE,
            )
        )

    # Custom command handler (catch-all for remaining commands)
    app.add_handler(
        MessageHandler(
            filters.COMMAND & filters.UpdateType.MESSAGE,
            restrict_to_allowed_users(handle_custom_command),
        )
    )

    return app
