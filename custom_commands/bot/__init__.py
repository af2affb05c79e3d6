"""Bot module."""
from .middleware import restrict_to_allowed_users
from .handlers import (
    format_help,
    handle_custom_command,
    help_cmd,
    refresh_commands,
    start,
)
from .application import build_menu, create_application, sync_bot_menu

__all__ = [
    "restrict_to_allowed_users",
    "build_menu",
    "create_application",
    "format_help",
    "handle_custom_command",
    "help_cmd",
    "refresh_commands",
    "start",
    "sync_bot_menu",
]
