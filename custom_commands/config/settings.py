"""Configuration settings."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.codex/custom-commands.yaml")


@dataclass
class CommandsConfig:
    """Command discovery settings."""

    project_root_markers: list[str] = field(default_factory=lambda: [".git"])
    user_dir: str | None = None  # defaults to $CODEX_HOME/commands or ~/.codex/commands
    extensions: list[str] = field(default_factory=lambda: [".md"])
    refresh_interval_s: float = 5.0
    max_depth: int = 16
    reserved_names: list[str] = field(default_factory=list)  # added to built-ins


@dataclass
class ClaudeConfig:
    """Claude SDK settings."""

    max_turns: int = 50
    permission_mode: str = "default"
    max_budget_usd: float = 10.0
    model: str | None = None


@dataclass
class Config:
    """Main configuration."""

    allowed_users: list[int] = field(default_factory=list)
    project_path: str | None = None  # defaults to the working directory
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    telegram_token: str = ""

    def is_user_allowed(self, user_id: int) -> bool:
        """Check if user is in whitelist."""
        return user_id in self.allowed_users


def load_config(path: Path | str | None = None) -> Config:
    """Load configuration from YAML file."""
    if path is None:
        path = DEFAULT_CONFIG_PATH.expanduser()
    else:
        path = Path(path).expanduser()

    if not path.exists():
        logger.info(f"No config at {path}, using defaults")
        return Config()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse config dictionary into Config object."""
    config = Config(
        allowed_users=data.get("allowed_users", []),
        project_path=data.get("project_path"),
    )

    if "commands" in data:
        commands = data["commands"] or {}
        user_dir = commands.get("user_dir")
        config.commands = CommandsConfig(
            project_root_markers=commands.get("project_root_markers", [".git"]),
            user_dir=str(Path(user_dir).expanduser()) if user_dir else None,
            extensions=commands.get("extensions", [".md"]),
            refresh_interval_s=float(commands.get("refresh_interval_s", 5.0)),
            max_depth=int(commands.get("max_depth", 16)),
            reserved_names=commands.get("reserved_names", []),
        )

    if "claude" in data:
        claude = data["claude"] or {}
        config.claude = ClaudeConfig(
            max_turns=claude.get("max_turns", 50),
            permission_mode=claude.get("permission_mode", "default"),
            max_budget_usd=claude.get("max_budget_usd", 10.0),
            model=claude.get("model"),
        )

    return config
