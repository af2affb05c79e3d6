"""Configuration loading."""
from .settings import ClaudeConfig, CommandsConfig, Config, load_config

__all__ = ["ClaudeConfig", "CommandsConfig", "Config", "load_config"]
