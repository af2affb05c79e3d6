"""Custom slash commands discovered from .codex/commands directories."""
