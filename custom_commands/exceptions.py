"""Custom exceptions for custom commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from custom_commands.commands.models import DiscoveryError


class CustomCommandsError(Exception):
    """Base exception for custom commands."""

    pass


class DiscoveryFailure(CustomCommandsError):
    """A single candidate was excluded during discovery.

    Never fatal: the scanner converts it into a DiscoveryError record
    and moves on to the next candidate.
    """

    kind = "discovery"

    def __init__(self, location: str, reason: str):
        super().__init__(f"{location}: {reason}")
        self.location = location
        self.reason = reason

    def to_record(self) -> "DiscoveryError":
        from custom_commands.commands.models import DiscoveryError

        return DiscoveryError(location=self.location, reason=self.reason, kind=self.kind)


class FileReadError(DiscoveryFailure):
    """Candidate path could not be read."""

    kind = "read"


class FrontmatterParseError(DiscoveryFailure):
    """Malformed frontmatter block or wrong-typed field."""

    kind = "frontmatter"


class NameConflictError(DiscoveryFailure):
    """Custom command name collides with a built-in."""

    kind = "conflict"


class CommandNotFoundError(CustomCommandsError):
    """Invoked name has no registry entry."""

    def __init__(self, name: str):
        super().__init__(f"Unknown command: /{name}")
        self.name = name


NotFoundError = CommandNotFoundError
