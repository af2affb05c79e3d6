"""Data models for custom commands."""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class CommandSource(str, Enum):
    """Scope a command was discovered in."""

    PROJECT = "project"
    USER = "user"

    @property
    def rank(self) -> int:
        """Precedence rank, higher wins on a name collision."""
        return 2 if self is CommandSource.PROJECT else 1


@dataclass(frozen=True)
class CommandFile:
    """Candidate command file found during a scan pass."""

    path: Path
    source: CommandSource
    name: str  # filename stem, the lookup key
    display_scope_label: str | None = None  # e.g. "frontend/widgets", cosmetic only


@dataclass(frozen=True)
class CommandMetadata:
    """Frontmatter fields of a command file."""

    description: str | None = None
    argument_hint: str | None = None
    allowed_tools: frozenset[str] | None = None
    model: str | None = None
    disable_model_invocation: bool = False


@dataclass(frozen=True)
class CommandRecord:
    """Parsed command, ready to be registered."""

    name: str
    source: CommandSource
    path: Path
    body: str
    metadata: CommandMetadata = CommandMetadata()
    display_scope_label: str | None = None

    @property
    def description(self) -> str:
        """Description for help listings, falling back to the first body line."""
        if self.metadata.description:
            return self.metadata.description
        for line in self.body.splitlines():
            if line.strip():
                return line.strip()
        return self.name


@dataclass(frozen=True)
class DiscoveryError:
    """Why a candidate file or name was left out of the registry."""

    location: str  # file path, or command name for conflicts
    reason: str
    kind: str = "discovery"


@dataclass(frozen=True)
class InvocationDirective:
    """What the agent loop should do for one command invocation."""

    command_name: str
    arguments: str
    expanded_body: str
    allowed_tools: frozenset[str] | None = None
    model_override: str | None = None
    skip_model: bool = False

    def to_dict(self) -> dict:
        """JSON-friendly representation."""
        return {
            "command": self.command_name,
            "arguments": self.arguments,
            "expanded_body": self.expanded_body,
            "allowed_tools": sorted(self.allowed_tools) if self.allowed_tools is not None else None,
            "model_override": self.model_override,
            "skip_model": self.skip_model,
        }
