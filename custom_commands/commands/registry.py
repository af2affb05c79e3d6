"""Command registry snapshots."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from custom_commands.exceptions import NameConflictError
from .discovery import DEFAULT_EXTENSIONS, DEFAULT_MAX_DEPTH, discover_scope
from .models import CommandRecord, CommandSource, DiscoveryError

logger = logging.getLogger(__name__)

# Built-in commands (cannot be overridden)
BUILTIN_COMMANDS = [
    ("start", "Start the bot"),
    ("help", "Show help and custom commands"),
    ("refresh", "Rescan custom commands"),
    ("model", "Choose the model"),
    ("personality", "Choose a personality"),
    ("approvals", "Choose approval policy"),
    ("permissions", "Choose permissions"),
    ("setup-elevated-sandbox", "Set up the elevated sandbox"),
    ("experimental", "Toggle experimental features"),
    ("skills", "List skills"),
    ("review", "Review current changes"),
    ("new", "Start a new session"),
    ("resume", "Resume a session"),
    ("fork", "Fork the session"),
    ("init", "Create an AGENTS.md file"),
    ("compact", "Summarize the conversation"),
    ("collab", "Collaboration mode"),
    ("agent", "Switch agent"),
    ("diff", "Show git diff"),
    ("mention", "Mention a file"),
    ("status", "Show session status"),
    ("mcp", "List MCP tools"),
    ("logout", "Log out"),
    ("quit", "Exit"),
    ("exit", "Exit"),
    ("feedback", "Send feedback"),
    ("rollout", "Show rollout path"),
    ("ps", "List background terminals"),
    ("test-approval", "Test approval request"),
]

BUILTIN_NAMES = frozenset(name for name, _ in BUILTIN_COMMANDS)


@dataclass(frozen=True)
class CommandRegistry:
    """Immutable snapshot mapping command names to their winning record.

    Never mutated after construction; a refresh builds a new instance.
    """

    commands: Mapping[str, CommandRecord] = field(default_factory=lambda: MappingProxyType({}))
    errors: tuple[DiscoveryError, ...] = ()

    @classmethod
    def empty(cls, errors: Iterable[DiscoveryError] = ()) -> "CommandRegistry":
        """Registry with no commands."""
        return cls(commands=MappingProxyType({}), errors=tuple(errors))

    def get(self, name: str) -> CommandRecord | None:
        """Get command by name."""
        return self.commands.get(name)

    @property
    def names(self) -> list[str]:
        """Registered names in sorted order."""
        return list(self.commands)

    @property
    def records(self) -> list[CommandRecord]:
        """Registered records in name order."""
        return list(self.commands.values())

    def __contains__(self, name: object) -> bool:
        return name in self.commands

    def __len__(self) -> int:
        return len(self.commands)


def build_registry(
    records: Iterable[CommandRecord],
    errors: Iterable[DiscoveryError] = (),
    builtin_names: Iterable[str] = BUILTIN_NAMES,
) -> CommandRegistry:
    """Merge per-scope records into one registry.

    Project records win over user records with the same name; names that
    collide with a built-in are dropped and reported. Output ordering
    depends only on names and locations, never on scan timing.

    Args:
        records: Parsed records from every scope.
        errors: Errors already collected during discovery.
        builtin_names: Reserved names custom commands may not use.

    Returns:
        A new CommandRegistry.
    """
    reserved = set(builtin_names)
    all_errors = list(errors)

    winners: dict[str, CommandRecord] = {}
    for record in records:
        current = winners.get(record.name)
        if current is None:
            winners[record.name] = record
            continue
        if record.source.rank > current.source.rank:
            logger.debug(f"/{record.name}: {record.source.value} overrides {current.source.value}")
            winners[record.name] = record
        elif record.source.rank < current.source.rank:
            logger.debug(f"/{record.name}: {current.source.value} overrides {record.source.value}")
        else:
            # Same scope twice; keep the first by path for a stable result
            kept, dropped = sorted((current, record), key=lambda r: str(r.path))
            winners[record.name] = kept
            all_errors.append(
                DiscoveryError(
                    location=str(dropped.path),
                    reason=f"duplicate command name /{record.name} in {record.source.value} scope",
                    kind="duplicate",
                )
            )

    commands: dict[str, CommandRecord] = {}
    for name in sorted(winners):
        if name in reserved:
            conflict = NameConflictError(name, f"/{name} conflicts with built-in command")
            logger.warning(f"Skipping command '{name}' - conflicts with built-in")
            all_errors.append(conflict.to_record())
            continue
        commands[name] = winners[name]

    all_errors.sort(key=lambda e: (e.location, e.reason))
    return CommandRegistry(commands=MappingProxyType(commands), errors=tuple(all_errors))


def discover_registry(
    project_root: Path | None,
    user_root: Path | None,
    builtin_names: Iterable[str] = BUILTIN_NAMES,
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> CommandRegistry:
    """Run one whole discovery pass over both scopes.

    Args:
        project_root: Project scope commands directory (or None).
        user_root: User scope commands directory (or None).
        builtin_names: Reserved names.
        extensions: Accepted command file extensions.
        max_depth: Traversal depth bound.

    Returns:
        A fresh registry snapshot.
    """
    records: list[CommandRecord] = []
    errors: list[DiscoveryError] = []

    for root, source in ((user_root, CommandSource.USER), (project_root, CommandSource.PROJECT)):
        scope_records, scope_errors = discover_scope(root, source, extensions, max_depth)
        records.extend(scope_records)
        errors.extend(scope_errors)

    registry = build_registry(records, errors, builtin_names)
    logger.info(f"Discovered {len(registry)} custom command(s), {len(registry.errors)} skipped")
    return registry
