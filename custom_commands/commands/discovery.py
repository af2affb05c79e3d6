"""Discover and parse custom command files."""
import logging
import os
import stat
from pathlib import Path
from typing import Any

import yaml

from custom_commands.exceptions import (
    DiscoveryFailure,
    FileReadError,
    FrontmatterParseError,
)
from .models import (
    CommandFile,
    CommandMetadata,
    CommandRecord,
    CommandSource,
    DiscoveryError,
)

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
DEFAULT_EXTENSIONS = (".md",)
DEFAULT_MAX_DEPTH = 16
DEFAULT_PROJECT_ROOT_MARKERS = (".git",)

# Frontmatter key -> CommandMetadata field
_FIELD_ALIASES = {
    "description": "description",
    "argument-hint": "argument_hint",
    "argument_hint": "argument_hint",
    "allowed-tools": "allowed_tools",
    "allowed_tools": "allowed_tools",
    "model": "model",
    "disable-model-invocation": "disable_model_invocation",
    "disable_model_invocation": "disable_model_invocation",
}


def default_user_commands_root() -> Path:
    """User scope directory: $CODEX_HOME/commands or ~/.codex/commands."""
    codex_home = os.environ.get("CODEX_HOME")
    if codex_home:
        return Path(codex_home).expanduser() / "commands"
    return Path.home() / ".codex" / "commands"


def project_commands_root(project_root: Path) -> Path:
    """Project scope directory for a project root."""
    return Path(project_root) / ".codex" / "commands"


def find_project_root(
    cwd: Path | str,
    markers: list[str] | tuple[str, ...] = DEFAULT_PROJECT_ROOT_MARKERS,
) -> Path:
    """Find the nearest ancestor of cwd holding one of the root markers.

    Falls back to cwd itself when no marker is found or no markers are
    configured.
    """
    cwd = Path(cwd)
    if not markers:
        return cwd

    for ancestor in (cwd, *cwd.parents):
        for marker in markers:
            if (ancestor / marker).exists():
                return ancestor
    return cwd


def _scope_label(root: Path, path: Path) -> str | None:
    rel = path.parent.relative_to(root)
    if not rel.parts:
        return None
    return "/".join(rel.parts)


def scan_scope(
    root: Path | str | None,
    source: CommandSource,
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[list[CommandFile], list[DiscoveryError]]:
    """Enumerate candidate command files under one scope root.

    Args:
        root: Scope directory. Missing directories contribute nothing.
        source: Scope the files belong to.
        extensions: Accepted file extensions (case-insensitive).
        max_depth: Deepest subdirectory level that is still descended.

    Returns:
        Candidate files (shallowest first, then by relative path) and the
        errors for entries that could not be inspected.
    """
    files: list[CommandFile] = []
    errors: list[DiscoveryError] = []

    if root is None:
        return files, errors
    root = Path(root)
    if not root.is_dir():
        return files, errors

    accepted = {ext.lower() for ext in extensions}
    queue: list[tuple[Path, int]] = [(root, 0)]
    while queue:
        directory, depth = queue.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            errors.append(
                FileReadError(str(directory), f"failed to read commands directory: {e}").to_record()
            )
            continue

        for entry in entries:
            path = Path(entry.path)
            try:
                # Directory symlinks are never followed, so cycles can't occur
                if entry.is_dir(follow_symlinks=False):
                    if depth + 1 > max_depth:
                        logger.debug(f"Skipping {path}: deeper than {max_depth} levels")
                        continue
                    queue.append((path, depth + 1))
                    continue

                if entry.is_symlink():
                    try:
                        mode = path.stat().st_mode
                    except OSError as e:
                        errors.append(
                            FileReadError(
                                str(path), f"failed to resolve command symlink: {e}"
                            ).to_record()
                        )
                        continue
                    if stat.S_ISDIR(mode):
                        continue
                    is_file = stat.S_ISREG(mode)
                else:
                    is_file = entry.is_file(follow_symlinks=False)
            except OSError as e:
                errors.append(
                    FileReadError(str(path), f"failed to read command file type: {e}").to_record()
                )
                continue

            if not is_file or path.suffix.lower() not in accepted:
                continue

            files.append(
                CommandFile(
                    path=path,
                    source=source,
                    name=path.stem,
                    display_scope_label=_scope_label(root, path),
                )
            )

    files.sort(key=lambda f: (len(f.path.relative_to(root).parts), f.path.relative_to(root).as_posix()))
    return files, errors


def _optional_string(value: Any, key: str, location: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise FrontmatterParseError(location, f"`{key}` must be a string")


def _optional_bool(value: Any, key: str, location: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise FrontmatterParseError(location, f"`{key}` must be a boolean")


def _tool_set(value: Any, key: str, location: str) -> frozenset[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        # Claude-style "Bash(git:*), Read"
        return frozenset(tool.strip() for tool in value.split(",") if tool.strip())
    if isinstance(value, list) and all(isinstance(tool, str) for tool in value):
        return frozenset(tool.strip() for tool in value if tool.strip())
    raise FrontmatterParseError(location, f"`{key}` must be a list of strings")


def _parse_fields(block: str, location: str) -> CommandMetadata:
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise FrontmatterParseError(location, f"invalid frontmatter: {' '.join(str(e).split())}") from e

    if data is None:
        return CommandMetadata()
    if not isinstance(data, dict):
        raise FrontmatterParseError(location, "frontmatter must be a mapping")

    fields: dict[str, Any] = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise FrontmatterParseError(location, "frontmatter keys must be strings")
        field_name = _FIELD_ALIASES.get(key)
        if field_name is None:
            logger.debug(f"Ignoring unknown frontmatter field '{key}' in {location}")
            continue
        if field_name == "allowed_tools":
            fields[field_name] = _tool_set(value, key, location)
        elif field_name == "disable_model_invocation":
            fields[field_name] = _optional_bool(value, key, location)
        else:
            fields[field_name] = _optional_string(value, key, location)

    return CommandMetadata(**fields)


def _trim_body(body: str) -> str:
    """Drop surrounding blank lines and trailing whitespace, keep indentation."""
    lines = body.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    return "\n".join(lines).rstrip()


def parse_frontmatter(content: str, location: str = "<string>") -> tuple[CommandMetadata, str]:
    """Split command file content into metadata and body.

    Content without a leading ``---`` line has no metadata and is all body.

    Args:
        content: Full file content.
        location: Path used in error messages.

    Returns:
        Parsed metadata and the body template with surrounding blank
        lines removed.

    Raises:
        FrontmatterParseError: Unterminated block, invalid YAML or a
            wrong-typed field.
    """
    lines = content.split("\n")
    if lines[0].strip() != FRONTMATTER_DELIMITER:
        return CommandMetadata(), _trim_body(content)

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            block = "\n".join(lines[1:index])
            body = "\n".join(lines[index + 1:])
            break
    else:
        raise FrontmatterParseError(location, "unterminated frontmatter block")

    metadata = _parse_fields(block, location) if block.strip() else CommandMetadata()
    return metadata, _trim_body(body)


def parse_command_file(command_file: CommandFile) -> CommandRecord:
    """Read and parse one candidate into a CommandRecord.

    Raises:
        FileReadError: The file could not be read as UTF-8 text.
        FrontmatterParseError: The frontmatter is malformed.
    """
    location = str(command_file.path)
    try:
        content = command_file.path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(location, f"failed to read command file: {e}") from e

    metadata, body = parse_frontmatter(content, location)
    return CommandRecord(
        name=command_file.name,
        source=command_file.source,
        path=command_file.path,
        body=body,
        metadata=metadata,
        display_scope_label=command_file.display_scope_label,
    )


def discover_scope(
    root: Path | str | None,
    source: CommandSource,
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[list[CommandRecord], list[DiscoveryError]]:
    """Scan and parse one scope, isolating per-file failures.

    A stem seen twice within the same scope keeps the first candidate in
    scan order; the rest are reported as duplicates.
    """
    files, errors = scan_scope(root, source, extensions, max_depth)
    records: list[CommandRecord] = []
    seen: set[str] = set()

    for command_file in files:
        if any(ch.isspace() for ch in command_file.name):
            errors.append(
                DiscoveryError(
                    location=str(command_file.path),
                    reason="command name must not contain whitespace",
                    kind="name",
                )
            )
            continue
        if command_file.name in seen:
            errors.append(
                DiscoveryError(
                    location=str(command_file.path),
                    reason=f"duplicate command name /{command_file.name} in {source.value} scope",
                    kind="duplicate",
                )
            )
            continue
        seen.add(command_file.name)

        try:
            records.append(parse_command_file(command_file))
        except DiscoveryFailure as e:
            logger.warning(f"Failed to parse {command_file.path}: {e.reason}")
            errors.append(e.to_record())

    return records, errors
