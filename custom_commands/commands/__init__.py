"""Custom command discovery, registry and invocation."""
from .models import (
    CommandFile,
    CommandMetadata,
    CommandRecord,
    CommandSource,
    DiscoveryError,
    InvocationDirective,
)
from .discovery import (
    discover_scope,
    find_project_root,
    parse_command_file,
    parse_frontmatter,
    scan_scope,
)
from .registry import (
    BUILTIN_COMMANDS,
    BUILTIN_NAMES,
    CommandRegistry,
    build_registry,
    discover_registry,
)
from .invocation import (
    expand_placeholders,
    parse_slash_command,
    resolve_invocation,
    resolve_text,
    split_arguments,
)
from .refresh import CommandCatalog, RefreshScheduler, SessionMode, open_catalog

__all__ = [
    "BUILTIN_COMMANDS",
    "BUILTIN_NAMES",
    "CommandCatalog",
    "CommandFile",
    "CommandMetadata",
    "CommandRecord",
    "CommandRegistry",
    "CommandSource",
    "DiscoveryError",
    "InvocationDirective",
    "RefreshScheduler",
    "SessionMode",
    "build_registry",
    "discover_registry",
    "discover_scope",
    "expand_placeholders",
    "find_project_root",
    "open_catalog",
    "parse_command_file",
    "parse_frontmatter",
    "parse_slash_command",
    "resolve_invocation",
    "resolve_text",
    "scan_scope",
    "split_arguments",
]
