"""Resolve `/name args` input into an invocation directive."""
import shlex

from custom_commands.exceptions import CommandNotFoundError
from .models import InvocationDirective
from .registry import CommandRegistry

ARGUMENTS_PLACEHOLDER = "$ARGUMENTS"


def parse_slash_command(text: str) -> tuple[str, str] | None:
    """Split `/name rest` into name and left-trimmed rest.

    Returns None when the text is not a slash command.
    """
    stripped = text.lstrip()
    if not stripped.startswith("/"):
        return None
    parts = stripped[1:].split(maxsplit=1)
    if not parts:
        return None
    name = parts[0]
    rest = parts[1] if len(parts) > 1 else ""
    return name, rest


def split_arguments(arguments: str) -> list[str]:
    """Split an argument string into positional tokens.

    Quoted values stay together; unbalanced quotes fall back to plain
    whitespace splitting.
    """
    if not arguments.strip():
        return []
    try:
        return shlex.split(arguments)
    except ValueError:
        return arguments.split()


def expand_placeholders(body: str, tokens: list[str]) -> str:
    """Substitute $ARGUMENTS and $1..$9 in a command body.

    $ARGUMENTS becomes the tokens joined by single spaces, so quoting
    and repeated whitespace from the input do not survive.

    Positional slots beyond the supplied tokens become empty strings.
    `$$` is kept verbatim and shields the character after it.
    """
    out: list[str] = []
    i = 0
    while True:
        j = body.find("$", i)
        if j == -1:
            out.append(body[i:])
            break
        out.append(body[i:j])
        nxt = body[j + 1:j + 2]
        if nxt == "$":
            out.append("$$")
            i = j + 2
        elif nxt and nxt in "123456789":
            index = int(nxt) - 1
            if index < len(tokens):
                out.append(tokens[index])
            i = j + 2
        elif body.startswith(ARGUMENTS_PLACEHOLDER, j):
            out.append(" ".join(tokens))
            i = j + len(ARGUMENTS_PLACEHOLDER)
        else:
            out.append("$")
            i = j + 1
    return "".join(out)


def resolve_invocation(
    registry: CommandRegistry, name: str, arguments: str = ""
) -> InvocationDirective:
    """Look up a command and expand it against the given arguments.

    Args:
        registry: Snapshot to resolve against; used for the whole call.
        name: Command name without the leading slash.
        arguments: Raw argument string as typed.

    Returns:
        The directive for the agent loop.

    Raises:
        CommandNotFoundError: No command with that name is registered.
    """
    record = registry.get(name)
    if record is None:
        raise CommandNotFoundError(name)

    trimmed = arguments.strip()
    expanded = expand_placeholders(record.body, split_arguments(trimmed))
    return InvocationDirective(
        command_name=record.name,
        arguments=trimmed,
        expanded_body=expanded,
        allowed_tools=record.metadata.allowed_tools,
        model_override=record.metadata.model,
        skip_model=record.metadata.disable_model_invocation,
    )


def resolve_text(registry: CommandRegistry, text: str) -> InvocationDirective | None:
    """Resolve raw `/name args` input.

    Returns None when the text is not a slash command at all.

    Raises:
        CommandNotFoundError: The slash command is not registered.
    """
    parsed = parse_slash_command(text)
    if parsed is None:
        return None
    name, rest = parsed
    return resolve_invocation(registry, name, rest)
