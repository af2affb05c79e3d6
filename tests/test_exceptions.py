"""Test custom exceptions."""
from custom_commands.commands.models import DiscoveryError
from custom_commands.exceptions import (
    CommandNotFoundError,
    CustomCommandsError,
    DiscoveryFailure,
    FileReadError,
    FrontmatterParseError,
    NameConflictError,
)


def test_hierarchy():
    """All errors share the package base class."""
    for cls in (FileReadError, FrontmatterParseError, NameConflictError):
        assert issubclass(cls, DiscoveryFailure)
        assert issubclass(cls, CustomCommandsError)
    assert issubclass(CommandNotFoundError, CustomCommandsError)


def test_discovery_failure_to_record():
    """Discovery failures convert into DiscoveryError records."""
    error = FrontmatterParseError("/p/bad.md", "unterminated frontmatter block")

    assert error.to_record() == DiscoveryError(
        location="/p/bad.md",
        reason="unterminated frontmatter block",
        kind="frontmatter",
    )
    assert str(error) == "/p/bad.md: unterminated frontmatter block"
    assert FileReadError("x", "y").to_record().kind == "read"
    assert NameConflictError("init", "z").to_record().kind == "conflict"


def test_not_found_message():
    """Not found errors name the command."""
    error = CommandNotFoundError("deploy")

    assert error.name == "deploy"
    assert str(error) == "Unknown command: /deploy"
