"""Test registry building and whole-pass discovery."""
import pytest
from pathlib import Path

from custom_commands.commands.models import CommandRecord, CommandSource, DiscoveryError
from custom_commands.commands.registry import (
    BUILTIN_NAMES,
    CommandRegistry,
    build_registry,
    discover_registry,
)


def _record(name, source=CommandSource.USER, body="body", path=None):
    return CommandRecord(
        name=name,
        source=source,
        path=Path(path or f"/{source.value}/{name}.md"),
        body=body,
    )


@pytest.fixture
def roots(tmp_path):
    """Project and user scope directories."""
    project = tmp_path / "project" / ".codex" / "commands"
    user = tmp_path / "home" / ".codex" / "commands"
    project.mkdir(parents=True)
    user.mkdir(parents=True)
    return project, user


def test_builtin_names():
    """Reserved names include the host built-ins."""
    assert "init" in BUILTIN_NAMES
    assert "help" in BUILTIN_NAMES
    assert "refresh" in BUILTIN_NAMES


def test_project_wins_over_user():
    """Project record wins regardless of input order, silently."""
    user = _record("hello", CommandSource.USER, body="user")
    project = _record("hello", CommandSource.PROJECT, body="project")

    for records in ([user, project], [project, user]):
        registry = build_registry(records)
        assert registry.names == ["hello"]
        assert registry.get("hello").body == "project"
        assert registry.errors == ()


def test_builtin_conflict_excluded():
    """A custom command named like a built-in is dropped and reported once."""
    registry = build_registry(
        [
            _record("init", CommandSource.PROJECT),
            _record("init", CommandSource.USER),
            _record("deploy"),
        ]
    )

    assert "init" not in registry
    assert registry.names == ["deploy"]
    conflicts = [e for e in registry.errors if e.location == "init"]
    assert len(conflicts) == 1
    assert conflicts[0].kind == "conflict"
    assert "conflicts with built-in" in conflicts[0].reason


def test_custom_builtin_names():
    """Reserved names can be supplied by the caller."""
    registry = build_registry([_record("deploy")], builtin_names={"deploy"})

    assert len(registry) == 0
    assert registry.errors[0].location == "deploy"


def test_errors_sorted_and_carried():
    """Collected errors are kept and ordered by location."""
    errors = [
        DiscoveryError(location="/z.md", reason="bad"),
        DiscoveryError(location="/a.md", reason="bad"),
    ]

    registry = build_registry([_record("status")], errors)

    assert [e.location for e in registry.errors] == ["/a.md", "/z.md", "status"]


def test_registry_mapping_is_sorted_and_read_only():
    """Registry exposes a sorted, read-only mapping."""
    registry = build_registry([_record("zeta"), _record("alpha")])

    assert registry.names == ["alpha", "zeta"]
    with pytest.raises(TypeError):
        registry.commands["new"] = _record("new")


def test_empty_registry():
    """Empty registry has no commands and no errors."""
    registry = CommandRegistry.empty()

    assert len(registry) == 0
    assert registry.get("anything") is None
    assert registry.errors == ()


def test_discover_registry_absent_scopes(tmp_path):
    """Absent scope directories give an empty registry, not a failure."""
    registry = discover_registry(tmp_path / "nope" / "project", tmp_path / "nope" / "user")

    assert len(registry) == 0
    assert registry.errors == ()


def test_discover_registry_precedence(roots):
    """Same-named files in both scopes resolve to the project file."""
    project, user = roots
    (user / "hello.md").write_text("user")
    (user / "user-only.md").write_text("mine")
    (project / "hello.md").write_text("project")

    registry = discover_registry(project, user)

    assert registry.names == ["hello", "user-only"]
    assert registry.get("hello").body == "project"
    assert registry.get("hello").source is CommandSource.PROJECT
    assert registry.get("user-only").source is CommandSource.USER
    assert registry.errors == ()


def test_discover_registry_subdir_does_not_change_identity(roots):
    """A nested project file still shadows a top-level user file."""
    project, user = roots
    (project / "ops").mkdir()
    (project / "ops" / "deploy.md").write_text("project deploy")
    (user / "deploy.md").write_text("user deploy")

    registry = discover_registry(project, user)

    record = registry.get("deploy")
    assert record.body == "project deploy"
    assert record.display_scope_label == "ops"


def test_discover_registry_bad_file_isolated(roots):
    """One malformed file among N gives one error and N-1 commands."""
    project, user = roots
    for name in ("one", "two", "three"):
        (project / f"{name}.md").write_text(f"do {name}")
    (user / "broken.md").write_text("---\ndisable-model-invocation: sometimes\n---\nx")

    registry = discover_registry(project, user)

    assert registry.names == ["one", "three", "two"]
    assert len(registry.errors) == 1
    assert registry.errors[0].location == str(user / "broken.md")


def test_discover_registry_builtin_conflict(roots):
    """Conflicting file produces exactly one matching error."""
    project, user = roots
    (project / "init.md").write_text("nope")

    registry = discover_registry(project, user)

    assert len(registry) == 0
    assert len(registry.errors) == 1
    assert registry.errors[0].location == "init"


def test_discover_registry_idempotent(roots):
    """Two passes over an unchanged tree produce equal registries."""
    project, user = roots
    (project / "a.md").write_text("---\ndescription: A\nallowed-tools: [shell]\n---\nA $1")
    (user / "b.md").write_text("B")
    (user / "bad.md").write_text("---\nunterminated")
    (project / "diff.md").write_text("conflict")

    first = discover_registry(project, user)
    second = discover_registry(project, user)

    assert first == second
    assert list(first.commands.items()) == list(second.commands.items())
    assert first.errors == second.errors
    assert first is not second
