"""Published command snapshots and their periodic refresh."""
import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable

from custom_commands.config.settings import Config
from .discovery import (
    DEFAULT_EXTENSIONS,
    DEFAULT_MAX_DEPTH,
    default_user_commands_root,
    find_project_root,
    project_commands_root,
)
from .models import DiscoveryError
from .registry import BUILTIN_NAMES, CommandRegistry, discover_registry

logger = logging.getLogger(__name__)

PublishCallback = Callable[[CommandRegistry], Awaitable[None]]


class SessionMode(str, Enum):
    """How a session consumes the catalog."""

    INTERACTIVE = "interactive"  # periodic refresh
    EXEC = "exec"  # single scan at startup


class CommandCatalog:
    """Holds the currently published registry for one session.

    Readers take ``catalog.snapshot`` once and use that object for the
    whole operation. Publishing swaps the reference; the previous
    snapshot is never modified.
    """

    def __init__(
        self,
        project_root: Path | None,
        user_root: Path | None,
        builtin_names: Iterable[str] = BUILTIN_NAMES,
        extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        workdir: Path | None = None,
    ):
        self.project_root = project_root
        self.workdir = workdir or Path.cwd()
        self.user_root = user_root
        self.builtin_names = frozenset(builtin_names)
        self.extensions = tuple(extensions)
        self.max_depth = max_depth
        self._snapshot = CommandRegistry.empty()

    @classmethod
    def from_config(cls, config: Config, cwd: Path | str | None = None) -> "CommandCatalog":
        """Build a catalog for the project containing cwd."""
        start = Path(config.project_path or cwd or Path.cwd()).expanduser()
        project_root = find_project_root(start, config.commands.project_root_markers)
        user_root = (
            Path(config.commands.user_dir)
            if config.commands.user_dir
            else default_user_commands_root()
        )
        return cls(
            project_root=project_commands_root(project_root),
            user_root=user_root,
            builtin_names=BUILTIN_NAMES | set(config.commands.reserved_names),
            extensions=tuple(config.commands.extensions),
            max_depth=config.commands.max_depth,
            workdir=project_root,
        )

    @property
    def snapshot(self) -> CommandRegistry:
        """Currently published registry."""
        return self._snapshot

    def scan(self) -> CommandRegistry:
        """Build a new registry without publishing it.

        A pass that fails outright yields an empty registry carrying the
        failure, so the session shows no commands rather than stale ones.
        """
        try:
            return discover_registry(
                self.project_root,
                self.user_root,
                builtin_names=self.builtin_names,
                extensions=self.extensions,
                max_depth=self.max_depth,
            )
        except Exception as e:
            logger.exception("Command discovery failed")
            return CommandRegistry.empty(
                [
                    DiscoveryError(
                        location=str(self.project_root or self.user_root or ""),
                        reason=f"command discovery failed: {e}",
                        kind="refresh",
                    )
                ]
            )

    def publish(self, registry: CommandRegistry) -> bool:
        """Replace the published snapshot.

        Returns:
            True if the new snapshot differs from the previous one.
        """
        previous = self._snapshot
        self._snapshot = registry
        return registry != previous

    def refresh(self) -> CommandRegistry:
        """Scan and publish in one step."""
        registry = self.scan()
        self.publish(registry)
        return registry


def open_catalog(
    config: Config,
    cwd: Path | str | None = None,
    mode: SessionMode = SessionMode.EXEC,
) -> CommandCatalog:
    """Create a catalog and run the startup scan."""
    catalog = CommandCatalog.from_config(config, cwd)
    registry = catalog.refresh()
    logger.info(
        f"Loaded {len(registry)} custom command(s) at startup ({mode.value} mode)"
    )
    return catalog


class RefreshScheduler:
    """Re-scans a catalog on a timer during interactive sessions."""

    def __init__(
        self,
        catalog: CommandCatalog,
        interval: float = 5.0,
        on_publish: PublishCallback | None = None,
    ):
        """Initialize scheduler.

        Args:
            catalog: Catalog to refresh.
            interval: Seconds between scans.
            on_publish: Awaited with the new registry whenever a refresh
                publishes a snapshot that differs from the previous one.
        """
        self.catalog = catalog
        self.interval = interval
        self.on_publish = on_publish
        self._task: asyncio.Task | None = None
        self._stopped = False
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        """Whether the timer task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer task on the running event loop."""
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.create_task(self._run(), name="command-refresh")
        logger.info(f"Command refresh every {self.interval}s")

    async def stop(self) -> None:
        """Stop the timer; a scan still in flight is never published."""
        self._stopped = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def refresh_now(self) -> CommandRegistry | None:
        """Run one scan off the event loop and publish it.

        Returns:
            The published registry, or None if the scheduler was stopped
            while the scan was running.
        """
        # Scans run one at a time; snapshots publish in scan order.
        async with self._lock:
            registry = await asyncio.to_thread(self.catalog.scan)
            if self._stopped:
                logger.debug("Scheduler stopped during scan, discarding result")
                return None

            changed = self.catalog.publish(registry)
            if changed:
                logger.info(
                    f"Commands changed: {len(registry)} loaded, {len(registry.errors)} skipped"
                )
                if self.on_publish is not None:
                    await self.on_publish(registry)
            return registry

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.refresh_now()
            except Exception:
                logger.exception("Command refresh failed")
