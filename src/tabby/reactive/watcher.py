"""Project watcher — merges three watched surfaces into one event channel.

Watches the render root, the data directory, and the dependency paths with
independent ``watchfiles.awatch`` subscriptions.  Every raw change is
classified into a tagged ``WatchEvent`` and pushed onto a single asyncio
queue, so consumers select on the event kind, not on which watcher fired:

- render root   -> ``target-updated`` / ``target-removed``
- data dir      -> ``data-updated``
- dependencies  -> ``dependency-updated``
"""

from __future__ import annotations

import asyncio
import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change, awatch

from tabby.render.batch import is_target

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tabby._types import WatchKind
    from tabby.config import TabbyConfig

type Surface = Literal["target", "data", "dependency"]

# "**/" also matches zero directories
_ANY_DIRS = f"{os.sep}**{os.sep}"


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A classified change from one of the watched surfaces.

    Attributes:
        kind: What the change means for the build.
        path: Absolute path of the changed file.

    """

    kind: WatchKind
    path: Path


def _matches_pattern(path: Path, pattern: str) -> bool:
    return fnmatch.fnmatch(str(path), pattern) or fnmatch.fnmatch(
        str(path), pattern.replace(_ANY_DIRS, os.sep)
    )


def _owned_elsewhere(path: Path, settings: TabbyConfig) -> bool:
    """Paths under the output, data, cache or dependency locations are not targets."""
    owners = [settings.out_dir, *settings.dependency]
    if settings.data is not None:
        owners.append(settings.data)
    if settings.cache is not None:
        owners.append(settings.cache)
    return any(path == owner or path.is_relative_to(owner) for owner in owners)


def classify_change(
    surface: Surface,
    change: Change,
    path: Path,
    settings: TabbyConfig,
) -> WatchEvent | None:
    """Turn one raw filesystem change into a WatchEvent.

    Returns None for changes under the render root that do not concern a
    target file.

    """
    if surface == "data":
        return WatchEvent(kind="data-updated", path=path)
    if surface == "dependency":
        return WatchEvent(kind="dependency-updated", path=path)

    if not path.is_relative_to(settings.root_dir) or _owned_elsewhere(path, settings):
        return None

    if change == Change.deleted:
        # The file is gone, so match against the patterns rather than the glob.
        if any(_matches_pattern(path, pattern) for pattern in settings.target):
            return WatchEvent(kind="target-removed", path=path)
        return None

    if is_target(path, settings):
        return WatchEvent(kind="target-updated", path=path)
    return None


class ProjectWatcher:
    """Watches the project's three surfaces and yields WatchEvents.

    Each surface runs its own ``awatch`` task; all of them feed one queue.

    Args:
        settings: Resolved project configuration.
        debounce: Milliseconds watchfiles waits to group changes.
        step: Milliseconds between watchfiles polls for new changes.

    """

    def __init__(self, settings: TabbyConfig, *, debounce: int = 300, step: int = 100) -> None:
        self._settings = settings
        self._debounce = debounce
        self._step = step
        self._queue: asyncio.Queue[WatchEvent] = asyncio.Queue()
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def is_running(self) -> bool:
        """Whether any surface watcher is still active."""
        return any(not task.done() for task in self._tasks)

    def surfaces(self) -> list[tuple[Surface, tuple[Path, ...]]]:
        """Return the (surface, paths) pairs this watcher subscribes to."""
        settings = self._settings
        result: list[tuple[Surface, tuple[Path, ...]]] = [("target", (settings.root_dir,))]
        if settings.data is not None:
            result.append(("data", (settings.data,)))
        if settings.dependency:
            result.append(("dependency", settings.dependency))
        return result

    def start(self) -> None:
        """Start one watch task per surface on the running event loop."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._tasks = [
            asyncio.create_task(self._watch_surface(surface, paths), name=f"tabby-watch-{surface}")
            for surface, paths in self.surfaces()
        ]

    async def stop(self) -> None:
        """Signal every surface watcher to stop and wait for them to finish."""
        self._stop_event.set()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def changes(self) -> AsyncIterator[WatchEvent]:
        """Async iterator that yields WatchEvents as they occur.

        Ends when every surface watcher has stopped.  If a watcher died with
        an error (e.g. a watched path does not exist), that error is raised.

        """
        while self.is_running or not self._queue.empty():
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=0.5)
                yield event
            except TimeoutError:
                if not self.is_running:
                    break

        for task in self._tasks:
            if task.done() and not task.cancelled() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]

    async def _watch_surface(self, surface: Surface, paths: tuple[Path, ...]) -> None:
        async for raw_changes in awatch(
            *paths,
            stop_event=self._stop_event,
            debounce=self._debounce,
            step=self._step,
        ):
            for change_type, path_str in raw_changes:
                event = classify_change(surface, change_type, Path(path_str), self._settings)
                if event is not None:
                    self._queue.put_nowait(event)
