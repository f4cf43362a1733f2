"""Rebuild machine — turns watch events into safe re-renders.

Two states, ``idle`` and ``rendering``.  An event arriving while idle
starts its work and moves the machine to ``rendering``; when that work
settles (success or failure) it returns to ``idle``.  Events arriving while
rendering are dropped, not queued: a later filesystem settle emits a fresh
event of its own.

    target-updated      -> render just that file
    target-removed      -> logged only (output is never pruned)
    data-updated        -> reload data, then render every target
    dependency-updated  -> rescan dependencies, then render every target

Errors from triggered work are logged and swallowed so the watch session
survives them.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Literal

from tabby.render.batch import render_files, render_glob

if TYPE_CHECKING:
    from collections.abc import AsyncIterable

    from tabby.reactive.watcher import WatchEvent
    from tabby.render.context import RenderContext


class RebuildMachine:
    """Single-flight scheduler for watch-triggered rebuilds.

    Args:
        ctx: The long-lived RenderContext of the watch session.

    """

    def __init__(self, ctx: RenderContext) -> None:
        self._ctx = ctx
        self._rendering = False
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> Literal["idle", "rendering"]:
        return "rendering" if self._rendering else "idle"

    def dispatch(self, event: WatchEvent) -> asyncio.Task[None] | None:
        """Start the work for *event* if idle.

        Returns:
            The task running the work, or None if the event was only logged
            or was dropped because a rebuild is in flight.

        """
        ctx = self._ctx
        if event.kind == "target-removed":
            ctx.log.verbose("watch", "Target file is removed: %s", event.path)
            return None

        if self._rendering:
            ctx.log.verbose("watch", "Dropped %s (%s): rendering in progress", event.kind, event.path)
            ctx.events.record_rebuild(event.kind, str(event.path), outcome="dropped")
            return None

        self._rendering = True
        self._task = asyncio.create_task(self._run(event))
        return self._task

    async def wait_idle(self) -> None:
        """Wait until the in-flight rebuild (if any) has settled."""
        if self._task is not None:
            await self._task

    async def run(self, events: AsyncIterable[WatchEvent]) -> None:
        """Dispatch every event from *events*, then wait for the last rebuild."""
        async for event in events:
            self.dispatch(event)
        await self.wait_idle()

    async def _run(self, event: WatchEvent) -> None:
        ctx = self._ctx
        t0 = time.perf_counter()
        outcome: Literal["done", "failed"] = "done"
        try:
            await self._handle(event)
            ctx.log.info("Rendering done.")
        except Exception as exc:
            outcome = "failed"
            ctx.log.error("Rebuild after %s failed: %s", event.path, exc)
        finally:
            self._rendering = False
            ctx.events.record_rebuild(
                event.kind,
                str(event.path),
                outcome=outcome,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

    async def _handle(self, event: WatchEvent) -> None:
        ctx = self._ctx
        if event.kind == "target-updated":
            ctx.log.info("Target file is updated. Rerendering...")
            ctx.log.verbose("watch", "Updated file: %s", event.path)
            await render_files(ctx, [event.path])
        elif event.kind == "data-updated":
            ctx.log.info("Data directory is updated. Rerendering...")
            ctx.log.verbose("watch", "Updated file: %s", event.path)
            await ctx.load_data()
            await render_glob(ctx)
        elif event.kind == "dependency-updated":
            ctx.log.info("Dependency is updated. Rerendering...")
            ctx.log.verbose("watch", "Updated file: %s", event.path)
            await ctx.read_dependency()
            await render_glob(ctx)
