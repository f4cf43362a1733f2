"""Tabby app — build and watch entry points.

Wires config, the RenderContext, batch rendering and the reactive layer
together.  ``build()`` is the synchronous entry point used by the CLI; the
async helpers are usable on their own inside a running event loop.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import TYPE_CHECKING

from tabby.config_loader import load_config
from tabby.log import Log, LogLevel
from tabby.observability.events import FileRendered, FileSkipped, now_ns
from tabby.reactive.rebuild import RebuildMachine
from tabby.reactive.watcher import ProjectWatcher
from tabby.render.batch import render_glob
from tabby.render.context import RenderContext

if TYPE_CHECKING:
    from tabby.config import TabbyConfig


async def make_context(settings: TabbyConfig, *, log: Log | None = None) -> RenderContext:
    """Create a RenderContext and load its inputs.

    Extensions load first so their post-load-data hooks see the initial
    data load.  Then the data directory is loaded and the dependencies are
    scanned.  An extension's entry point therefore runs while ``ctx.data``
    is still ``{}``; code that needs the data belongs in a post-load-data
    hook.
    """
    ctx = RenderContext(settings, log=log)
    await ctx.load_extensions()
    await ctx.load_data()
    await ctx.read_dependency()
    return ctx


async def render_targets(ctx: RenderContext) -> None:
    """Render every configured target."""
    await render_glob(ctx)
    ctx.log.info("Build done.")


async def watch_to_render(
    ctx: RenderContext,
    *,
    watcher: ProjectWatcher | None = None,
) -> None:
    """Watch the project and re-render on change until the watcher stops."""
    watcher = watcher if watcher is not None else ProjectWatcher(ctx.settings)
    machine = RebuildMachine(ctx)

    watcher.start()
    ctx.log.info("Watching %s for changes...", ctx.settings.root_dir)
    try:
        await machine.run(watcher.changes())
    finally:
        await watcher.stop()


async def run(
    settings: TabbyConfig,
    *,
    render: bool = True,
    watch: bool = False,
    log: Log | None = None,
) -> RenderContext:
    """Async pipeline behind :func:`build`.  Returns the context it used."""
    ctx = await make_context(settings, log=log)

    if render:
        rendered_before = ctx.events.count(FileRendered)
        skipped_before = ctx.events.count(FileSkipped)
        started_ns = now_ns()
        t0 = time.perf_counter()
        await render_targets(ctx)
        _print_build_summary(
            ctx,
            rendered=ctx.events.count(FileRendered) - rendered_before,
            skipped=ctx.events.count(FileSkipped) - skipped_before,
            duration_ms=(time.perf_counter() - t0) * 1000,
            started_ns=started_ns,
        )

    if watch:
        await watch_to_render(ctx)
    return ctx


def build(
    cwd: str | Path = ".",
    *,
    project: str | None = None,
    watch: bool = False,
    render: bool = True,
    log: Log | None = None,
    log_level: LogLevel = LogLevel.INFO,
    **overrides: object,
) -> RenderContext:
    """Build the project found from *cwd*, optionally watching afterwards.

    Args:
        cwd: Directory to start the project file search from.
        project: Explicit project file name.
        watch: Keep running and re-render on change after the build.
        render: Run the initial full render.
        log: Logger to use (default: a new one at *log_level*).
        log_level: Verbosity of the default logger.
        **overrides: Override TabbyConfig fields (None values are ignored).

    Raises:
        TabbyError: On configuration, data, extension, hook or render errors.
        OSError: On filesystem errors.

    """
    log = log if log is not None else Log(log_level)
    settings = load_config(Path(cwd), project, **overrides)
    log.verbose("build", "Project directory: %s", settings.project_dir)
    log.verbose("build", "Root directory: %s", settings.root_dir)
    log.verbose("build", "Output directory: %s", settings.out_dir)
    return asyncio.run(run(settings, render=render, watch=watch, log=log))


def _print_build_summary(
    ctx: RenderContext,
    *,
    rendered: int,
    skipped: int,
    duration_ms: float,
    started_ns: int = 0,
) -> None:
    """Log build completion summary, plus the slowest renders when verbose."""
    ctx.log.info(
        "Rendered %d file%s, skipped %d, into %s",
        rendered,
        "s" if rendered != 1 else "",
        skipped,
        ctx.settings.out_dir,
    )
    if ctx.log.level >= LogLevel.VERBOSE:
        for event in ctx.events.slowest(since_ns=started_ns):
            ctx.log.verbose("build", "slow: %s (%.1fms)", event.source, event.duration_ms)
    ctx.log.info("Done in %.0fms", duration_ms)
