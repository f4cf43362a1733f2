"""Batch rendering — expand targets and render them one file at a time.

Files render strictly sequentially: file N+1 starts only after file N's
render (hooks and write included) has settled, and the first failure stops
the batch.
"""

from __future__ import annotations

import glob
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from tabby._errors import ConfigError

if TYPE_CHECKING:
    from tabby.config import TabbyConfig
    from tabby.render.context import RenderContext


def _absolute(path: str | Path) -> Path:
    return Path(os.path.abspath(path))


def expand_targets(settings: TabbyConfig, patterns: Iterable[str] | None = None) -> list[Path]:
    """Expand target glob patterns to a sorted list of files.

    ``**`` matches any number of directories.  Files inside the output
    directory are never targets, so an output tree nested under the root
    does not feed back into the build.
    """
    files: set[Path] = set()
    for pattern in patterns if patterns is not None else settings.target:
        for match in glob.glob(pattern, recursive=True):
            path = _absolute(match)
            if path.is_file() and not path.is_relative_to(settings.out_dir):
                files.add(path)
    return sorted(files)


def is_target(path: Path, settings: TabbyConfig) -> bool:
    """Whether *path* is currently one of the configured target files."""
    return _absolute(path) in expand_targets(settings)


async def render_glob(ctx: RenderContext, patterns: Iterable[str] | None = None) -> None:
    """Render every file matched by *patterns* (default: the configured targets)."""
    await render_files(ctx, expand_targets(ctx.settings, patterns))


async def render_files(ctx: RenderContext, files: Iterable[str | Path]) -> None:
    """Render *files*, each into its mirror directory under ``out_dir``.

    Raises:
        ConfigError: If any file lies outside ``root_dir``.  Checked for the
            whole batch before anything renders.

    """
    root_dir = ctx.settings.root_dir
    out_dir = ctx.settings.out_dir
    jobs: list[tuple[Path, Path]] = []
    for f in files:
        path = _absolute(f)
        if not path.is_relative_to(root_dir):
            ctx.log.error("Target file %s is out of the root directory %s", path, root_dir)
            msg = f"Target file {path} is out of the root directory {root_dir}"
            raise ConfigError(msg)
        jobs.append((path, out_dir / path.relative_to(root_dir).parent))
    await _render_files_at(ctx, jobs)


async def render_directory(ctx: RenderContext, directory: Path, out_dir: Path) -> None:
    """Render every entry of *directory* into *out_dir*, recursing into subdirectories."""
    ctx.log.verbose("render_directory", "Started rendering directory %s", directory)
    ctx.log.verbose(
        "render_directory", "Destination directory for this directory is: %s", out_dir
    )
    jobs = [(entry, out_dir) for entry in sorted(directory.iterdir())]
    await _render_files_at(ctx, jobs)
    ctx.log.verbose("render_directory", "Finished rendering directory %s", directory)


async def render_file(ctx: RenderContext, file: Path, out_dir: Path) -> None:
    """Render one file (or directory) into *out_dir*.

    Files without a renderer are skipped.
    """
    if file.is_dir():
        await render_directory(ctx, file, out_dir / file.name)
        return

    renderer = ctx.get_renderer(file)
    if renderer is None:
        ctx.log.verbose("render_file", "skip: no renderer for %s", file)
        ctx.events.record_skipped(str(file), reason="no_renderer")
        return

    ctx.log.verbose("render_file", "Rendering file %s", file)
    data = await ctx.make_data(file, out_dir)
    await renderer(file, out_dir, data)


async def _render_files_at(ctx: RenderContext, jobs: Sequence[tuple[Path, Path]]) -> None:
    for file, out_dir in jobs:
        await render_file(ctx, file, out_dir)
