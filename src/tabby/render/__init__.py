"""Render layer — renderer registry, hooks, staleness, batch rendering.

The RenderContext decides whether a file is stale and threads content
through the hook pipeline; the batch functions walk the target set.
"""

from tabby.render.batch import (
    expand_targets,
    render_directory,
    render_file,
    render_files,
    render_glob,
)
from tabby.render.context import RenderContext

__all__ = [
    "RenderContext",
    "expand_targets",
    "render_directory",
    "render_file",
    "render_files",
    "render_glob",
]
