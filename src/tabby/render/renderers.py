"""Built-in renderers — template engines, static passthrough, stylesheets.

Each factory receives the RenderContext and the extension it was resolved
for, and returns a RenderFunction (or None when the engine is unavailable).
Factories run once per extension; the context caches the result.

Engines are imported through ``RenderContext.local_import`` so a copy
installed in the project directory wins over the bundled one.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tabby._errors import RenderError

if TYPE_CHECKING:
    from tabby._types import RenderFunction
    from tabby.render.context import RenderContext

# "$proj" / "$root" in template references (case-insensitive)
_PATH_TOKEN = re.compile(r"\$(\w+)(?!\w)")


def expand_path_tokens(reference: str, project_dir: Path, root_dir: Path) -> str:
    """Rewrite ``$proj`` / ``$root`` tokens in a template reference.

    Unknown tokens are left as they are.

    """

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1).lower()
        if name == "proj":
            return str(project_dir)
        if name == "root":
            return str(root_dir)
        return match.group(0)

    return _PATH_TOKEN.sub(_sub, reference)


# ---------------------------------------------------------------------------
# Static files
# ---------------------------------------------------------------------------


def make_static_renderer(ctx: RenderContext, ext: str) -> RenderFunction:
    """Copy the file to ``out_dir`` under its own name, bytes unchanged."""

    async def render_static(
        file: Path, out_dir: Path, data: Mapping[str, Any] | None = None
    ) -> None:
        target = out_dir / file.name
        await ctx.render(file, target, lambda: ctx.load_rendered_file(file, binary=True))

    return render_static


# ---------------------------------------------------------------------------
# Jinja2 templates
# ---------------------------------------------------------------------------


def make_jinja_renderer(ctx: RenderContext, ext: str) -> RenderFunction | None:
    """Render Jinja2 templates to ``<stem><out_ext>``.

    Template names are absolute paths.  Every template source, including
    includes/extends/imports, is loaded through ``ctx.load_rendered_file`` so
    load-file and post-load-file hooks see it.  References are resolved
    relative to the including template after ``$proj`` / ``$root`` expansion.

    Jinja2 is synchronous, so rendering runs in a worker thread; source loads
    are marshalled back onto the event loop because hooks may be coroutines.

    The returned renderer exposes the Jinja ``environment`` so extensions can
    register filters and globals.
    """
    jinja2 = ctx.local_import("jinja2")
    if jinja2 is None:
        return None

    settings = ctx.settings

    class HookedLoader(jinja2.BaseLoader):
        """Loads template source through the context's load-file hooks."""

        def __init__(self) -> None:
            self.loop: asyncio.AbstractEventLoop | None = None

        def get_source(
            self, environment: Any, template: str
        ) -> tuple[str, str, Callable[[], bool]]:
            if self.loop is None:
                msg = "Jinja templates must be rendered through the render function"
                raise RenderError(msg)
            path = Path(template)
            future = asyncio.run_coroutine_threadsafe(ctx.load_rendered_file(path), self.loop)
            try:
                source = future.result()
            except FileNotFoundError as exc:
                raise jinja2.TemplateNotFound(template) from exc
            if isinstance(source, bytes):
                source = source.decode("utf-8")
            return source, str(path), lambda: False

    class ProjectEnvironment(jinja2.Environment):
        def join_path(self, template: str, parent: str) -> str:
            reference = expand_path_tokens(template, settings.project_dir, settings.root_dir)
            return str((Path(parent).parent / reference).resolve())

    loader = HookedLoader()
    environment = ProjectEnvironment(
        loader=loader,
        autoescape=True,
        keep_trailing_newline=True,
        cache_size=0,
    )

    def _render_template(file: Path, options: dict[str, Any]) -> str:
        try:
            return environment.get_template(str(file)).render(options)
        except jinja2.TemplateError as exc:
            msg = f"Failed to render template {file}: {exc}"
            raise RenderError(msg) from exc

    async def render_jinja(
        file: Path, out_dir: Path, data: Mapping[str, Any] | None = None
    ) -> None:
        target = ctx.get_target_file(file, out_dir)

        async def produce() -> str:
            loader.loop = asyncio.get_running_loop()
            options = {"filename": str(file), **(data or {})}
            return await asyncio.to_thread(_render_template, file, options)

        await ctx.render(file, target, produce)

    render_jinja.environment = environment  # type: ignore[attr-defined]
    return render_jinja


# ---------------------------------------------------------------------------
# Sass / SCSS
# ---------------------------------------------------------------------------


def make_sass_renderer(ctx: RenderContext, ext: str) -> RenderFunction:
    """Compile ``.sass`` / ``.scss`` to ``<stem>.css`` with libsass.

    When libsass is not installed each file is skipped, not failed.
    """
    indented = ext == ".sass"

    async def render_sass(
        file: Path, out_dir: Path, data: Mapping[str, Any] | None = None
    ) -> None:
        target = ctx.get_target_file(file, out_dir, ".css")

        async def produce() -> str | None:
            source = await ctx.load_rendered_file(file)
            sass = ctx.local_import("sass", quiet=True)
            if sass is None:
                ctx.log.verbose("render_sass", "skipped %s : sass is not installed", file)
                return None
            try:
                return sass.compile(
                    string=source,
                    indented=indented,
                    include_paths=[str(file.parent)],
                )
            except sass.CompileError as exc:
                ctx.log.error("Error rendering %s: [ %s ]", file, exc)
                msg = f"Failed to compile stylesheet {file}: {exc}"
                raise RenderError(msg) from exc

        await ctx.render(file, target, produce)

    return render_sass


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

type RendererFactory = Callable[[RenderContext, str], RenderFunction | None]

BUILTIN_RENDERERS: dict[str, RendererFactory] = {
    # Template engines
    ".j2": make_jinja_renderer,
    ".jinja": make_jinja_renderer,
    ".jinja2": make_jinja_renderer,
    # Static files
    ".html": make_static_renderer,
    ".htm": make_static_renderer,
    ".css": make_static_renderer,
    ".js": make_static_renderer,
    # Stylesheets
    ".sass": make_sass_renderer,
    ".scss": make_sass_renderer,
}
