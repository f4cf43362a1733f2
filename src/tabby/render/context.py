"""Render context — the long-lived state of one build.

The RenderContext owns the resolved settings, the merged data, the
``base_mtime`` high-water mark, the per-extension renderer cache, and the
six hook lists.  Everything that renders a file goes through it:

    get_renderer()   extension -> RenderFunction (built-ins, then hooks)
    make_data()      merged data + FILENAME, shaped by pre-render hooks
    load_rendered_file()   load-file hooks / disk, then post-load-file hooks
    render()         staleness check -> producer -> post-render hooks -> write

Hooks may be plain functions or coroutines; each result is awaited before
the next hook runs.

Stat, read and write calls run directly on the event loop.  Files render
one at a time, so the only thing they hold up is the watcher queue, which
buffers changes until the loop is free.  The awaited points are the hooks,
the producer, and template evaluation (a worker thread).
"""

from __future__ import annotations

import importlib.machinery
import importlib.util
import inspect
import math
import sys
import time
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from tabby._errors import ExtensionError, HookError, RenderError
from tabby.data.loader import MTIME_KEY, NEG_INF, file_mtime, load_data
from tabby.data.mtime import get_mtime
from tabby.log import Log
from tabby.observability.collector import BuildCollector

if TYPE_CHECKING:
    from tabby._types import (
        Content,
        LoadFileHook,
        MaybeAwaitable,
        PostLoadDataHook,
        PostLoadFileHook,
        PostRenderHook,
        PreRenderHook,
        Producer,
        RenderFunction,
        UnknownExtensionHook,
    )
    from tabby.config import TabbyConfig

# Default callable name looked up in an extension script
EXTENSION_ENTRY_POINT = "setup"


async def resolve[T](value: MaybeAwaitable[T]) -> T:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


def save_file(path: Path, content: Content) -> int:
    """Write *content* to *path* and return the number of bytes written."""
    data = content.encode("utf-8") if isinstance(content, str) else content
    path.write_bytes(data)
    return len(data)


def _check_content(value: object, previous: Content, where: str) -> Content:
    """Enforce the "text in, text out" contract of content-transforming hooks."""
    if not isinstance(value, (str, bytes)) or isinstance(value, str) != isinstance(previous, str):
        msg = (
            f"{where} must return {type(previous).__name__} or None, "
            f"got {type(value).__name__}"
        )
        raise HookError(msg)
    return value


class RenderContext:
    """State shared by every render of one build (or one watch session).

    Args:
        settings: Resolved project configuration.
        log: Leveled logger (default: info level on stderr).
        events: Collector for build events (default: a fresh one).

    """

    def __init__(
        self,
        settings: TabbyConfig,
        *,
        log: Log | None = None,
        events: BuildCollector | None = None,
    ) -> None:
        self.settings = settings
        self.log = log if log is not None else Log()
        self.events = events if events is not None else BuildCollector()
        self.data: dict[str, Any] = {}
        self._base_mtime = NEG_INF
        self._renderers: dict[str, RenderFunction | None] = {}
        self._modules: dict[str, ModuleType | None] = {}
        # hooks
        self._post_load_data_hooks: list[PostLoadDataHook] = []
        self._pre_render_hooks: list[PreRenderHook] = []
        self._post_render_hooks: list[PostRenderHook] = []
        self._unknown_extension_hooks: list[UnknownExtensionHook] = []
        self._load_file_hooks: list[LoadFileHook] = []
        self._post_load_file_hooks: list[PostLoadFileHook] = []

    @property
    def project_dir(self) -> Path:
        return self.settings.project_dir

    @property
    def base_mtime(self) -> float:
        """Newest known out-of-band input change (epoch ms), never decreasing."""
        return self._base_mtime

    def _raise_base_mtime(self, mtime: float) -> None:
        if math.isfinite(mtime):
            self._base_mtime = max(self._base_mtime, mtime)

    # ------------------------------------------------------------------
    # Renderer registry
    # ------------------------------------------------------------------

    def get_renderer(self, filepath: Path) -> RenderFunction | None:
        """Return the renderer for *filepath*'s extension, or None to skip it.

        Resolution order: cache, built-in table, unknown-extension hooks.
        Resolved renderers are cached for the lifetime of the context.

        Raises:
            HookError: If an unknown-extension hook returns a non-callable.

        """
        from tabby.render.renderers import BUILTIN_RENDERERS

        ext = filepath.suffix.lower()
        if ext in self._renderers:
            return self._renderers[ext]

        factory = BUILTIN_RENDERERS.get(ext)
        if factory is not None:
            renderer = factory(self, ext)
            self._renderers[ext] = renderer
            return renderer

        for hook in self._unknown_extension_hooks:
            renderer = hook(self, ext)
            if renderer is None:
                continue
            if not callable(renderer):
                msg = f"Unknown-extension hook for {ext!r} returned a non-callable"
                raise HookError(msg)
            self._renderers[ext] = renderer
            return renderer
        return None

    def add_renderer(self, ext: str, func: RenderFunction) -> RenderFunction:
        """Register *func* as the renderer for *ext* (e.g. ``".md"``)."""
        ext = ext.lower()
        if not ext.startswith("."):
            ext = "." + ext
        self._renderers[ext] = func
        return func

    def local_import(self, name: str, *, quiet: bool = False) -> ModuleType | None:
        """Import *name*, preferring a copy that lives in the project directory.

        Falls back to the installed copy.  When neither exists, logs a
        warning (verbose when *quiet*) and returns None.  Results are memoized
        per context.
        """
        if name in self._modules:
            return self._modules[name]

        module: ModuleType | None = None
        spec = importlib.machinery.PathFinder.find_spec(name, [str(self.project_dir)])
        if spec is not None and spec.loader is not None:
            existing = sys.modules.get(name)
            if existing is not None and getattr(existing, "__file__", None) == spec.origin:
                module = existing
            else:
                module = importlib.util.module_from_spec(spec)
                sys.modules[name] = module
                spec.loader.exec_module(module)
            self.log.verbose("local_import", "Imported %s from %s", name, spec.origin)
        else:
            try:
                module = importlib.import_module(name)
                self.log.verbose("local_import", "Imported bundled %s", name)
            except ImportError:
                if quiet:
                    self.log.verbose("local_import", "%s is not installed", name)
                else:
                    self.log.warning("Failed to import %s", name)

        self._modules[name] = module
        return module

    # ------------------------------------------------------------------
    # Inputs: data, dependencies, extensions
    # ------------------------------------------------------------------

    async def load_data(self) -> None:
        """(Re)load the data directory, raise ``base_mtime``, run post-load-data hooks.

        Force mode ignores the cache file so every data file is re-parsed.

        Raises:
            DataError: If the cache or a data file cannot be parsed.

        """
        settings = self.settings
        if settings.data is None:
            self.log.verbose("load_data", "data directory is not specified.")
            self.data = {}
            return

        cache_file = None if settings.force else settings.cache
        self.log.verbose("load_data", "datadir: %s", settings.data)
        if cache_file is not None:
            self.log.verbose("load_data", "cachefile: %s", cache_file)

        data = load_data(settings.data, cache_file)
        mtime = data.get(MTIME_KEY, NEG_INF)
        if math.isfinite(mtime):
            self.log.verbose(
                "load_data", "Last modified time of datadir: %s", time.ctime(mtime / 1000)
            )
        self._raise_base_mtime(mtime)
        self.events.record_data_loaded("data", mtime=mtime, base_mtime=self._base_mtime)
        self.data = data

        for hook in self._post_load_data_hooks:
            await resolve(hook(self))

    async def read_dependency(self) -> None:
        """Scan the dependency paths and raise ``base_mtime`` to their newest mtime.

        Raises:
            FileNotFoundError: If a dependency path does not exist.

        """
        mtime = get_mtime(self.settings.dependency)
        if math.isfinite(mtime):
            self.log.verbose(
                "read_dependency",
                "Last modified time of other dependencies: %s",
                time.ctime(mtime / 1000),
            )
        self._raise_base_mtime(mtime)
        self.events.record_data_loaded("dependency", mtime=mtime, base_mtime=self._base_mtime)

    async def load_extensions(self) -> None:
        """Load each extension script in declared order and call its entry point.

        Raises:
            ExtensionError: If a script is missing, fails to import, or does
                not expose a callable.

        """
        extensions = self.settings.extension
        if extensions:
            self.log.verbose("load_extensions", "Loading extensions")
        for entry in extensions:
            func = self._load_extension(entry)
            await resolve(func(self))
        if extensions:
            self.log.verbose("load_extensions", "Loaded extensions")

    def _load_extension(self, entry: str) -> Any:
        path_part, sep, attr = entry.rpartition(":")
        if not sep or not attr.isidentifier():
            path_part, attr = entry, EXTENSION_ENTRY_POINT

        path = self.project_dir / path_part
        if not path.is_file():
            self.log.error("Extension not found: %s", path)
            msg = f"Extension not found: {path}"
            raise ExtensionError(msg)

        module_name = f"tabby_ext_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            msg = f"Failed to load extension {path}"
            raise ExtensionError(msg)
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            self.log.error("Error loading %s:", path)
            self.log.error("[ %s ]", exc)
            msg = f"Error loading extension {path}: {exc}"
            raise ExtensionError(msg) from exc

        func = getattr(module, attr, None)
        if not callable(func):
            self.log.error("Extension must expose a callable %s: %s", attr, path)
            msg = f"Extension must expose a callable {attr!r}: {path}"
            raise ExtensionError(msg)
        return func

    # ------------------------------------------------------------------
    # Hook registration
    # ------------------------------------------------------------------

    def add_post_load_data_hook(self, func: PostLoadDataHook) -> PostLoadDataHook:
        self._post_load_data_hooks.append(func)
        return func

    def add_pre_render_hook(self, func: PreRenderHook) -> PreRenderHook:
        self._pre_render_hooks.append(func)
        return func

    def add_post_render_hook(self, func: PostRenderHook) -> PostRenderHook:
        self._post_render_hooks.append(func)
        return func

    def add_unknown_extension_hook(self, func: UnknownExtensionHook) -> UnknownExtensionHook:
        self._unknown_extension_hooks.append(func)
        return func

    def add_load_file_hook(self, func: LoadFileHook) -> LoadFileHook:
        self._load_file_hooks.append(func)
        return func

    def add_post_load_file_hook(self, func: PostLoadFileHook) -> PostLoadFileHook:
        self._post_load_file_hooks.append(func)
        return func

    # ------------------------------------------------------------------
    # Per-file helpers
    # ------------------------------------------------------------------

    def get_target_file(self, file: Path, out_dir: Path, out_ext: str | None = None) -> Path:
        """Return the output path for *file*: its stem plus the output extension."""
        return out_dir / (file.stem + (out_ext or self.settings.out_ext))

    async def make_data(self, file: Path, out_dir: Path) -> dict[str, Any]:
        """Build the render data for *file*, threaded through pre-render hooks.

        Raises:
            HookError: If a hook returns something other than a mapping or None.

        """
        result: dict[str, Any] = {**self.data, "FILENAME": str(file)}
        for hook in self._pre_render_hooks:
            replacement = await resolve(hook(self, file, result))
            if replacement is None:
                continue
            if not isinstance(replacement, Mapping):
                msg = f"Pre-render hook must return a mapping or None, got {type(replacement).__name__}"
                raise HookError(msg)
            result = replacement if isinstance(replacement, dict) else dict(replacement)
        return result

    async def load_rendered_file(self, file: Path, binary: bool = False) -> Content:
        """Load a source file for rendering.

        The first load-file hook returning non-None supplies the content;
        otherwise the file is read from disk.  Post-load-file hooks then
        transform it in order.
        """
        content: Content | None = None
        for hook in self._load_file_hooks:
            content = await resolve(hook(self, file, binary))
            if content is not None:
                break

        if content is None:
            content = file.read_bytes() if binary else file.read_text(encoding="utf-8")
        elif not isinstance(content, (str, bytes)):
            msg = f"Load-file hook must return str, bytes or None, got {type(content).__name__}"
            raise HookError(msg)

        for hook in self._post_load_file_hooks:
            replaced = await resolve(hook(self, file, content))
            if replaced is not None:
                content = _check_content(replaced, content, "Post-load-file hook")
        return content

    # ------------------------------------------------------------------
    # Staleness & render
    # ------------------------------------------------------------------

    async def render(self, original: Path, target: Path, producer: Producer) -> bool:
        """Render *original* into *target* if the target is stale.

        The target is up to date when its mtime is at least
        ``max(mtime(original), base_mtime)``; force mode skips the check.
        A producer result of None skips the write.

        Returns:
            True if *target* was written.

        Raises:
            OSError: If stat/read/write fails (a missing target is not an error).
            RenderError: If the producer returns something other than content.
            HookError: If a post-render hook breaks its contract.

        """
        if not self.settings.force:
            data_mtime = max(file_mtime(original), self._base_mtime)
            try:
                target_mtime = file_mtime(target)
            except FileNotFoundError:
                target_mtime = NEG_INF
            if target_mtime >= data_mtime:
                self.log.verbose("render", "Skipped rendering %s: no need to rerender", original)
                self.events.record_skipped(str(original), str(target), reason="up_to_date")
                return False

        t0 = time.perf_counter()
        content = await resolve(producer())
        if content is None:
            self.log.verbose("render", "Skipped rendering %s: due to null content", target)
            self.events.record_skipped(str(original), str(target), reason="no_content")
            return False
        if not isinstance(content, (str, bytes)):
            msg = f"Renderer for {original} produced {type(content).__name__}, not content"
            raise RenderError(msg)

        for hook in self._post_render_hooks:
            replaced = await resolve(hook(self, content, target, original))
            if replaced is not None:
                content = _check_content(replaced, content, "Post-render hook")

        target.parent.mkdir(parents=True, exist_ok=True)
        size = save_file(target, content)
        elapsed = (time.perf_counter() - t0) * 1000
        self.log.verbose("render", "Rendered %s -> %s", original, target)
        self.events.record_rendered(
            str(original), str(target), size_bytes=size, duration_ms=elapsed
        )
        return True
