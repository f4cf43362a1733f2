"""Shared type definitions for tabby."""

from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from tabby.render.context import RenderContext

# Rendered or loaded file content
type Content = str | bytes

# A value that may need to be awaited
type MaybeAwaitable[T] = T | Awaitable[T]

# Renders one source file into zero or one output file under out_dir
type RenderFunction = Callable[[Path, Path, Mapping[str, Any] | None], Awaitable[None]]

# Produces content for RenderContext.render(); None means "skip"
type Producer = Callable[[], MaybeAwaitable[Content | None]]

# Kind of event flowing through the watch channel
type WatchKind = Literal["target-updated", "target-removed", "data-updated", "dependency-updated"]

# Hook signatures
type PostLoadDataHook = Callable[[RenderContext], MaybeAwaitable[None]]
type PreRenderHook = Callable[
    [RenderContext, Path, dict[str, Any]], MaybeAwaitable[Mapping[str, Any] | None]
]
type PostRenderHook = Callable[[RenderContext, Content, Path, Path], MaybeAwaitable[Content | None]]
type UnknownExtensionHook = Callable[[RenderContext, str], RenderFunction | None]
type LoadFileHook = Callable[[RenderContext, Path, bool], MaybeAwaitable[Content | None]]
type PostLoadFileHook = Callable[[RenderContext, Path, Content], MaybeAwaitable[Content | None]]
