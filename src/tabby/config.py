"""Tabby configuration.

TabbyConfig is the resolved project configuration, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from tabby._errors import ConfigError

DEFAULT_OUT_EXT = ".html"


def _as_tuple(value: object) -> tuple:
    """Normalize a ``str | list | None`` setting into a tuple."""
    if value is None:
        return ()
    if isinstance(value, (str, Path)):
        return (value,)
    return tuple(value)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class TabbyConfig:
    """Configuration for one tabby project.

    Every path is resolved against ``project_dir`` in ``__post_init__``, so the
    rest of the engine only ever sees absolute paths.

    Attributes:
        project_dir: Directory holding the project file. Anchors relative paths.
        root_dir: Root of the render tree (default: ``project_dir``).
        out_dir: Output directory. Required.
        out_ext: Extension given to rendered template output.
        force: Re-render every file regardless of timestamps.
        data: Data directory merged into the render data, if any.
        cache: Cache file for the merged data, if any.
        dependency: Files/directories whose mtime makes every target stale.
        target: Glob patterns selecting the files to render
            (default: everything under ``root_dir``).
        extension: Extension scripts loaded at startup, in order.

    """

    project_dir: Path = field(default_factory=Path.cwd)
    root_dir: Path | None = None
    out_dir: Path | None = None
    out_ext: str = DEFAULT_OUT_EXT
    force: bool = False
    data: Path | None = None
    cache: Path | None = None
    dependency: tuple[Path, ...] = ()
    target: tuple[str, ...] = ()
    extension: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        project_dir = Path(self.project_dir).resolve()
        object.__setattr__(self, "project_dir", project_dir)

        root_dir = project_dir / self.root_dir if self.root_dir else project_dir
        object.__setattr__(self, "root_dir", root_dir.resolve())

        if not self.out_dir:
            msg = "out_dir is not provided"
            raise ConfigError(msg)
        object.__setattr__(self, "out_dir", (project_dir / self.out_dir).resolve())

        if not self.out_ext.startswith("."):
            object.__setattr__(self, "out_ext", "." + self.out_ext)

        for name in ("data", "cache"):
            value = getattr(self, name)
            if value:
                object.__setattr__(self, name, (project_dir / value).resolve())
            else:
                object.__setattr__(self, name, None)

        object.__setattr__(
            self,
            "dependency",
            tuple((project_dir / p).resolve() for p in _as_tuple(self.dependency)),
        )

        targets = _as_tuple(self.target)
        if targets:
            resolved = tuple(str(project_dir / t) for t in targets)
        else:
            resolved = (str(self.root_dir / "**" / "*"),)
        object.__setattr__(self, "target", resolved)

        object.__setattr__(self, "extension", tuple(str(e) for e in _as_tuple(self.extension)))
