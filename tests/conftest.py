"""Shared test fixtures for tabby."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tabby.config import TabbyConfig
from tabby.log import Log, LogLevel
from tabby.render.context import RenderContext


def set_mtime(path: Path, seconds: float) -> None:
    """Set both atime and mtime of *path* to *seconds* since the epoch."""
    os.utime(path, (seconds, seconds))


def write(path: Path, text: str, mtime: float | None = None) -> Path:
    """Write *text* to *path* (creating parents) and optionally pin its mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    if mtime is not None:
        set_mtime(path, mtime)
    return path


def make_settings(project_dir: Path, **kwargs: object) -> TabbyConfig:
    """TabbyConfig for a project with sources in ``src/`` and output in ``dist/``."""
    options: dict[str, object] = {"root_dir": "src", "out_dir": "dist"}
    options.update(kwargs)
    return TabbyConfig(project_dir=project_dir, **options)  # type: ignore[arg-type]


@pytest.fixture
def quiet_log() -> Log:
    """A Log that prints nothing."""
    return Log(LogLevel.NONE)


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal project on disk.

    Layout::

        tabby.yaml
        data/site.yaml        title: X
        src/index.j2          <p>{{ site.title }}</p>
        src/css/base.css
        src/about/team.html

    """
    write(
        tmp_path / "tabby.yaml",
        "root_dir: src\nout_dir: dist\ndata: data\ncache: .cache/data.json\n",
    )
    write(tmp_path / "data" / "site.yaml", "title: X\n")
    write(tmp_path / "src" / "index.j2", "<p>{{ site.title }}</p>")
    write(tmp_path / "src" / "css" / "base.css", "body { margin: 0; }\n")
    write(tmp_path / "src" / "about" / "team.html", "<h1>Team</h1>\n")
    return tmp_path


@pytest.fixture
def settings(tmp_path: Path) -> TabbyConfig:
    """Settings for an empty project rooted at tmp_path."""
    (tmp_path / "src").mkdir()
    return make_settings(tmp_path)


@pytest.fixture
def ctx(settings: TabbyConfig, quiet_log: Log) -> RenderContext:
    """A RenderContext over ``settings`` with logging silenced."""
    return RenderContext(settings, log=quiet_log)
