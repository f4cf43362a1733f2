"""Dependency mtime scanner.

Computes the newest modification time across files and directories that
live outside the render tree but still invalidate every rendered file.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from tabby.data.loader import NEG_INF, file_mtime


def get_mtime(paths: Iterable[Path]) -> float:
    """Return the latest modification time (epoch ms) under *paths*.

    Directories contribute the maximum over their entries, recursively;
    files contribute their own mtime.  Returns negative infinity when there
    is nothing to scan.

    Raises:
        FileNotFoundError: If a path does not exist.

    """
    latest = NEG_INF
    for path in paths:
        if path.is_dir():
            latest = max(latest, get_mtime(path.iterdir()))
        else:
            latest = max(latest, file_mtime(path))
    return latest
