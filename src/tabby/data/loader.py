"""Data loader — merge a directory of data files into one mapping.

Each data file becomes an entry keyed by its base name (extension stripped);
subdirectories become nested mappings.  Every mapping entry carries a
synthetic ``$mtime`` (epoch milliseconds) and the merged mapping carries the
maximum over all of its entries.

An optional JSON cache file short-circuits parsing: an entry whose cached
``$mtime`` is not older than the file on disk is reused verbatim.
"""

from __future__ import annotations

import json
import math
import tomllib
from pathlib import Path
from typing import Any

import yaml

from tabby._errors import DataError

MTIME_KEY = "$mtime"

NEG_INF = -math.inf


def file_mtime(path: Path) -> float:
    """Return *path*'s modification time in epoch milliseconds."""
    return path.stat().st_mtime_ns / 1_000_000


def load_data(
    data_dir: Path,
    cache_file: Path | None = None,
) -> dict[str, Any]:
    """Load *data_dir* into one merged mapping.

    Args:
        data_dir: Directory of ``.json`` / ``.yaml`` / ``.yml`` / ``.toml`` files.
        cache_file: JSON cache to read hints from and write results back to.
            A missing cache file means "no cache".

    Returns:
        The merged mapping, with a top-level ``$mtime``.

    Raises:
        DataError: If the cache file or any data file cannot be parsed.

    """
    cache = read_cache(cache_file) if cache_file is not None else None

    merged = _load_directory(data_dir, cache)

    if cache_file is not None and (
        cache is None or merged[MTIME_KEY] > cache.get(MTIME_KEY, NEG_INF)
    ):
        write_cache(cache_file, merged)

    return merged


def read_cache(cache_file: Path) -> dict[str, Any] | None:
    """Read a cache file, returning None when it does not exist.

    Raises:
        DataError: If the file exists but is not a JSON object.

    """
    try:
        text = cache_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        cache = json.loads(text)
    except ValueError as exc:
        msg = f"Failed to parse cache file {cache_file}: {exc}"
        raise DataError(msg) from exc
    if not isinstance(cache, dict):
        msg = f"Cache file {cache_file} does not contain an object"
        raise DataError(msg)
    return cache


def write_cache(cache_file: Path, merged: dict[str, Any]) -> None:
    """Serialize *merged* to *cache_file* as JSON text."""
    cache_file.parent.mkdir(parents=True, exist_ok=True)
    cache_file.write_text(json.dumps(merged, ensure_ascii=False), encoding="utf-8")


def parse_data_file(path: Path) -> Any:
    """Parse one data file according to its extension.

    Raises:
        DataError: If the file cannot be decoded.

    """
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
        if suffix == ".json":
            return json.loads(text)
        if suffix == ".toml":
            return tomllib.loads(text)
        return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        msg = f"Failed to parse data file {path}: {exc}"
        raise DataError(msg) from exc


_PARSERS = frozenset({".json", ".yaml", ".yml", ".toml"})


def _load_directory(directory: Path, hint: dict[str, Any] | None) -> dict[str, Any]:
    result: dict[str, Any] = {}
    latest = NEG_INF

    for entry in sorted(directory.iterdir()):
        if entry.name.startswith("."):
            continue

        if entry.is_dir():
            sub_hint = hint.get(entry.name) if hint else None
            value = _load_directory(entry, sub_hint if isinstance(sub_hint, dict) else None)
            result[entry.name] = value
            latest = max(latest, value[MTIME_KEY])
            continue

        if entry.suffix.lower() not in _PARSERS:
            continue

        key = entry.stem
        mtime = file_mtime(entry)
        cached = hint.get(key) if hint else None
        if isinstance(cached, dict) and cached.get(MTIME_KEY, NEG_INF) >= mtime:
            result[key] = cached
            latest = max(latest, cached[MTIME_KEY])
            continue

        value = parse_data_file(entry)
        if isinstance(value, dict):
            value = {**value, MTIME_KEY: mtime}
        result[key] = value
        latest = max(latest, mtime)

    result[MTIME_KEY] = latest
    return result
