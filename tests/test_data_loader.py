"""Tests for tabby.data.loader — data directory merge and cache."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tabby._errors import DataError
from tabby.data.loader import (
    MTIME_KEY,
    NEG_INF,
    file_mtime,
    load_data,
    parse_data_file,
    read_cache,
    write_cache,
)
from tests.conftest import set_mtime, write


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A data directory with one file per supported format."""
    root = tmp_path / "data"
    write(root / "site.yaml", "title: X\n", mtime=1_000)
    write(root / "nav.json", '{"items": ["a", "b"]}', mtime=2_000)
    write(root / "build.toml", "minify = true\n", mtime=1_500)
    return root


# ---------------------------------------------------------------------------
# Parsing and merging
# ---------------------------------------------------------------------------


class TestLoadData:
    """load_data — one entry per file, keyed by base name."""

    def test_merges_all_formats(self, data_dir: Path) -> None:
        data = load_data(data_dir)
        assert data["site"] == {"title": "X", MTIME_KEY: 1_000_000}
        assert data["nav"] == {"items": ["a", "b"], MTIME_KEY: 2_000_000}
        assert data["build"] == {"minify": True, MTIME_KEY: 1_500_000}

    def test_top_level_mtime_is_max(self, data_dir: Path) -> None:
        assert load_data(data_dir)[MTIME_KEY] == 2_000_000

    def test_yml_extension(self, tmp_path: Path) -> None:
        write(tmp_path / "data" / "menu.yml", "- home\n- about\n")
        assert load_data(tmp_path / "data")["menu"] == ["home", "about"]

    def test_non_mapping_has_no_mtime(self, tmp_path: Path) -> None:
        write(tmp_path / "data" / "tags.json", '["a", "b"]', mtime=3_000)
        data = load_data(tmp_path / "data")
        assert data["tags"] == ["a", "b"]
        assert data[MTIME_KEY] == 3_000_000

    def test_subdirectory_becomes_nested_mapping(self, tmp_path: Path) -> None:
        write(tmp_path / "data" / "people" / "ann.yaml", "name: Ann\n", mtime=5_000)
        data = load_data(tmp_path / "data")
        assert data["people"]["ann"]["name"] == "Ann"
        assert data["people"][MTIME_KEY] == 5_000_000
        assert data[MTIME_KEY] == 5_000_000

    def test_ignores_other_files(self, tmp_path: Path) -> None:
        write(tmp_path / "data" / "README.md", "# notes\n")
        write(tmp_path / "data" / ".hidden.json", "{}")
        data = load_data(tmp_path / "data")
        assert data == {MTIME_KEY: NEG_INF}

    def test_empty_directory(self, tmp_path: Path) -> None:
        (tmp_path / "data").mkdir()
        assert load_data(tmp_path / "data") == {MTIME_KEY: NEG_INF}

    def test_malformed_file_raises(self, tmp_path: Path) -> None:
        write(tmp_path / "data" / "broken.json", "{nope")
        with pytest.raises(DataError, match="broken.json"):
            load_data(tmp_path / "data")

    def test_missing_directory_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_data(tmp_path / "missing")


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class TestCache:
    """The cache file short-circuits parsing of unchanged entries."""

    def test_written_when_absent(self, data_dir: Path, tmp_path: Path) -> None:
        cache_file = tmp_path / ".cache" / "data.json"
        data = load_data(data_dir, cache_file)
        assert json.loads(cache_file.read_text()) == data

    def test_unchanged_cache_not_rewritten(self, data_dir: Path, tmp_path: Path) -> None:
        cache_file = tmp_path / "cache.json"
        load_data(data_dir, cache_file)
        set_mtime(cache_file, 9_000)
        load_data(data_dir, cache_file)
        assert file_mtime(cache_file) == 9_000_000

    def test_fresh_cache_entry_reused(self, data_dir: Path, tmp_path: Path) -> None:
        cache_file = tmp_path / "cache.json"
        load_data(data_dir, cache_file)

        # A cached entry that is newer than the file wins over the file itself.
        cache = json.loads(cache_file.read_text())
        cache["site"] = {"title": "from cache", MTIME_KEY: 1_000_000}
        cache_file.write_text(json.dumps(cache))

        assert load_data(data_dir, cache_file)["site"]["title"] == "from cache"

    def test_stale_cache_entry_reparsed(self, data_dir: Path, tmp_path: Path) -> None:
        cache_file = tmp_path / "cache.json"
        load_data(data_dir, cache_file)

        write(data_dir / "site.yaml", "title: Y\n", mtime=4_000)
        data = load_data(data_dir, cache_file)
        assert data["site"]["title"] == "Y"
        assert data[MTIME_KEY] == 4_000_000
        assert json.loads(cache_file.read_text())["site"]["title"] == "Y"

    def test_new_file_added(self, data_dir: Path, tmp_path: Path) -> None:
        cache_file = tmp_path / "cache.json"
        load_data(data_dir, cache_file)
        write(data_dir / "extra.json", '{"n": 1}', mtime=6_000)
        assert load_data(data_dir, cache_file)["extra"]["n"] == 1

    def test_read_missing_cache(self, tmp_path: Path) -> None:
        assert read_cache(tmp_path / "nope.json") is None

    def test_read_corrupt_cache(self, tmp_path: Path) -> None:
        cache_file = tmp_path / "cache.json"
        cache_file.write_text("not json")
        with pytest.raises(DataError, match="cache"):
            read_cache(cache_file)

    def test_read_non_object_cache(self, tmp_path: Path) -> None:
        cache_file = tmp_path / "cache.json"
        cache_file.write_text("[1, 2]")
        with pytest.raises(DataError):
            read_cache(cache_file)

    def test_write_creates_parents(self, tmp_path: Path) -> None:
        cache_file = tmp_path / "a" / "b" / "cache.json"
        write_cache(cache_file, {"k": "ü", MTIME_KEY: 1.0})
        assert "ü" in cache_file.read_text(encoding="utf-8")


class TestParseDataFile:
    """parse_data_file — dispatch on extension."""

    def test_yaml_error_wrapped(self, tmp_path: Path) -> None:
        path = write(tmp_path / "bad.yaml", "a: [1, 2\n")
        with pytest.raises(DataError):
            parse_data_file(path)

    def test_toml_error_wrapped(self, tmp_path: Path) -> None:
        path = write(tmp_path / "bad.toml", "a = \n")
        with pytest.raises(DataError):
            parse_data_file(path)
