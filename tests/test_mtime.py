"""Tests for tabby.data.mtime — dependency scanning."""

from pathlib import Path

import pytest

from tabby.data.loader import NEG_INF
from tabby.data.mtime import get_mtime
from tests.conftest import set_mtime, write


class TestGetMtime:
    """get_mtime — newest mtime over files and directory trees."""

    def test_empty(self) -> None:
        assert get_mtime([]) == NEG_INF

    def test_single_file(self, tmp_path: Path) -> None:
        path = write(tmp_path / "a.txt", "a", mtime=1_000)
        assert get_mtime([path]) == 1_000_000

    def test_max_over_files(self, tmp_path: Path) -> None:
        a = write(tmp_path / "a.txt", "a", mtime=1_000)
        b = write(tmp_path / "b.txt", "b", mtime=3_000)
        assert get_mtime([a, b]) == 3_000_000

    def test_directory_recurses(self, tmp_path: Path) -> None:
        write(tmp_path / "lib" / "x.j2", "x", mtime=1_000)
        write(tmp_path / "lib" / "deep" / "y.j2", "y", mtime=7_000)
        assert get_mtime([tmp_path / "lib"]) == 7_000_000

    def test_directory_own_mtime_ignored(self, tmp_path: Path) -> None:
        write(tmp_path / "lib" / "x.j2", "x", mtime=1_000)
        set_mtime(tmp_path / "lib", 9_000)
        assert get_mtime([tmp_path / "lib"]) == 1_000_000

    def test_empty_directory(self, tmp_path: Path) -> None:
        (tmp_path / "empty").mkdir()
        assert get_mtime([tmp_path / "empty"]) == NEG_INF

    def test_missing_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            get_mtime([tmp_path / "gone.txt"])
