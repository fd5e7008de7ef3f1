"""Tests for directory zipping."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from livyctl.webhdfs.archive import contains_py_file, zip_directory


@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
    root = tmp_path / "mylib"
    (root / "sub").mkdir(parents=True)
    (root / "__init__.py").write_text("")
    (root / "sub" / "util.py").write_text("X = 1\n")
    (root / "data.csv").write_text("a,b\n")
    return root


class TestZipDirectory:
    def test_contents_at_archive_root(self, package_dir: Path, tmp_path: Path) -> None:
        out_dir = tmp_path / "out"
        out_dir.mkdir()

        archive = zip_directory(package_dir, out_dir)

        assert archive.parent == out_dir
        assert archive.name.startswith("mylib-")
        assert archive.suffix == ".zip"
        with zipfile.ZipFile(archive) as zf:
            assert sorted(zf.namelist()) == ["__init__.py", "data.csv", "sub/util.py"]
            assert zf.read("sub/util.py") == b"X = 1\n"

    def test_rejects_file(self, tmp_path: Path) -> None:
        path = tmp_path / "f.txt"
        path.write_text("x")
        with pytest.raises(NotADirectoryError):
            zip_directory(path)


class TestContainsPyFile:
    def test_nested_py(self, package_dir: Path) -> None:
        assert contains_py_file(package_dir)

    def test_no_py(self, tmp_path: Path) -> None:
        (tmp_path / "venv").mkdir()
        (tmp_path / "venv" / "bin.sh").write_text("")
        assert not contains_py_file(tmp_path / "venv")
