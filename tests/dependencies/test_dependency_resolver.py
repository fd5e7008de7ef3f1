"""Tests for dependency status resolution."""

from __future__ import annotations

import pytest
from fakes import make_session

from livyctl.dependencies.resolver import (
    infer_category,
    is_remote_locator,
    pending_entries,
    resolve_entries,
    with_locator,
    without_locator,
)
from livyctl.shared.enums import DependencyCategory, DependencyStatus
from livyctl.shared.models import DependencyEntry

JARS = DependencyCategory.JARS
PY_FILES = DependencyCategory.PY_FILES


class TestResolveEntries:
    def test_no_dependencies(self) -> None:
        assert resolve_entries({}, make_session(1)) == []

    def test_no_session_is_pending(self) -> None:
        entries = resolve_entries({JARS: ["x.jar"]}, None)
        assert entries == [DependencyEntry(locator="x.jar", category=JARS, status=DependencyStatus.PENDING)]

    def test_active_when_session_has_it(self) -> None:
        entries = resolve_entries({JARS: ["x.jar"]}, make_session(1, jars=["x.jar"]))
        assert entries == [DependencyEntry(locator="x.jar", category=JARS, status=DependencyStatus.ACTIVE)]

    def test_category_must_match(self) -> None:
        entries = resolve_entries({PY_FILES: ["x.jar"]}, make_session(1, jars=["x.jar"]))
        assert entries[0].status is DependencyStatus.PENDING

    def test_matching_snapshot_all_active(self) -> None:
        desired = {
            PY_FILES: ["hdfs:///a.py"],
            JARS: ["hdfs:///b.jar", "hdfs:///c.jar"],
            DependencyCategory.FILES: ["f.txt"],
            DependencyCategory.ARCHIVES: ["env.zip#env"],
        }
        session = make_session(
            1,
            pyFiles=desired[PY_FILES],
            jars=desired[JARS],
            files=desired[DependencyCategory.FILES],
            archives=desired[DependencyCategory.ARCHIVES],
        )

        entries = resolve_entries(desired, session)

        assert len(entries) == 5
        assert all(e.status is DependencyStatus.ACTIVE for e in entries)
        assert [e.category for e in entries] == [PY_FILES, JARS, JARS, DependencyCategory.FILES, DependencyCategory.ARCHIVES]

    def test_is_pure(self) -> None:
        desired = {JARS: ["x.jar", "y.jar"]}
        session = make_session(1, jars=["y.jar"])

        first = resolve_entries(desired, session)

        assert resolve_entries(desired, session) == first
        assert desired == {JARS: ["x.jar", "y.jar"]}

    def test_pending_entries(self) -> None:
        pending = pending_entries({JARS: ["x.jar", "y.jar"]}, make_session(1, jars=["y.jar"]))
        assert [e.locator for e in pending] == ["x.jar"]


class TestInferCategory:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("lib.jar", JARS),
            ("LIB.JAR", JARS),
            ("job.py", PY_FILES),
            ("pkg.egg", PY_FILES),
            ("deps.zip", DependencyCategory.FILES),
            ("data.tar.gz", DependencyCategory.FILES),
            ("README", DependencyCategory.FILES),
        ],
    )
    def test_by_extension(self, filename: str, expected: DependencyCategory) -> None:
        assert infer_category(filename) is expected


class TestEdits:
    def test_with_locator_copies_and_dedupes(self) -> None:
        desired = {JARS: ["a.jar"]}

        updated = with_locator(with_locator(desired, JARS, "b.jar"), JARS, "b.jar")

        assert updated[JARS] == ["a.jar", "b.jar"]
        assert updated[PY_FILES] == []
        assert desired == {JARS: ["a.jar"]}

    def test_without_locator(self) -> None:
        updated = without_locator({JARS: ["a.jar", "b.jar"]}, JARS, "a.jar")
        assert updated[JARS] == ["b.jar"]

    def test_without_missing_locator(self) -> None:
        assert without_locator({JARS: ["a.jar"]}, JARS, "zzz")[JARS] == ["a.jar"]


def test_is_remote_locator() -> None:
    assert is_remote_locator("hdfs:///x.py")
    assert is_remote_locator("webhdfs://nn/x.py")
    assert not is_remote_locator("s3://bucket/x.py")
    assert not is_remote_locator("/local/x.py")
