"""Tests for the diff engine."""

import pytest
from mock_storage import MemoryRemoteBackend

from pybucket.backends import Backends, LocalBackend
from pybucket.exceptions import BucketNotFoundError
from pybucket.filters import FileFilter
from pybucket.paths import LocalLocation, RemoteLocation
from pybucket.sync import DiffEngine, DiffReport, DiffType, SyncEngine, TransferEngine


@pytest.fixture
def remote():
    return MemoryRemoteBackend()


@pytest.fixture
def backends(remote):
    return Backends(local=LocalBackend(), remote=remote)


@pytest.fixture
def local_tree(tmp_path):
    root = tmp_path / "src"
    (root / "docs").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "docs" / "b.md").write_bytes(b"bravo!")
    return root


class TestCollect:
    """Tests for DiffEngine.collect."""

    def test_local_without_digest(self, backends, local_tree):
        result = DiffEngine(backends).collect(LocalLocation(str(local_tree)))
        assert sorted(result) == ["a.txt", "docs/b.md"]
        assert result["a.txt"].size == 5
        assert result["a.txt"].digest is None

    def test_local_with_digest(self, backends, local_tree):
        result = DiffEngine(backends).collect(
            LocalLocation(str(local_tree)), want_digest=True
        )
        assert result["a.txt"].digest == "2c1743a391305fbf367df8e4f069f9f9"

    def test_remote_digest_from_listing(self, backends, remote):
        remote.add("s3://bucket/p/a.txt", b"alpha")
        result = DiffEngine(backends).collect(RemoteLocation("bucket", "p/"), want_digest=True)
        assert result["a.txt"].digest == "2c1743a391305fbf367df8e4f069f9f9"

    def test_filter(self, backends, local_tree):
        result = DiffEngine(backends).collect(
            LocalLocation(str(local_tree)), FileFilter(exclude=["docs/*"])
        )
        assert list(result) == ["a.txt"]


class TestDiff:
    """Tests for DiffEngine.diff."""

    def test_copy_then_diff_identical(self, backends, local_tree):
        """Test that a copied tree shows no differences with content compare."""
        dest = RemoteLocation("bucket", "backup/")
        SyncEngine(backends, TransferEngine(backends)).sync(LocalLocation(str(local_tree)), dest)

        report = DiffEngine(backends).diff(
            LocalLocation(str(local_tree)), dest, compare_content=True
        )
        assert report.identical
        assert report.total == 0

    def test_same_size_mutation(self, backends, remote, local_tree):
        """Test that changed bytes of equal size are a content difference."""
        dest = RemoteLocation("bucket", "backup/")
        SyncEngine(backends, TransferEngine(backends)).sync(LocalLocation(str(local_tree)), dest)
        remote.add("s3://bucket/backup/a.txt", b"ALPHA")

        report = DiffEngine(backends).diff(
            LocalLocation(str(local_tree)), dest, compare_content=True
        )
        assert [(e.relative_key, e.diff_type) for e in report.entries] == [
            ("a.txt", DiffType.CONTENT_DIFFERS)
        ]

        size_only = DiffEngine(backends).diff(LocalLocation(str(local_tree)), dest)
        assert size_only.identical

    def test_report_counts(self, backends, remote, local_tree):
        remote.add("s3://bucket/d/a.txt", b"alpha-longer")
        remote.add("s3://bucket/d/extra.bin", b"x")

        report = DiffEngine(backends).diff(
            LocalLocation(str(local_tree)), RemoteLocation("bucket", "d")
        )
        counts = report.counts()
        assert counts[DiffType.ONLY_IN_SOURCE] == 1
        assert counts[DiffType.ONLY_IN_DEST] == 1
        assert counts[DiffType.SIZE_DIFFERS] == 1
        assert counts[DiffType.CONTENT_DIFFERS] == 0
        assert report.total == 3
        assert [e.relative_key for e in report.of_type(DiffType.ONLY_IN_SOURCE)] == [
            "docs/b.md"
        ]

    def test_empty_remote_prefix(self, backends, local_tree):
        report = DiffEngine(backends).diff(
            LocalLocation(str(local_tree)), RemoteLocation("bucket", "nothing/")
        )
        assert report.counts()[DiffType.ONLY_IN_SOURCE] == 2

    def test_missing_local_root(self, backends, tmp_path):
        with pytest.raises(BucketNotFoundError):
            DiffEngine(backends).diff(
                LocalLocation(str(tmp_path / "missing")), RemoteLocation("bucket")
            )

    def test_empty_report(self):
        report = DiffReport(LocalLocation("a"), LocalLocation("b"))
        assert report.identical
        assert set(report.counts().values()) == {0}
