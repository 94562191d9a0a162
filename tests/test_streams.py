"""Tests for cat and cmp."""

import io

import pytest
from mock_storage import MemoryRemoteBackend

from pybucket.backends import Backends, LocalBackend
from pybucket.exceptions import BucketNotFoundError, BucketValidationError
from pybucket.paths import LocalLocation, RemoteLocation
from pybucket.ranges import ByteRange
from pybucket.streams import CatEngine, CmpEngine, CmpResult


@pytest.fixture
def remote():
    return MemoryRemoteBackend()


@pytest.fixture
def backends(remote):
    return Backends(local=LocalBackend(), remote=remote)


class TestCatEngine:
    """Tests for CatEngine.cat."""

    def test_whole_object(self, backends, remote):
        remote.add("s3://bucket/k", b"hello world")
        sink = io.BytesIO()
        written = CatEngine(backends).cat(RemoteLocation("bucket", "k"), sink=sink)
        assert written == 11
        assert sink.getvalue() == b"hello world"

    def test_range_in_small_chunks(self, backends, remote):
        remote.add("s3://bucket/k", b"0123456789")
        sink = io.BytesIO()
        written = CatEngine(backends, chunk_size=2).cat(
            RemoteLocation("bucket", "k"), ByteRange(start=3, length=5), sink
        )
        assert written == 5
        assert sink.getvalue() == b"34567"

    def test_range_past_end_stops_at_eof(self, backends, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"abc")
        sink = io.BytesIO()
        written = CatEngine(backends).cat(
            LocalLocation(str(path)), ByteRange(start=1, length=100), sink
        )
        assert written == 2
        assert sink.getvalue() == b"bc"

    def test_requires_key(self, backends):
        with pytest.raises(BucketValidationError, match="bucket"):
            CatEngine(backends).cat(RemoteLocation("bucket"), sink=io.BytesIO())

    def test_missing(self, backends):
        with pytest.raises(BucketNotFoundError):
            CatEngine(backends).cat(RemoteLocation("bucket", "nope"), sink=io.BytesIO())


class TestCmpEngine:
    """Tests for CmpEngine.compare."""

    def test_identical(self, backends, remote, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"same bytes")
        remote.add("s3://bucket/f", b"same bytes")
        result = CmpEngine(backends).compare(
            LocalLocation(str(path)), RemoteLocation("bucket", "f")
        )
        assert result.identical
        assert result.describe() == ""

    def test_first_difference_stops_reading(self, backends, remote):
        """Test that a difference at byte 6 is reported without reading further."""
        remote.add("s3://bucket/left", b"abcdeXghij")
        remote.add("s3://bucket/right", b"abcdeYghij")

        result = CmpEngine(backends, chunk_size=1).compare(
            RemoteLocation("bucket", "left"), RemoteLocation("bucket", "right")
        )

        assert not result.identical
        assert result.offset == 6
        assert result.line == 1
        assert remote.bytes_served == 12
        assert result.describe() == (
            "s3://bucket/left s3://bucket/right differ: byte 6, line 1"
        )

    def test_line_count_across_chunks(self, backends, remote):
        remote.add("s3://bucket/left", b"a\nb\nc\nd")
        remote.add("s3://bucket/right", b"a\nb\nc\nX")
        result = CmpEngine(backends, chunk_size=3).compare(
            RemoteLocation("bucket", "left"), RemoteLocation("bucket", "right")
        )
        assert result.offset == 7
        assert result.line == 4

    def test_shorter_side(self, backends, remote):
        remote.add("s3://bucket/short", b"abc")
        remote.add("s3://bucket/long", b"abcdef")
        result = CmpEngine(backends).compare(
            RemoteLocation("bucket", "short"), RemoteLocation("bucket", "long")
        )
        assert not result.identical
        assert result.shorter == RemoteLocation("bucket", "short")
        assert result.describe() == "cmp: EOF on s3://bucket/short"

    def test_range_window(self, backends, remote):
        """Test that only the requested window is compared."""
        remote.add("s3://bucket/left", b"XXsameYY")
        remote.add("s3://bucket/right", b"ZZsameWWWW")
        result = CmpEngine(backends).compare(
            RemoteLocation("bucket", "left"),
            RemoteLocation("bucket", "right"),
            ByteRange(start=2, length=4),
        )
        assert result.identical

    def test_range_offset_is_absolute(self, backends, remote):
        remote.add("s3://bucket/left", b"0123456789")
        remote.add("s3://bucket/right", b"01234567X9")
        result = CmpEngine(backends).compare(
            RemoteLocation("bucket", "left"),
            RemoteLocation("bucket", "right"),
            ByteRange(start=5, length=None),
        )
        assert result.offset == 9

    def test_requires_key(self, backends):
        with pytest.raises(BucketValidationError):
            CmpEngine(backends).compare(RemoteLocation("bucket"), RemoteLocation("bucket", "k"))

    def test_result_defaults(self):
        result = CmpResult(LocalLocation("a"), LocalLocation("b"))
        assert result.identical
        assert result.offset is None
