"""Tests for metadata comparison."""

import pytest

from pybucket.models import ObjectMetadata
from pybucket.sync import DiffType, FileComparator


def meta(key, size, digest=None):
    return ObjectMetadata(relative_key=key, size=size, digest=digest)


@pytest.fixture
def source():
    return {
        "same.txt": meta("same.txt", 10, "aaa"),
        "only-src.txt": meta("only-src.txt", 1, "bbb"),
        "grown.txt": meta("grown.txt", 5, "ccc"),
        "edited.txt": meta("edited.txt", 7, "ddd"),
    }


@pytest.fixture
def dest():
    return {
        "same.txt": meta("same.txt", 10, "aaa"),
        "only-dst.txt": meta("only-dst.txt", 2, "eee"),
        "grown.txt": meta("grown.txt", 6, "ccc"),
        "edited.txt": meta("edited.txt", 7, "fff"),
    }


class TestFileComparator:
    """Tests for FileComparator.compare_files."""

    def test_size_only(self, source, dest):
        """Test that digests are ignored without content comparison."""
        entries = FileComparator().compare_files(source, dest)
        assert [(e.relative_key, e.diff_type) for e in entries] == [
            ("grown.txt", DiffType.SIZE_DIFFERS),
            ("only-dst.txt", DiffType.ONLY_IN_DEST),
            ("only-src.txt", DiffType.ONLY_IN_SOURCE),
        ]

    def test_content_compare(self, source, dest):
        entries = FileComparator(content_compare=True).compare_files(source, dest)
        assert [(e.relative_key, e.diff_type) for e in entries] == [
            ("edited.txt", DiffType.CONTENT_DIFFERS),
            ("grown.txt", DiffType.SIZE_DIFFERS),
            ("only-dst.txt", DiffType.ONLY_IN_DEST),
            ("only-src.txt", DiffType.ONLY_IN_SOURCE),
        ]

    def test_swapping_sides(self, source, dest):
        """Test that only-in categories swap and the others stay put."""
        comparator = FileComparator(content_compare=True)
        forward = {e.relative_key: e.diff_type for e in comparator.compare_files(source, dest)}
        backward = {e.relative_key: e.diff_type for e in comparator.compare_files(dest, source)}

        swap = {
            DiffType.ONLY_IN_SOURCE: DiffType.ONLY_IN_DEST,
            DiffType.ONLY_IN_DEST: DiffType.ONLY_IN_SOURCE,
            DiffType.SIZE_DIFFERS: DiffType.SIZE_DIFFERS,
            DiffType.CONTENT_DIFFERS: DiffType.CONTENT_DIFFERS,
        }
        assert backward == {key: swap[value] for key, value in forward.items()}

    def test_one_sided_digest_skipped(self):
        """Test that a missing digest on either side skips content comparison."""
        comparator = FileComparator(content_compare=True)
        assert comparator.compare_files({"k": meta("k", 3, "x")}, {"k": meta("k", 3)}) == []
        assert comparator.compare_files({"k": meta("k", 3)}, {"k": meta("k", 3, "y")}) == []

    def test_size_differs_never_checks_digest(self):
        comparator = FileComparator(content_compare=True)
        entries = comparator.compare_files({"k": meta("k", 3, "x")}, {"k": meta("k", 4, "y")})
        assert [e.diff_type for e in entries] == [DiffType.SIZE_DIFFERS]

    def test_entries_carry_metadata(self, source, dest):
        entries = FileComparator().compare_files(source, dest)
        grown = entries[0]
        assert grown.source.size == 5
        assert grown.dest.size == 6

    def test_sorted_regardless_of_insertion_order(self):
        src = {"b": meta("b", 1), "a": meta("a", 1), "c": meta("c", 1)}
        entries = FileComparator().compare_files(src, {})
        assert [e.relative_key for e in entries] == ["a", "b", "c"]

    def test_empty(self):
        assert FileComparator().compare_files({}, {}) == []
