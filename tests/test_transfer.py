"""Tests for single-object transfers."""

import io

import pytest
from mock_storage import MemoryRemoteBackend

from pybucket.backends import Backends, LocalBackend
from pybucket.exceptions import BucketNotFoundError, BucketTransportError
from pybucket.models import ChecksumOptions
from pybucket.paths import LocalLocation, RemoteLocation
from pybucket.sync import ProgressReader, TransferEngine, TransferResult


@pytest.fixture
def remote():
    return MemoryRemoteBackend()


@pytest.fixture
def backends(remote):
    return Backends(local=LocalBackend(), remote=remote)


@pytest.fixture
def engine(backends):
    return TransferEngine(backends, chunk_size=4, multipart_threshold=10)


class TestUpload:
    """Tests for local to remote copies."""

    def test_small_file_single_put(self, engine, remote, tmp_path):
        path = tmp_path / "small.txt"
        path.write_bytes(b"hello")
        result = engine.copy_one(LocalLocation(str(path)), RemoteLocation("bucket", "x.txt"))
        assert remote.get("s3://bucket/x.txt") == b"hello"
        assert result.method == "upload"
        assert result.size == 5
        assert not remote.uploads

    def test_checksum_algorithm_on_put(self, engine, remote, tmp_path):
        path = tmp_path / "small.txt"
        path.write_bytes(b"hello")
        engine.copy_one(
            LocalLocation(str(path)),
            RemoteLocation("bucket", "x.txt"),
            checksum=ChecksumOptions.parse("enabled", None),
        )
        assert remote.puts == [("s3://bucket/x.txt", "CRC32")]

    @pytest.mark.parametrize("size,expected_parts", [(10, 3), (12, 3), (13, 4)])
    def test_multipart_parts(self, engine, remote, tmp_path, size, expected_parts):
        """Test ceil(N/C) parts numbered in read order, last part N mod C."""
        data = bytes(range(size))
        path = tmp_path / "big.bin"
        path.write_bytes(data)

        result = engine.copy_one(LocalLocation(str(path)), RemoteLocation("bucket", "big.bin"))

        upload = remote.uploads["upload-1"]
        assert result.method == "multipart"
        assert result.parts == expected_parts
        assert upload["completed_order"] == list(range(1, expected_parts + 1))
        part_sizes = [len(upload["parts"][n]) for n in upload["completed_order"]]
        assert part_sizes[:-1] == [4] * (expected_parts - 1)
        assert part_sizes[-1] == (size % 4 or 4)
        assert remote.get("s3://bucket/big.bin") == data

    def test_empty_file_never_multipart(self, backends, remote, tmp_path):
        engine = TransferEngine(backends, chunk_size=4, multipart_threshold=0)
        path = tmp_path / "empty"
        path.write_bytes(b"")
        result = engine.copy_one(LocalLocation(str(path)), RemoteLocation("bucket", "empty"))
        assert result.method == "upload"
        assert remote.get("s3://bucket/empty") == b""

    def test_part_failure_leaves_upload_open(self, engine, remote, tmp_path):
        """Test that a failing part surfaces and the session is not aborted."""
        remote.fail_part = 2
        path = tmp_path / "big.bin"
        path.write_bytes(b"x" * 12)

        with pytest.raises(BucketTransportError, match="part 2"):
            engine.copy_one(LocalLocation(str(path)), RemoteLocation("bucket", "big.bin"))

        upload = remote.uploads["upload-1"]
        assert upload["aborted"] is False
        assert upload["completed_order"] is None
        assert not remote.has("s3://bucket/big.bin")

    def test_part_failure_aborts_on_request(self, backends, remote, tmp_path):
        remote.fail_part = 1
        engine = TransferEngine(
            backends, chunk_size=4, multipart_threshold=10, abort_on_failure=True
        )
        path = tmp_path / "big.bin"
        path.write_bytes(b"x" * 12)

        with pytest.raises(BucketTransportError):
            engine.copy_one(LocalLocation(str(path)), RemoteLocation("bucket", "big.bin"))
        assert remote.uploads["upload-1"]["aborted"] is True

    def test_progress_per_part(self, engine, tmp_path):
        path = tmp_path / "big.bin"
        path.write_bytes(b"x" * 10)
        calls = []
        engine.copy_one(
            LocalLocation(str(path)),
            RemoteLocation("bucket", "big.bin"),
            progress_callback=lambda done, total: calls.append((done, total)),
        )
        assert calls == [(4, 10), (8, 10), (10, 10)]

    def test_missing_source(self, engine, tmp_path):
        with pytest.raises(BucketNotFoundError):
            engine.copy_one(
                LocalLocation(str(tmp_path / "nope")), RemoteLocation("bucket", "k")
            )


class TestDownloadAndCopy:
    """Tests for the other backend combinations."""

    def test_download(self, engine, remote, tmp_path):
        remote.add("s3://bucket/dir/file.txt", b"remote data")
        dest = tmp_path / "out" / "file.txt"
        result = engine.copy_one(
            RemoteLocation("bucket", "dir/file.txt"), LocalLocation(str(dest))
        )
        assert dest.read_bytes() == b"remote data"
        assert result.method == "download"
        assert result.size == 11

    def test_download_missing(self, engine, tmp_path):
        with pytest.raises(BucketNotFoundError):
            engine.copy_one(RemoteLocation("bucket", "nope"), LocalLocation(str(tmp_path / "x")))
        assert not (tmp_path / "x").exists()

    def test_remote_copy(self, engine, remote):
        remote.add("s3://bucket/a", b"abc")
        result = engine.copy_one(RemoteLocation("bucket", "a"), RemoteLocation("other", "b"))
        assert remote.get("s3://other/b") == b"abc"
        assert result.method == "server-side copy"
        assert result.message == "Copied: s3://bucket/a -> s3://other/b"

    def test_local_copy(self, engine, tmp_path):
        source = tmp_path / "a.txt"
        source.write_bytes(b"local")
        dest = tmp_path / "b.txt"
        result = engine.copy_one(LocalLocation(str(source)), LocalLocation(str(dest)))
        assert dest.read_bytes() == b"local"
        assert result.method == "copy"


class TestResolveDestination:
    """Tests for destination expansion."""

    def test_remote_prefix(self, engine):
        source = LocalLocation("/data/file.txt")
        assert engine.resolve_destination(source, RemoteLocation("b", "dir/")) == (
            RemoteLocation("b", "dir/file.txt")
        )
        assert engine.resolve_destination(source, RemoteLocation("b")) == (
            RemoteLocation("b", "file.txt")
        )

    def test_remote_key_kept(self, engine):
        dest = RemoteLocation("b", "renamed.txt")
        assert engine.resolve_destination(LocalLocation("/data/file.txt"), dest) == dest

    def test_local_directory(self, engine, tmp_path):
        result = engine.resolve_destination(
            RemoteLocation("b", "k/obj.bin"), LocalLocation(str(tmp_path))
        )
        assert result == LocalLocation(str(tmp_path / "obj.bin"))

    def test_local_trailing_separator(self, engine, tmp_path):
        dest = LocalLocation(str(tmp_path / "new") + "/")
        result = engine.resolve_destination(RemoteLocation("b", "obj.bin"), dest)
        assert result.path.endswith("obj.bin")

    def test_upload_into_prefix(self, engine, remote, tmp_path):
        path = tmp_path / "file.txt"
        path.write_bytes(b"x")
        result = engine.copy_one(LocalLocation(str(path)), RemoteLocation("bucket", "dir/"))
        assert result.dest == RemoteLocation("bucket", "dir/file.txt")
        assert remote.has("s3://bucket/dir/file.txt")


class TestTransferHelpers:
    """Tests for ProgressReader and TransferResult."""

    def test_progress_reader(self):
        calls = []
        reader = ProgressReader(io.BytesIO(b"abcdef"), 6, lambda d, t: calls.append(d))
        reader.read(4)
        reader.read(4)
        reader.read(4)
        assert reader.bytes_read == 6
        assert calls == [4, 6]

    def test_result_messages(self):
        source = LocalLocation("a.txt")
        dest = RemoteLocation("b", "a.txt")
        assert TransferResult(source, dest, 1, "multipart").message == (
            "Uploaded: a.txt -> s3://b/a.txt"
        )
        assert TransferResult(dest, source, 1, "download").verb == "Downloaded"
