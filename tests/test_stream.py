"""Tests for missive.http.stream — capabilities, positioning and conversion."""

import io
import os
from pathlib import Path

import pytest

from missive.errors import InvalidArgumentError, OperationError
from missive.http.stream import Stream


@pytest.fixture
def detached() -> Stream:
    stream = Stream.from_bytes(b"data")
    stream.detach()
    return stream


class TestConstruction:
    def test_temporary_is_read_write_seekable(self) -> None:
        stream = Stream.temporary()
        assert stream.readable
        assert stream.writable
        assert stream.seekable
        assert stream.size == 0
        assert not stream.closed

    def test_from_bytes(self) -> None:
        stream = Stream.from_bytes(b"data")
        assert stream.size == 4
        assert stream.tell() == 0
        assert not stream.eof()

    @pytest.mark.parametrize("handle", [object(), "path/to/file", 42])
    def test_rejects_non_file_objects(self, handle: object) -> None:
        with pytest.raises(InvalidArgumentError, match="Stream must wrap a file object"):
            Stream(handle)  # type: ignore[arg-type]

    def test_rejects_text_mode_handles(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("text")
        with path.open("r") as handle, pytest.raises(InvalidArgumentError, match="Stream must wrap a file object"):
            Stream(handle)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgumentError, match="Stream must wrap a file object"):
            Stream(io.StringIO("text"))  # type: ignore[arg-type]

    def test_bytesio_mode_is_inferred(self) -> None:
        stream = Stream(io.BytesIO(b"abc"))
        assert stream.readable
        assert stream.writable
        assert stream.get_metadata("mode") == "r+"

    def test_read_only_file(self, tmp_path: Path) -> None:
        path = tmp_path / "data.bin"
        path.write_bytes(b"data")
        with Stream(open(path, "rb")) as stream:
            assert stream.readable
            assert not stream.writable
            assert stream.get_metadata("uri") == str(path)
            with pytest.raises(OperationError, match="Unable to write to stream"):
                stream.write(b"more")

    def test_write_only_file(self, tmp_path: Path) -> None:
        with Stream(open(tmp_path / "out.bin", "wb")) as stream:
            assert stream.writable
            assert not stream.readable
            with pytest.raises(OperationError, match="Cannot read from non-readable stream"):
                stream.read(1)

    def test_append_plus_file(self, tmp_path: Path) -> None:
        with Stream(open(tmp_path / "log.bin", "a+b")) as stream:
            assert stream.readable
            assert stream.writable


class TestMetadata:
    def test_all_metadata(self) -> None:
        meta = Stream.temporary().get_metadata()
        assert meta["mode"] == "w+b"
        assert meta["seekable"] is True
        assert meta["closed"] is False

    def test_unknown_key(self) -> None:
        assert Stream.temporary().get_metadata("nope") is None

    def test_detached_has_no_metadata(self, detached: Stream) -> None:
        assert detached.get_metadata() == {}
        assert detached.get_metadata("mode") is None


class TestSizeAndPosition:
    def test_size_is_consistent_after_writes(self) -> None:
        stream = Stream.temporary()
        assert stream.write(b"foo") == 3
        assert stream.size == 3
        assert stream.write("test") == 4
        assert stream.size == 7
        assert stream.size == 7

    def test_tell_and_seek(self) -> None:
        stream = Stream.from_bytes(b"abcdef")
        assert stream.tell() == 0
        stream.seek(3)
        assert stream.tell() == 3
        stream.seek(-2, os.SEEK_CUR)
        assert stream.tell() == 1
        stream.seek(-1, os.SEEK_END)
        assert stream.read(1) == b"f"

    def test_rewind(self) -> None:
        stream = Stream.from_bytes(b"abc")
        stream.read(2)
        stream.rewind()
        assert stream.tell() == 0

    def test_eof(self) -> None:
        stream = Stream.from_bytes(b"data")
        assert not stream.eof()
        stream.read(4)
        assert stream.eof()

    def test_size_of_file(self, tmp_path: Path) -> None:
        path = tmp_path / "f.bin"
        path.write_bytes(b"x" * 10)
        with Stream(open(path, "rb")) as stream:
            assert stream.size == 10
            assert stream.tell() == 0


class TestReadWrite:
    def test_str_is_utf8_encoded(self) -> None:
        stream = Stream.temporary()
        assert stream.write("é") == 2
        assert bytes(stream) == "é".encode()

    def test_get_contents_from_position(self) -> None:
        stream = Stream.from_bytes(b"data")
        assert stream.get_contents() == b"data"
        assert stream.get_contents() == b""
        stream.seek(2)
        assert stream.get_contents() == b"ta"

    def test_iter_chunks(self) -> None:
        stream = Stream.from_bytes(b"abcdefg")
        assert list(stream.iter_chunks(3)) == [b"abc", b"def", b"g"]

    def test_non_seekable_eof_is_tracked_by_reads(self) -> None:
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"abc")
        os.close(write_fd)
        with Stream(open(read_fd, "rb", buffering=0)) as stream:
            assert not stream.seekable
            assert not stream.eof()
            assert stream.read(10) == b"abc"
            assert stream.eof()
            with pytest.raises(OperationError, match="Unable to seek"):
                stream.seek(0)


class TestConversion:
    def test_bytes_reads_from_start(self) -> None:
        stream = Stream.from_bytes(b"data")
        stream.read(2)
        assert bytes(stream) == b"data"
        assert bytes(stream) == b"data"

    def test_str(self) -> None:
        assert str(Stream.from_bytes(b"data")) == "data"

    def test_str_replaces_invalid_utf8(self) -> None:
        assert str(Stream.from_bytes(b"\xff")) == "�"

    def test_detached_converts_to_empty(self, detached: Stream) -> None:
        assert bytes(detached) == b""
        assert str(detached) == ""

    def test_write_only_converts_to_empty(self, tmp_path: Path) -> None:
        with Stream(open(tmp_path / "w.bin", "wb")) as stream:
            assert bytes(stream) == b""


class TestLifecycle:
    def test_close(self) -> None:
        handle = io.BytesIO(b"data")
        stream = Stream(handle)
        stream.close()
        assert handle.closed
        assert stream.closed
        assert not stream.readable
        assert not stream.writable
        assert not stream.seekable
        assert stream.size is None
        assert stream.get_metadata() == {}

    def test_close_twice(self) -> None:
        stream = Stream.temporary()
        stream.close()
        stream.close()
        assert stream.closed

    def test_detach_returns_handle_open(self) -> None:
        handle = io.BytesIO(b"data")
        stream = Stream(handle)
        assert stream.detach() is handle
        assert not handle.closed
        assert stream.detach() is None

    def test_operations_after_detach(self, detached: Stream) -> None:
        with pytest.raises(OperationError, match="Unable to determine stream position"):
            detached.tell()
        with pytest.raises(OperationError, match=f"Unable to seek to stream position 0 with whence {os.SEEK_SET}"):
            detached.seek(0)
        with pytest.raises(OperationError, match="Unable to write to stream"):
            detached.write(b"x")
        with pytest.raises(OperationError, match="Cannot read from non-readable stream"):
            detached.read(1)
        with pytest.raises(OperationError, match="Unable to get stream contents"):
            detached.get_contents()
        assert detached.eof()

    def test_context_manager_closes(self) -> None:
        handle = io.BytesIO()
        with Stream(handle) as stream:
            stream.write(b"x")
        assert handle.closed
