"""Tests for missive.http.uploads — UploadedFile and upload-spec normalization."""

import io
import re
from pathlib import Path

import pytest

from missive.errors import InvalidArgumentError, OperationError
from missive.http.stream import Stream
from missive.http.uploads import UploadedFile, UploadError, normalize_files, validate_uploaded_files


def _stream_upload(content: bytes = b"test upload file") -> tuple[UploadedFile, Stream]:
    stream = Stream.temporary()
    stream.write(content)
    return UploadedFile(stream, stream.size, UploadError.OK, "filename.txt", "text/plain"), stream


class TestConstruction:
    def test_with_path(self, tmp_path: Path) -> None:
        upload = UploadedFile(str(tmp_path / "a.txt"), 0, UploadError.OK, "filename.txt", "text/plain")
        assert upload.client_filename == "filename.txt"
        assert upload.client_media_type == "text/plain"
        assert upload.size == 0
        assert upload.error == UploadError.OK
        assert not upload.moved

    def test_with_file_object(self) -> None:
        upload = UploadedFile(io.BytesIO(b"abc"), 3, UploadError.OK)
        assert isinstance(upload.get_stream(), Stream)
        assert bytes(upload.get_stream()) == b"abc"

    def test_with_stream(self) -> None:
        upload, stream = _stream_upload()
        assert upload.get_stream() is stream

    @pytest.mark.parametrize("status", [-1, 9])
    def test_invalid_error_status(self, status: int) -> None:
        with pytest.raises(InvalidArgumentError, match="Invalid error status for UploadedFile"):
            UploadedFile("file.txt", 0, status)

    @pytest.mark.parametrize("source", [None, True, False, 1, 1.1, ["filename"], object()])
    def test_invalid_source(self, source: object) -> None:
        with pytest.raises(InvalidArgumentError, match="Invalid stream or file provided for UploadedFile"):
            UploadedFile(source, 0, UploadError.OK)

    def test_source_ignored_on_error(self) -> None:
        upload = UploadedFile(None, 0, UploadError.NO_FILE)
        assert upload.error == UploadError.NO_FILE

    def test_equality(self) -> None:
        assert UploadedFile("/tmp/x", 1, 0, "a", "b") == UploadedFile("/tmp/x", 1, 0, "a", "b")
        assert UploadedFile("/tmp/x", 1, 0, "a", "b") != UploadedFile("/tmp/y", 1, 0, "a", "b")


class TestGetStream:
    def test_path_backed(self, tmp_path: Path) -> None:
        path = tmp_path / "upload.txt"
        path.write_bytes(b"content")
        upload = UploadedFile(str(path), 7, UploadError.OK)
        with upload.get_stream() as stream:
            assert stream.readable
            assert not stream.writable
            assert stream.get_contents() == b"content"

    def test_missing_file(self, tmp_path: Path) -> None:
        upload = UploadedFile(str(tmp_path / "gone.txt"), 0, UploadError.OK)
        with pytest.raises(OperationError):
            upload.get_stream()

    @pytest.mark.parametrize("status", [1, 2, 3, 4, 6, 7, 8])
    def test_error_status(self, status: int) -> None:
        upload = UploadedFile("file.txt", 0, status)
        with pytest.raises(OperationError, match="Cannot retrieve stream due to upload error"):
            upload.get_stream()


class TestMoveTo:
    def test_stream_backed(self, tmp_path: Path) -> None:
        upload, stream = _stream_upload()
        target = tmp_path / "moved.txt"
        upload.move_to(str(target))
        assert target.read_bytes() == b"test upload file"
        assert upload.moved

    def test_path_backed(self, tmp_path: Path) -> None:
        source = tmp_path / "source.txt"
        source.write_bytes(b"payload")
        target = tmp_path / "target.txt"
        upload = UploadedFile(str(source), 7, UploadError.OK, "source.txt", "text/plain")
        upload.move_to(target)
        assert target.read_bytes() == b"payload"
        assert not source.exists()

    @pytest.mark.parametrize("target", [None, True, False, 1, 1.1, "", ["filename"], object()])
    def test_invalid_target(self, target: object) -> None:
        upload, _ = _stream_upload()
        with pytest.raises(
            InvalidArgumentError,
            match="Invalid path provided for move operation; must be a non-empty string",
        ):
            upload.move_to(target)  # type: ignore[arg-type]

    def test_move_more_than_once(self, tmp_path: Path) -> None:
        upload, _ = _stream_upload()
        upload.move_to(tmp_path / "once.txt")
        with pytest.raises(OperationError, match="Cannot retrieve stream after it has already been moved"):
            upload.move_to(tmp_path / "twice.txt")

    def test_get_stream_after_move(self, tmp_path: Path) -> None:
        upload, _ = _stream_upload()
        upload.move_to(tmp_path / "once.txt")
        with pytest.raises(OperationError, match="already been moved"):
            upload.get_stream()

    def test_move_with_error_status(self, tmp_path: Path) -> None:
        upload = UploadedFile("file.txt", 0, UploadError.PARTIAL)
        with pytest.raises(OperationError, match="due to upload error"):
            upload.move_to(tmp_path / "x.txt")

    def test_failed_move(self, tmp_path: Path) -> None:
        upload = UploadedFile(str(tmp_path / "missing.txt"), 0, UploadError.OK)
        target = tmp_path / "out.txt"
        with pytest.raises(OperationError, match=re.escape(f'Uploaded file could not be moved to "{target}"')):
            upload.move_to(target)
        assert not upload.moved


class TestNormalizeFiles:
    def test_single_file(self) -> None:
        files = normalize_files(
            {
                "file": {
                    "name": "MyFile.txt",
                    "type": "text/plain",
                    "tmp_name": "/tmp/php/php1h4j1o",
                    "error": "0",
                    "size": "123",
                }
            }
        )
        assert files == {"file": UploadedFile("/tmp/php/php1h4j1o", 123, UploadError.OK, "MyFile.txt", "text/plain")}

    def test_empty_file(self) -> None:
        files = normalize_files({"image_file": {"name": "", "type": "", "tmp_name": "", "error": "4", "size": "0"}})
        assert files["image_file"].error == UploadError.NO_FILE

    def test_already_converted(self) -> None:
        upload = UploadedFile("/tmp/a", 1, UploadError.OK)
        assert normalize_files({"file": upload})["file"] is upload

    def test_parallel_arrays(self) -> None:
        files = normalize_files(
            {
                "docs": {
                    "name": ["a.txt", "b.png"],
                    "type": ["text/plain", "image/png"],
                    "tmp_name": ["/tmp/a", "/tmp/b"],
                    "error": ["0", "0"],
                    "size": ["123", "7349"],
                }
            }
        )
        assert files == {
            "docs": {
                0: UploadedFile("/tmp/a", 123, 0, "a.txt", "text/plain"),
                1: UploadedFile("/tmp/b", 7349, 0, "b.png", "image/png"),
            }
        }

    def test_deeply_nested_parallel_arrays(self) -> None:
        files = normalize_files(
            {
                "form": {
                    "name": {"avatar": {"big": "a.png"}},
                    "type": {"avatar": {"big": "image/png"}},
                    "tmp_name": {"avatar": {"big": "/tmp/a"}},
                    "error": {"avatar": {"big": 0}},
                    "size": {"avatar": {"big": 10}},
                }
            }
        )
        assert files["form"]["avatar"]["big"] == UploadedFile("/tmp/a", 10, 0, "a.png", "image/png")

    def test_plain_nesting(self) -> None:
        spec = {"tmp_name": "/tmp/a", "size": 1, "error": 0, "name": "a", "type": "t"}
        files = normalize_files({"group": {"one": spec, "two": [spec]}})
        assert files["group"]["one"] == UploadedFile("/tmp/a", 1, 0, "a", "t")
        assert files["group"]["two"][0] == UploadedFile("/tmp/a", 1, 0, "a", "t")

    def test_invalid_value(self) -> None:
        with pytest.raises(InvalidArgumentError, match="Invalid value in files specification"):
            normalize_files({"file": "not a spec"})

    def test_mismatched_parallel_keys(self) -> None:
        spec = {
            "name": ["a", "b"],
            "type": ["t"],
            "tmp_name": ["/tmp/a", "/tmp/b"],
            "error": [0, 0],
            "size": [1, 2],
        }
        with pytest.raises(InvalidArgumentError, match="Mismatched keys in nested files specification"):
            normalize_files({"docs": spec})

    @pytest.mark.parametrize(
        "spec",
        [
            {"tmp_name": "/tmp/a", "size": "abc", "error": 0},
            {"tmp_name": "/tmp/a", "size": 1, "error": "bad"},
            {"tmp_name": "/tmp/a", "size": [1], "error": 0},
        ],
    )
    def test_non_numeric_size_or_error(self, spec: dict[str, object]) -> None:
        with pytest.raises(InvalidArgumentError, match="Invalid value in files specification"):
            normalize_files({"file": spec})

    def test_scalar_column_beside_nested_tmp_name(self) -> None:
        spec = {"tmp_name": ["/tmp/a"], "size": 5, "error": [0], "name": ["a"], "type": ["t"]}
        with pytest.raises(InvalidArgumentError, match="Invalid value in files specification"):
            normalize_files({"file": spec})


class TestValidateUploadedFiles:
    def test_valid_tree(self) -> None:
        upload = UploadedFile("/tmp/a", 1, UploadError.OK)
        validate_uploaded_files({"a": upload, "b": [upload, {"c": upload}]})

    def test_empty_tree(self) -> None:
        validate_uploaded_files({})

    @pytest.mark.parametrize("leaf", ["path", 1, None, b"bytes"])
    def test_invalid_leaf(self, leaf: object) -> None:
        with pytest.raises(InvalidArgumentError, match="Invalid leaf in uploaded files tree"):
            validate_uploaded_files({"a": leaf})
