"""Uploaded files and upload-spec normalization.

``UploadedFile`` wraps one upload: either a file on disk (a path) or a
``Stream``. Content is only reachable while the upload succeeded and has
not been moved yet.

``normalize_files`` turns a CGI-style upload description (``tmp_name`` /
``size`` / ``error`` / ``name`` / ``type``, possibly as parallel nested
arrays) into a tree of ``UploadedFile`` leaves.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping
from enum import IntEnum
from typing import Any

from missive.config import DEFAULT_CONFIG
from missive.errors import InvalidArgumentError, OperationError
from missive.http.stream import Stream

logger = logging.getLogger("missive.uploads")

_SPEC_KEYS = ("tmp_name", "size", "error", "name", "type")


class UploadError(IntEnum):
    """Upload status codes, numbered the way CGI upload handlers report them."""

    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


class UploadedFile:
    """A file received as part of a request.

    Example::

        upload = request.uploaded_files["avatar"]
        if upload.error is UploadError.OK:
            upload.move_to("/srv/avatars/42.png")
    """

    __slots__ = ("_file", "_stream", "_size", "_error", "_client_filename", "_client_media_type", "_moved")

    def __init__(
        self,
        stream_or_file: str | os.PathLike[str] | Stream | Any,
        size: int | None,
        error: int,
        client_filename: str | None = None,
        client_media_type: str | None = None,
    ) -> None:
        if not isinstance(error, int) or not 0 <= error <= 8:
            raise InvalidArgumentError("Invalid error status for UploadedFile")

        self._error = error
        self._size = size
        self._client_filename = client_filename
        self._client_media_type = client_media_type
        self._file: str | None = None
        self._stream: Stream | None = None
        self._moved = False

        if error == UploadError.OK:
            self._set_source(stream_or_file)

    def _set_source(self, source: Any) -> None:
        if isinstance(source, (str, os.PathLike)):
            self._file = os.fspath(source)
        elif isinstance(source, Stream):
            self._stream = source
        elif hasattr(source, "read") or hasattr(source, "write"):
            self._stream = Stream(source)
        else:
            raise InvalidArgumentError("Invalid stream or file provided for UploadedFile")

    # -- Metadata --

    @property
    def size(self) -> int | None:
        return self._size

    @property
    def error(self) -> int:
        """The upload status; compare against ``UploadError`` members."""
        return self._error

    @property
    def client_filename(self) -> str | None:
        return self._client_filename

    @property
    def client_media_type(self) -> str | None:
        return self._client_media_type

    @property
    def moved(self) -> bool:
        return self._moved

    # -- Content --

    def _validate_active(self) -> None:
        if self._error != UploadError.OK:
            raise OperationError("Cannot retrieve stream due to upload error")
        if self._moved:
            raise OperationError("Cannot retrieve stream after it has already been moved")

    def get_stream(self) -> Stream:
        """The upload content; a path-backed upload is opened read-only on each call."""
        self._validate_active()
        if self._stream is not None:
            return self._stream
        assert self._file is not None
        try:
            return Stream(open(self._file, "rb"))  # noqa: SIM115
        except OSError as exc:
            raise OperationError(f'Unable to open uploaded file "{self._file}"') from exc

    def move_to(self, target_path: str | os.PathLike[str]) -> None:
        """Move the upload to *target_path*. Only one move is allowed.

        Path-backed uploads are moved on disk; stream-backed uploads are
        copied chunk by chunk into a new file.

        Raises:
            OperationError: The upload failed, was already moved, or the
                move itself failed.
            InvalidArgumentError: *target_path* is empty or not a path.
        """
        self._validate_active()

        if not isinstance(target_path, (str, os.PathLike)) or not os.fspath(target_path):
            raise InvalidArgumentError("Invalid path provided for move operation; must be a non-empty string")
        target = os.fspath(target_path)

        try:
            if self._file is not None:
                shutil.move(self._file, target)
            else:
                self._write_file(target)
        except (OSError, OperationError) as exc:
            raise OperationError(f'Uploaded file could not be moved to "{target}"') from exc

        self._moved = True
        logger.debug("Moved upload %r to %s", self._client_filename, target)

    def _write_file(self, target: str) -> None:
        stream = self.get_stream()
        if stream.seekable:
            stream.rewind()
        with open(target, "wb") as handle:
            for chunk in stream.iter_chunks(DEFAULT_CONFIG.chunk_size):
                handle.write(chunk)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UploadedFile):
            return NotImplemented
        return (
            self._file == other._file
            and self._stream is other._stream
            and self._size == other._size
            and self._error == other._error
            and self._client_filename == other._client_filename
            and self._client_media_type == other._client_media_type
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"UploadedFile({self._client_filename!r}, {self._client_media_type!r}, size={self._size}, error={self._error})"


# ---------------------------------------------------------------------------
# Upload specification trees
# ---------------------------------------------------------------------------


def _items(value: Mapping[Any, Any] | list[Any]) -> list[tuple[Any, Any]]:
    if isinstance(value, Mapping):
        return list(value.items())
    return list(enumerate(value))


def _is_tree(value: object) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def normalize_files(files: Mapping[Any, Any] | list[Any]) -> dict[Any, Any]:
    """Normalize an upload specification tree into ``UploadedFile`` leaves.

    Raises:
        InvalidArgumentError: A leaf is neither an ``UploadedFile`` nor an
            upload spec, or nested parallel arrays disagree on their keys.
    """
    result: dict[Any, Any] = {}
    for key, value in _items(files):
        if isinstance(value, UploadedFile):
            result[key] = value
        elif isinstance(value, Mapping) and "tmp_name" in value:
            result[key] = _from_spec(value)
        elif _is_tree(value):
            result[key] = normalize_files(value)
        else:
            raise InvalidArgumentError("Invalid value in files specification")
    return result


def _from_spec(spec: Mapping[str, Any]) -> UploadedFile | dict[Any, Any]:
    if _is_tree(spec["tmp_name"]):
        return _from_nested_spec(spec)
    try:
        size = int(spec.get("size") or 0)
        error = int(spec.get("error") or 0)
    except (TypeError, ValueError):
        raise InvalidArgumentError("Invalid value in files specification") from None
    return UploadedFile(spec["tmp_name"], size, error, spec.get("name"), spec.get("type"))


def _from_nested_spec(spec: Mapping[str, Any]) -> dict[Any, Any]:
    # Parallel arrays: spec["tmp_name"][k], spec["size"][k], ... describe one file each.
    present = [name for name in _SPEC_KEYS if name in spec]
    if not all(_is_tree(spec[name]) for name in present):
        raise InvalidArgumentError("Invalid value in files specification")
    columns = {name: dict(_items(spec[name])) for name in present}
    keys = list(columns["tmp_name"])
    for column in columns.values():
        if set(column) != set(keys):
            raise InvalidArgumentError("Mismatched keys in nested files specification")

    result: dict[Any, Any] = {}
    for key in keys:
        result[key] = _from_spec({name: column[key] for name, column in columns.items()})
    return result


def validate_uploaded_files(files: Any) -> None:
    """Check that every leaf of a nested mapping/list tree is an ``UploadedFile``."""
    if isinstance(files, UploadedFile):
        return
    if not _is_tree(files):
        raise InvalidArgumentError("Invalid leaf in uploaded files tree")
    for _, value in _items(files):
        validate_uploaded_files(value)
