"""Byte stream over a Python binary file object.

A ``Stream`` wraps exactly one file object (an open file, a
``SpooledTemporaryFile``, a ``BytesIO``...). Capabilities are derived once
from the open mode string, so a stream opened ``rb`` is never writable even
if the underlying object would accept a write.

Unlike the message types, a stream is stateful: it has a position, it can
be written to, closed and detached.
"""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterator
from tempfile import SpooledTemporaryFile
from typing import IO, Any, Self

from missive.config import DEFAULT_CONFIG
from missive.errors import InvalidArgumentError, OperationError

logger = logging.getLogger("missive.stream")

# Modes are looked up with the binary/text flag removed ("rb+" -> "r+").
READABLE_MODES = frozenset({"r", "r+", "w+", "x+", "a+", "c+"})
WRITABLE_MODES = frozenset({"w", "w+", "rw", "r+", "x", "x+", "a", "a+", "c+"})


def _base_mode(mode: str) -> str:
    return mode.replace("b", "").replace("t", "")


def _infer_mode(handle: Any) -> str:
    readable = getattr(handle, "readable", lambda: hasattr(handle, "read"))()
    writable = getattr(handle, "writable", lambda: hasattr(handle, "write"))()
    if readable and writable:
        return "r+"
    return "r" if readable else "w"


class Stream:
    """A readable, writable and/or seekable byte stream.

    Example::

        stream = Stream(open("report.csv", "rb"))
        header = stream.read(1024)
        stream.close()

        body = Stream.temporary()
        body.write(b"hello")
        bytes(body)  # b"hello"
    """

    __slots__ = ("_handle", "_mode", "_readable", "_writable", "_seekable", "_size", "_at_end")

    def __init__(self, handle: IO[bytes]) -> None:
        if isinstance(handle, io.TextIOBase) or not (hasattr(handle, "read") or hasattr(handle, "write")):
            raise InvalidArgumentError("Stream must wrap a file object")

        mode = getattr(handle, "mode", None)
        if not isinstance(mode, str):
            mode = _infer_mode(handle)
        base = _base_mode(mode)

        self._handle: IO[bytes] | None = handle
        self._mode: str | None = mode
        self._readable = base in READABLE_MODES
        self._writable = base in WRITABLE_MODES
        self._seekable = bool(getattr(handle, "seekable", lambda: False)())
        self._size: int | None = None
        self._at_end = False

    @classmethod
    def temporary(cls, max_size: int | None = None) -> Self:
        """A read/write stream held in memory until *max_size* bytes, then on disk."""
        if max_size is None:
            max_size = DEFAULT_CONFIG.spool_max_size
        return cls(SpooledTemporaryFile(max_size=max_size, mode="w+b"))  # noqa: SIM115

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """A read/write stream positioned at the start of *data*."""
        stream = cls.temporary()
        stream.write(data)
        stream.rewind()
        return stream

    # -- Capabilities --

    @property
    def readable(self) -> bool:
        return self._readable

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def seekable(self) -> bool:
        return self._seekable

    @property
    def closed(self) -> bool:
        """True once the stream has been closed or detached."""
        return self._handle is None

    # -- Lifecycle --

    def close(self) -> None:
        """Close the underlying file object and detach it."""
        if self._handle is not None:
            self._handle.close()
            self.detach()

    def detach(self) -> IO[bytes] | None:
        """Release the underlying file object without closing it.

        The stream is unusable afterwards.
        """
        handle = self._handle
        self._handle = None
        self._mode = None
        self._size = None
        self._readable = self._writable = self._seekable = False
        return handle

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Position --

    @property
    def size(self) -> int | None:
        """Total size in bytes, or ``None`` when it cannot be determined.

        Cached until the next write.
        """
        if self._size is None and self._handle is not None:
            self._size = self._measure()
        return self._size

    def _measure(self) -> int | None:
        handle = self._handle
        assert handle is not None
        if self._seekable:
            try:
                position = handle.tell()
                end = handle.seek(0, os.SEEK_END)
                handle.seek(position)
            except (OSError, ValueError):
                return None
            return end
        try:
            return os.fstat(handle.fileno()).st_size
        except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
            return None

    def tell(self) -> int:
        if self._handle is None:
            raise OperationError("Unable to determine stream position")
        try:
            return self._handle.tell()
        except (OSError, ValueError) as exc:
            raise OperationError("Unable to determine stream position") from exc

    def eof(self) -> bool:
        """True when the position is at (or past) the end of the stream."""
        if self._handle is None:
            return True
        if self._seekable:
            size = self.size
            if size is not None:
                return self.tell() >= size
        return self._at_end

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> None:
        error = OperationError(f"Unable to seek to stream position {offset} with whence {whence}")
        if not self._seekable or self._handle is None:
            raise error
        try:
            self._handle.seek(offset, whence)
        except (OSError, ValueError) as exc:
            raise error from exc
        self._at_end = False

    def rewind(self) -> None:
        self.seek(0)

    # -- I/O --

    def write(self, data: bytes | str) -> int:
        """Write *data* (``str`` is UTF-8 encoded) and return the number of bytes written."""
        self._size = None
        if not self._writable or self._handle is None:
            raise OperationError("Unable to write to stream")
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            written = self._handle.write(data)
        except (OSError, ValueError) as exc:
            raise OperationError("Unable to write to stream") from exc
        return len(data) if written is None else written

    def read(self, length: int) -> bytes:
        """Read up to *length* bytes."""
        if not self._readable or self._handle is None:
            raise OperationError("Cannot read from non-readable stream")
        try:
            data = self._handle.read(length)
        except (OSError, ValueError) as exc:
            raise OperationError("Cannot read from non-readable stream") from exc
        if len(data) < length:
            self._at_end = True
        return data

    def get_contents(self) -> bytes:
        """Read everything from the current position to the end."""
        if not self._readable or self._handle is None:
            raise OperationError("Unable to get stream contents")
        try:
            data = self._handle.read()
        except (OSError, ValueError) as exc:
            raise OperationError("Unable to get stream contents") from exc
        self._at_end = True
        return data

    def iter_chunks(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """Yield the rest of the stream in chunks of at most *chunk_size* bytes."""
        if chunk_size is None:
            chunk_size = DEFAULT_CONFIG.chunk_size
        while not self.eof():
            chunk = self.read(chunk_size)
            if not chunk:
                break
            yield chunk

    def get_metadata(self, key: str | None = None) -> Any:
        """Describe the wrapped file object.

        Returns a dict with ``mode``, ``seekable``, ``uri`` and ``closed``,
        or the single value for *key*. A detached stream has no metadata.
        """
        if self._handle is None:
            return None if key else {}
        name = getattr(self._handle, "name", None)
        meta: dict[str, Any] = {
            "mode": self._mode,
            "seekable": self._seekable,
            "uri": os.fspath(name) if isinstance(name, (str, os.PathLike)) else None,
            "closed": bool(getattr(self._handle, "closed", False)),
        }
        if key is None:
            return meta
        return meta.get(key)

    # -- Conversion --

    def __bytes__(self) -> bytes:
        """The whole stream from the start; empty when it cannot be read."""
        try:
            if self._seekable:
                self.rewind()
            return self.get_contents()
        except OperationError:
            logger.debug("Stream conversion failed, returning empty content", exc_info=True)
            return b""

    def __str__(self) -> str:
        return bytes(self).decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        state = "detached" if self._handle is None else self._mode
        return f"Stream({state}, size={self._size!r})"
