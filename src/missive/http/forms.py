"""Form body parsing: url-encoded and multipart.

Used by ``ServerRequestFactory`` to fill ``parsed_body`` (and, for
multipart, ``uploaded_files``) of POST requests.

``python-multipart`` is an optional dependency (``pip install missive[forms]``).
URL-encoded forms use stdlib ``urllib.parse``, no extra dependency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from missive.config import DEFAULT_CONFIG
from missive.errors import ConfigurationError, InvalidArgumentError
from missive.http.query import parse_query
from missive.http.stream import Stream
from missive.http.uploads import UploadedFile, UploadError

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"
FORM_CONTENT_TYPES = frozenset({URLENCODED, MULTIPART})


@dataclass(frozen=True, slots=True)
class ParsedForm:
    """Field values and uploaded files of one form submission."""

    fields: dict[str, Any] = field(default_factory=dict)
    files: dict[str, Any] = field(default_factory=dict)


def media_type(content_type: str) -> str:
    """``"Multipart/Form-Data; boundary=x"`` -> ``"multipart/form-data"``."""
    return content_type.split(";")[0].strip().lower()


def is_form(content_type: str) -> bool:
    return media_type(content_type) in FORM_CONTENT_TYPES


def check_form_size(size: int, max_size: int | None = None) -> None:
    """Raise ``InvalidArgumentError`` when a form body of *size* bytes is over the limit."""
    if max_size is None:
        max_size = DEFAULT_CONFIG.max_form_size
    if size > max_size:
        msg = f"Form body of {size} bytes exceeds the {max_size} byte limit"
        raise InvalidArgumentError(msg)


def parse_form(body: bytes, content_type: str, max_size: int | None = None) -> ParsedForm:
    """Parse a form body.

    Args:
        body: Raw request body bytes.
        content_type: The Content-Type header value.
        max_size: Largest accepted body, defaults to ``HttpConfig.max_form_size``.

    Raises:
        ConfigurationError: Multipart parsing is needed but
            ``python-multipart`` is not installed.
        InvalidArgumentError: The content type is not a form encoding, the
            body is too large, or the multipart boundary is missing.
    """
    check_form_size(len(body), max_size)

    kind = media_type(content_type)
    if kind == URLENCODED:
        return ParsedForm(fields=parse_query(body))
    if kind == MULTIPART:
        return _parse_multipart(body, content_type)

    msg = f"Unsupported form content type: {content_type!r}"
    raise InvalidArgumentError(msg)


def _store(target: dict[str, Any], name: str, value: Any) -> None:
    if name.endswith("[]") and len(name) > 2:
        existing = target.setdefault(name[:-2], [])
        if not isinstance(existing, list):
            existing = target[name[:-2]] = []
        existing.append(value)
    else:
        target[name] = value


def _parse_multipart(body: bytes, content_type: str) -> ParsedForm:
    try:
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install missive[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if not boundary:
        raise InvalidArgumentError("Multipart form data missing boundary parameter")

    fields: dict[str, Any] = {}
    files: dict[str, Any] = {}

    headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    data = bytearray()

    def on_part_begin() -> None:
        headers.clear()
        data.clear()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        headers[header_field.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        data.extend(chunk[start:end])

    def on_part_end() -> None:
        _, params = parse_options_header(headers.get("content-disposition", "").encode("latin-1"))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is None:
            _store(fields, field_name, data.decode("utf-8", errors="replace"))
            return

        content = bytes(data)
        client_filename = filename.decode("utf-8")
        # Browsers send an empty filename part when no file was chosen.
        error = UploadError.OK if client_filename or content else UploadError.NO_FILE
        upload = UploadedFile(
            Stream.from_bytes(content),
            len(content),
            error,
            client_filename,
            headers.get("content-type", "application/octet-stream"),
        )
        _store(files, field_name, upload)

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()

    return ParsedForm(fields=fields, files=files)
