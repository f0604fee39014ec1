"""HTTP response: status code, reason phrase and a message core."""

from __future__ import annotations

from http import HTTPStatus
from typing import Self

from missive.errors import InvalidArgumentError
from missive.http.headers import HeaderMap, HeadersInput
from missive.http.message import Message, MessageCore
from missive.http.stream import Stream

REASON_PHRASES: dict[int, str] = {status.value: status.phrase for status in HTTPStatus}


def filter_status(code: int) -> int:
    """Validate a status code (100-599)."""
    if isinstance(code, bool) or not isinstance(code, int) or not 100 <= code <= 599:
        msg = f'Invalid HTTP status code "{code}" provided'
        raise InvalidArgumentError(msg)
    return code


def _reason_for(code: int, reason: str | None) -> str:
    if reason:
        return reason
    return REASON_PHRASES.get(code, "")


class Response(Message):
    """An immutable HTTP response.

    The reason phrase defaults to the standard phrase for the status code,
    or ``""`` for codes without one.

    Example::

        response = Response(404)
        response.reason_phrase  # "Not Found"

        created = Response().with_status(201).with_header("Location", "/items/7")
    """

    __slots__ = ("_status_code", "_reason_phrase")

    _status_code: int
    _reason_phrase: str

    def __init__(
        self,
        status: int = 200,
        headers: HeadersInput = None,
        body: Stream | None = None,
        version: str = "1.1",
        reason: str | None = None,
    ) -> None:
        code = filter_status(status)
        core = MessageCore(
            headers=HeaderMap.from_bulk(headers),
            body=body if body is not None else Stream.temporary(),
            protocol_version=version,
        )
        object.__setattr__(self, "_status_code", code)
        object.__setattr__(self, "_reason_phrase", _reason_for(code, reason))
        object.__setattr__(self, "_core", core)

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def reason_phrase(self) -> str:
        return self._reason_phrase

    def with_status(self, code: int, reason: str | None = None) -> Self:
        """Return a copy with a new status; ``self`` when code and phrase are unchanged."""
        code = filter_status(code)
        phrase = _reason_for(code, reason)
        if code == self._status_code and phrase == self._reason_phrase:
            return self
        return self._evolve(_status_code=code, _reason_phrase=phrase)

    def __repr__(self) -> str:
        return f"Response({self._status_code}, {self._reason_phrase!r})"
