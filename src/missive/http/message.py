"""Shared message state: headers, body and protocol version.

``MessageCore`` is a frozen dataclass holding the three pieces every HTTP
message has. Requests and responses embed one and delegate to it through
the ``Message`` base class: each ``with_*`` asks the core for a new core
and, when the core actually changed, re-wraps it in a copy of the message.
No-ops return the very same object, so ``is`` is a reliable change check.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Self

from missive._internal.immutable import Immutable
from missive.errors import InvalidArgumentError
from missive.http.headers import HeaderMap, HeaderValue, normalize_values
from missive.http.stream import Stream

_PROTOCOL_VERSION = re.compile(r"^[1-2]\.[0-1]$")


def filter_protocol_version(version: str) -> str:
    """Validate an HTTP protocol version (``1.0``, ``1.1``, ``2.0``, ``2.1``)."""
    if not isinstance(version, str) or not _PROTOCOL_VERSION.match(version):
        msg = f'Invalid HTTP version protocol "{version}" provided'
        raise InvalidArgumentError(msg)
    return version


@dataclass(frozen=True, slots=True, eq=False)
class MessageCore:
    """Headers, body stream and protocol version of one message."""

    headers: HeaderMap = field(default_factory=HeaderMap)
    body: Stream = field(default_factory=Stream.temporary)
    protocol_version: str = "1.1"

    def __post_init__(self) -> None:
        filter_protocol_version(self.protocol_version)
        if not isinstance(self.body, Stream):
            msg = f"Message body must be a Stream, got {type(self.body).__name__}"
            raise TypeError(msg)

    def with_protocol_version(self, version: str) -> MessageCore:
        version = filter_protocol_version(version)
        if version == self.protocol_version:
            return self
        return replace(self, protocol_version=version)

    def with_header(self, name: str, value: HeaderValue) -> MessageCore:
        values = normalize_values(value)
        if self.headers.stored_name(name) == name and self.headers[name] == values:
            return self
        return replace(self, headers=self.headers.replace(name, values))

    def with_added_header(self, name: str, value: HeaderValue) -> MessageCore:
        return replace(self, headers=self.headers.add(name, value))

    def without_header(self, name: str) -> MessageCore:
        headers = self.headers.remove(name)
        if headers is self.headers:
            return self
        return replace(self, headers=headers)

    def with_body(self, body: Stream) -> MessageCore:
        if body is self.body:
            return self
        return replace(self, body=body)


class Message(Immutable):
    """Header, body and protocol-version access for requests and responses.

    Header names are matched case-insensitively and keep the casing they
    were first stored with::

        >>> msg = Response().with_header("X-Foo", "a").with_added_header("x-foo", "b")
        >>> msg.headers
        {'X-Foo': ['a', 'b']}
        >>> msg.get_header_line("X-FOO")
        'a,b'
    """

    __slots__ = ("_core",)

    _core: MessageCore

    # -- Protocol version --

    @property
    def protocol_version(self) -> str:
        return self._core.protocol_version

    def with_protocol_version(self, version: str) -> Self:
        """Return a copy with a different protocol version.

        Raises:
            InvalidArgumentError: If *version* is not ``[1-2].[0-1]``.
        """
        return self._with_core(self._core.with_protocol_version(version))

    # -- Headers --

    @property
    def headers(self) -> dict[str, list[str]]:
        """All headers as ``{name: [values]}``, a fresh copy in stored order."""
        return self._core.headers.to_dict()

    @property
    def header_map(self) -> HeaderMap:
        """The underlying immutable header storage."""
        return self._core.headers

    def has_header(self, name: str) -> bool:
        return name in self._core.headers

    def get_header(self, name: str) -> list[str]:
        """All values of *name*, empty when the header is missing."""
        return self._core.headers.get_list(name)

    def get_header_line(self, name: str) -> str:
        """All values of *name* joined with ``,``; empty when missing."""
        return self._core.headers.get_line(name)

    def with_header(self, name: str, value: HeaderValue) -> Self:
        """Return a copy where *name* (any casing) holds exactly *value*."""
        return self._with_core(self._core.with_header(name, value))

    def with_added_header(self, name: str, value: HeaderValue) -> Self:
        """Return a copy with *value* appended to *name*."""
        return self._with_core(self._core.with_added_header(name, value))

    def without_header(self, name: str) -> Self:
        """Return a copy without *name*; ``self`` when it is not present."""
        return self._with_core(self._core.without_header(name))

    # -- Body --

    @property
    def body(self) -> Stream:
        return self._core.body

    def with_body(self, body: Stream) -> Self:
        """Return a copy with a different body; ``self`` for the same stream object."""
        return self._with_core(self._core.with_body(body))

    def _with_core(self, core: MessageCore) -> Self:
        if core is self._core:
            return self
        return self._evolve(_core=core)
