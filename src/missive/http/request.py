"""Outgoing/client-side HTTP request.

A ``Request`` is a method, a target URI and a message core. When the
caller does not supply a Host header the URI's ``host[:port]`` is placed
first in the header order.
"""

from __future__ import annotations

import re
from typing import Self

from missive.errors import InvalidArgumentError
from missive.http.headers import HeaderMap, HeadersInput
from missive.http.message import Message, MessageCore
from missive.http.stream import Stream
from missive.uri import Uri, as_uri

_METHOD = re.compile(r"[!#$%&'*+.^_`|~0-9A-Za-z-]+")
_WHITESPACE = re.compile(r"\s")


def filter_method(method: str) -> str:
    """Validate an HTTP method token; casing is preserved."""
    if not isinstance(method, str) or not _METHOD.fullmatch(method):
        msg = f'Invalid HTTP method "{method}" provided'
        raise InvalidArgumentError(msg)
    return method


def _host_from_uri(headers: HeaderMap, uri: Uri) -> HeaderMap:
    if not uri.host:
        return headers
    host = uri.host if uri.port is None else f"{uri.host}:{uri.port}"
    return headers.put_first("Host", host)


class Request(Message):
    """An immutable HTTP request.

    Example::

        request = Request("GET", "https://example.com/search?q=mail")
        request.get_header_line("Host")   # "example.com"
        request.request_target            # "/search?q=mail"

        posted = request.with_method("POST").with_body(Stream.from_bytes(b"q=mail"))
    """

    __slots__ = ("_method", "_request_target", "_uri")

    _method: str
    _request_target: str | None
    _uri: Uri

    def __init__(
        self,
        method: str,
        uri: Uri | str = "",
        headers: HeadersInput = None,
        body: Stream | None = None,
        version: str = "1.1",
    ) -> None:
        uri = as_uri(uri)
        header_map = HeaderMap.from_bulk(headers)
        if "host" not in header_map:
            header_map = _host_from_uri(header_map, uri)
        core = MessageCore(
            headers=header_map,
            body=body if body is not None else Stream.temporary(),
            protocol_version=version,
        )
        object.__setattr__(self, "_method", filter_method(method))
        object.__setattr__(self, "_request_target", None)
        object.__setattr__(self, "_uri", uri)
        object.__setattr__(self, "_core", core)

    # -- Method --

    @property
    def method(self) -> str:
        return self._method

    def with_method(self, method: str) -> Self:
        method = filter_method(method)
        if method == self._method:
            return self
        return self._evolve(_method=method)

    # -- Request target --

    @property
    def request_target(self) -> str:
        """The explicit override, else ``path`` (``/`` when empty) plus ``?query``."""
        if self._request_target is not None:
            return self._request_target
        target = self._uri.path or "/"
        if self._uri.query:
            target = f"{target}?{self._uri.query}"
        return target

    def with_request_target(self, target: str) -> Self:
        if _WHITESPACE.search(target):
            raise InvalidArgumentError("Invalid request target provided; cannot contain whitespace")
        return self._evolve(_request_target=target)

    # -- URI --

    @property
    def uri(self) -> Uri:
        return self._uri

    def with_uri(self, uri: Uri, preserve_host: bool = False) -> Self:
        """Return a copy targeting *uri*.

        The Host header is rebuilt from *uri* unless *preserve_host* is set
        and a Host header is already present.
        """
        if uri is self._uri:
            return self
        core = self._core
        if not preserve_host or "host" not in core.headers:
            headers = _host_from_uri(core.headers, uri)
            if headers is not core.headers:
                core = MessageCore(headers, core.body, core.protocol_version)
        return self._evolve(_uri=uri, _core=core)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._method!r}, {str(self._uri)!r})"
