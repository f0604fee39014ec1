"""Server-side HTTP request.

Adds what a server knows about an incoming request to ``Request``: the
CGI-style server parameters, cookies, query parameters, uploaded files,
the parsed body and free-form attributes (for routing results and
similar per-request values).

Every collection is stored read-only. The ``with_*`` methods always return
a new object.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Self

from missive.http.headers import HeadersInput
from missive.http.request import Request
from missive.http.stream import Stream
from missive.http.uploads import validate_uploaded_files
from missive.uri import Uri

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _frozen(data: Mapping[Any, Any] | None) -> Mapping[Any, Any]:
    if not data:
        return _EMPTY
    return MappingProxyType(dict(data))


class ServerRequest(Request):
    """An incoming request as seen by a server.

    Example::

        request = ServerRequest(
            "POST",
            "https://example.com/upload",
            server_params={"REMOTE_ADDR": "10.0.0.1"},
            parsed_body={"title": "Report"},
        )
        request = request.with_attribute("user_id", 42)
        request.get_attribute("user_id")  # 42
    """

    __slots__ = (
        "_server_params",
        "_cookie_params",
        "_query_params",
        "_uploaded_files",
        "_parsed_body",
        "_attributes",
    )

    _server_params: Mapping[str, Any]
    _cookie_params: Mapping[str, str]
    _query_params: Mapping[str, Any]
    _uploaded_files: Mapping[Any, Any]
    _parsed_body: Any
    _attributes: Mapping[str, Any]

    def __init__(
        self,
        method: str,
        uri: Uri | str = "",
        headers: HeadersInput = None,
        body: Stream | None = None,
        version: str = "1.1",
        server_params: Mapping[str, Any] | None = None,
        query_params: Mapping[str, Any] | None = None,
        parsed_body: Any = None,
        cookie_params: Mapping[str, str] | None = None,
        uploaded_files: Mapping[Any, Any] | None = None,
    ) -> None:
        super().__init__(method, uri, headers, body, version)
        if uploaded_files:
            validate_uploaded_files(uploaded_files)
        object.__setattr__(self, "_server_params", _frozen(server_params))
        object.__setattr__(self, "_query_params", _frozen(query_params))
        object.__setattr__(self, "_parsed_body", parsed_body)
        object.__setattr__(self, "_cookie_params", _frozen(cookie_params))
        object.__setattr__(self, "_uploaded_files", _frozen(uploaded_files))
        object.__setattr__(self, "_attributes", _EMPTY)

    @property
    def server_params(self) -> Mapping[str, Any]:
        return self._server_params

    # -- Cookies --

    @property
    def cookie_params(self) -> Mapping[str, str]:
        return self._cookie_params

    def with_cookie_params(self, cookies: Mapping[str, str]) -> Self:
        return self._evolve(_cookie_params=_frozen(cookies))

    # -- Query --

    @property
    def query_params(self) -> Mapping[str, Any]:
        return self._query_params

    def with_query_params(self, query: Mapping[str, Any]) -> Self:
        return self._evolve(_query_params=_frozen(query))

    # -- Uploaded files --

    @property
    def uploaded_files(self) -> Mapping[Any, Any]:
        return self._uploaded_files

    def with_uploaded_files(self, uploaded_files: Mapping[Any, Any]) -> Self:
        """Return a copy with *uploaded_files*.

        Raises:
            InvalidArgumentError: A leaf of the tree is not an ``UploadedFile``.
        """
        validate_uploaded_files(uploaded_files)
        return self._evolve(_uploaded_files=_frozen(uploaded_files))

    # -- Parsed body --

    @property
    def parsed_body(self) -> Any:
        """``None``, or whatever structure the body was deserialized into."""
        return self._parsed_body

    def with_parsed_body(self, data: Any) -> Self:
        return self._evolve(_parsed_body=data)

    # -- Attributes --

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._attributes

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """Return attribute *name*; *default* only when the key is absent."""
        if name in self._attributes:
            return self._attributes[name]
        return default

    def with_attribute(self, name: str, value: Any) -> Self:
        attributes = dict(self._attributes)
        attributes[name] = value
        return self._evolve(_attributes=MappingProxyType(attributes))

    def without_attribute(self, name: str) -> Self:
        attributes = dict(self._attributes)
        attributes.pop(name, None)
        return self._evolve(_attributes=MappingProxyType(attributes))
