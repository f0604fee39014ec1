"""Factories for requests, responses and server requests.

``ServerRequestFactory`` is the bridge from a server to the message
types: it reads a ``ServerEnvironment`` snapshot and derives the method,
URI, protocol version, headers, cookies, query parameters, parsed body
and uploaded files of a ``ServerRequest``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import IO, Any

from missive.config import DEFAULT_CONFIG, HttpConfig
from missive.environment import ServerEnvironment, headers_from_server
from missive.http.cookies import parse_cookies
from missive.http.forms import check_form_size, is_form, parse_form
from missive.http.headers import HeaderMap
from missive.http.query import parse_query
from missive.http.request import Request
from missive.http.response import Response
from missive.http.server_request import ServerRequest
from missive.http.stream import Stream
from missive.http.uploads import normalize_files
from missive.uri import DEFAULT_PORTS, Uri

logger = logging.getLogger("missive.factory")

_TRAILING_PORT = re.compile(r":(\d+)$")


class RequestFactory:
    """Creates client requests with the configured protocol version."""

    __slots__ = ("config",)

    def __init__(self, config: HttpConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def create_request(self, method: str, uri: Uri | str) -> Request:
        return Request(method, uri, version=self.config.default_protocol_version)


class ResponseFactory:
    """Creates responses with the configured protocol version."""

    __slots__ = ("config",)

    def __init__(self, config: HttpConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def create_response(self, code: int = 200, reason: str | None = None) -> Response:
        return Response(code, version=self.config.default_protocol_version, reason=reason)


class ServerRequestFactory:
    """Builds a ``ServerRequest`` from a server environment snapshot.

    Example::

        factory = ServerRequestFactory()
        request = factory.create_from_globals(
            server={"REQUEST_METHOD": "GET", "HTTP_HOST": "example.com", "REQUEST_URI": "/?page=2"},
        )
        request.query_params  # {"page": "2"}
    """

    __slots__ = ("config",)

    def __init__(self, config: HttpConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def create_from_globals(
        self,
        server: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        post: Any = None,
        cookies: Mapping[str, str] | None = None,
        files: Mapping[str, Any] | None = None,
        headers: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        body: IO[bytes] | Stream | bytes | None = None,
    ) -> ServerRequest:
        """Build a request from individual server collections."""
        env = ServerEnvironment(
            server=server or {},
            query=query,
            post=post,
            cookies=cookies,
            files=files,
            headers=headers,
            body=body,
        )
        return self.create_from_environment(env)

    def create_from_environment(self, env: ServerEnvironment) -> ServerRequest:
        """Build a request from *env*.

        Raises:
            ParseError: The host, port or request URI in *env* do not form a URI.
            InvalidArgumentError: The method, protocol version or files
                specification is invalid.
        """
        server = env.server
        method = server.get("REQUEST_METHOD") or "GET"
        uri = self.create_uri(server)
        version = self._protocol_version(server)

        header_map = HeaderMap.from_bulk(env.headers if env.headers is not None else headers_from_server(server))

        if env.cookies is not None:
            cookies = env.cookies
        else:
            cookies = parse_cookies("; ".join(header_map.get_list("cookie")))

        if env.query is not None:
            query = env.query
        else:
            query = parse_query(server.get("QUERY_STRING") or uri.query)

        body = self._body_stream(env.body)
        parsed_body = env.post
        files = normalize_files(env.files or {})

        content_type = header_map.get_line("content-type")
        if parsed_body is None and method.upper() == "POST" and is_form(content_type):
            check_form_size(self._declared_size(body, header_map), self.config.max_form_size)
            data = bytes(body)
            if body.seekable:
                body.rewind()
            else:
                body = Stream.from_bytes(data)
            form = parse_form(data, content_type, self.config.max_form_size)
            parsed_body = form.fields
            for name, upload in form.files.items():
                files.setdefault(name, upload)

        logger.debug("Created server request %s %s", method, uri)
        return ServerRequest(
            method,
            uri,
            header_map,
            body,
            version,
            server_params=server,
            query_params=query,
            parsed_body=parsed_body,
            cookie_params=cookies,
            uploaded_files=files,
        )

    def create_uri(self, server: Mapping[str, Any]) -> Uri:
        """Reconstruct the request URI from CGI-style server variables.

        The scheme is ``https`` only when ``HTTPS`` is ``on``. The host comes
        from ``HTTP_HOST``, then ``SERVER_NAME``, then the configured default.
        A ``:port`` suffix on the host wins over ``SERVER_PORT``.
        """
        scheme = "https" if server.get("HTTPS") == "on" else "http"
        host = server.get("HTTP_HOST") or server.get("SERVER_NAME") or self.config.default_host

        match = _TRAILING_PORT.search(host)
        if match:
            host = host[: match.start()]
            port = match.group(1)
        else:
            port = server.get("SERVER_PORT") or DEFAULT_PORTS[scheme]

        return Uri.parse(f"{scheme}://{host}:{port}{server.get('REQUEST_URI', '')}")

    def _protocol_version(self, server: Mapping[str, Any]) -> str:
        protocol = server.get("SERVER_PROTOCOL")
        if not protocol:
            return self.config.default_protocol_version
        return protocol.replace("HTTP/", "")

    @staticmethod
    def _declared_size(body: Stream, headers: HeaderMap) -> int:
        """Body size known before reading: the stream size, else Content-Length, else 0."""
        size = body.size
        if size is not None:
            return size
        length = headers.get_line("content-length")
        return int(length) if length.isdigit() else 0

    def _body_stream(self, body: IO[bytes] | Stream | bytes | None) -> Stream:
        if isinstance(body, Stream):
            return body
        if body is None:
            return Stream.temporary(self.config.spool_max_size)
        if isinstance(body, (bytes, bytearray)):
            stream = Stream.temporary(self.config.spool_max_size)
            stream.write(bytes(body))
            stream.rewind()
            return stream
        return Stream(body)
