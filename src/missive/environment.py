"""Server environment snapshot.

A ``ServerEnvironment`` carries everything ``ServerRequestFactory`` reads
to build a ``ServerRequest``: CGI-style server variables, the already
decoded query/post/cookie/file collections (when the server provides
them), request headers and the body. Nothing is read from process-wide
state; callers build a snapshot and pass it in.

``from_wsgi`` and ``from_asgi`` build a snapshot from the two standard
Python server interfaces.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass
from typing import IO, Any, Self
from urllib.parse import quote

from missive.http.stream import Stream

# CGI variables that describe headers without the HTTP_ prefix.
_UNPREFIXED_HEADERS = {"CONTENT_TYPE": "Content-Type", "CONTENT_LENGTH": "Content-Length"}


def header_name_from_cgi(key: str) -> str | None:
    """``HTTP_X_FORWARDED_FOR`` -> ``X-Forwarded-For``; ``None`` for non-header keys."""
    if key in _UNPREFIXED_HEADERS:
        return _UNPREFIXED_HEADERS[key]
    if key.startswith("HTTP_") and len(key) > 5:
        return "-".join(part.capitalize() for part in key[5:].split("_"))
    return None


def headers_from_server(server: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Collect request headers from CGI-style server variables."""
    headers: list[tuple[str, str]] = []
    for key, value in server.items():
        name = header_name_from_cgi(key)
        if name is not None and value not in (None, ""):
            headers.append((name, str(value)))
    return headers


@dataclass(frozen=True, slots=True)
class ServerEnvironment:
    """Everything a server knows about one incoming request.

    ``None`` for ``query``, ``cookies``, ``headers`` or ``post`` means
    "derive from the other fields"; ``None`` for ``files`` means no uploads.
    """

    server: Mapping[str, Any]
    query: Mapping[str, Any] | None = None
    post: Any = None
    cookies: Mapping[str, str] | None = None
    files: Mapping[str, Any] | None = None
    headers: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None
    body: IO[bytes] | Stream | bytes | None = None

    @classmethod
    def from_wsgi(cls, environ: Mapping[str, Any]) -> Self:
        """Snapshot a WSGI ``environ``.

        ``REQUEST_URI`` and ``HTTPS`` are filled in when the server did not
        provide them. ``wsgi.input`` is read up to ``CONTENT_LENGTH``.
        """
        server: dict[str, Any] = {
            key: value
            for key, value in environ.items()
            if isinstance(value, str) and not key.startswith("wsgi.")
        }

        if "REQUEST_URI" not in server:
            path = quote(server.get("SCRIPT_NAME", "") + server.get("PATH_INFO", ""), safe="/;=,@:")
            query = server.get("QUERY_STRING", "")
            server["REQUEST_URI"] = f"{path}?{query}" if query else path
        if environ.get("wsgi.url_scheme") == "https":
            server.setdefault("HTTPS", "on")

        body: bytes | None = None
        stream = environ.get("wsgi.input")
        if stream is not None:
            length = server.get("CONTENT_LENGTH", "")
            body = stream.read(int(length)) if length.isdigit() else b""

        return cls(server=server, body=body)

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], body: bytes = b"") -> Self:
        """Snapshot an ASGI HTTP ``scope`` plus the already received *body*."""
        raw_headers = [
            (name.decode("latin-1"), value.decode("latin-1")) for name, value in scope.get("headers", ())
        ]
        query_string = scope.get("query_string", b"").decode("latin-1")
        raw_path = scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else quote(scope.get("path", "/"), safe="/;=,@:")

        server: MutableMapping[str, Any] = {
            "REQUEST_METHOD": scope.get("method", "GET"),
            "REQUEST_URI": f"{path}?{query_string}" if query_string else path,
            "QUERY_STRING": query_string,
            "SERVER_PROTOCOL": f"HTTP/{scope.get('http_version', '1.1')}",
            "SCRIPT_NAME": scope.get("root_path", ""),
            "PATH_INFO": scope.get("path", "/"),
        }
        if scope.get("scheme") == "https":
            server["HTTPS"] = "on"
        host_port = scope.get("server")
        if host_port:
            server["SERVER_NAME"], server["SERVER_PORT"] = host_port[0], str(host_port[1])
        client = scope.get("client")
        if client:
            server["REMOTE_ADDR"], server["REMOTE_PORT"] = client[0], str(client[1])
        for name, value in raw_headers:
            key = name.upper().replace("-", "_")
            if key not in _UNPREFIXED_HEADERS:
                key = f"HTTP_{key}"
            # Repeated headers are folded the way CGI servers do.
            server[key] = f"{server[key]},{value}" if key in server else value

        return cls(server=dict(server), headers=raw_headers, body=body)
