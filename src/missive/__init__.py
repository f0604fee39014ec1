"""Missive — immutable HTTP message objects for Python.

Requests, responses, server requests, URIs, streams and uploaded files as
value objects: every ``with_*()`` call returns a new object (or the same
one when nothing changes), never mutates.

Basic usage::

    from missive import Request, Response, Stream

    request = Request("GET", "https://example.com/items?page=2")
    request.get_header_line("Host")  # "example.com"

    response = Response(201).with_header("Location", "/items/7")
    response = response.with_body(Stream.from_bytes(b"created"))

Server side::

    from missive import ServerEnvironment, ServerRequestFactory

    request = ServerRequestFactory().create_from_environment(ServerEnvironment.from_wsgi(environ))

Multipart form parsing (``pip install missive[forms]``).
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "Emitter",
    "HeaderMap",
    "HttpConfig",
    "InvalidArgumentError",
    "InvalidPortError",
    "InvalidSchemeError",
    "MissiveError",
    "OperationError",
    "OutputChannel",
    "ParseError",
    "Request",
    "RequestFactory",
    "Response",
    "ResponseFactory",
    "ServerEnvironment",
    "ServerRequest",
    "ServerRequestFactory",
    "Stream",
    "UploadError",
    "UploadedFile",
    "Uri",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import missive`` fast while providing a clean top-level API.
    """
    if name == "Uri":
        from missive.uri import Uri

        return Uri

    if name == "HttpConfig":
        from missive.config import HttpConfig

        return HttpConfig

    if name == "HeaderMap":
        from missive.http.headers import HeaderMap

        return HeaderMap

    if name == "Request":
        from missive.http.request import Request

        return Request

    if name == "ServerRequest":
        from missive.http.server_request import ServerRequest

        return ServerRequest

    if name == "Response":
        from missive.http.response import Response

        return Response

    if name == "Stream":
        from missive.http.stream import Stream

        return Stream

    if name in ("UploadedFile", "UploadError"):
        from missive.http import uploads as _uploads

        return getattr(_uploads, name)

    if name == "ServerEnvironment":
        from missive.environment import ServerEnvironment

        return ServerEnvironment

    if name in ("RequestFactory", "ResponseFactory", "ServerRequestFactory"):
        from missive import factories as _factories

        return getattr(_factories, name)

    if name in ("Emitter", "OutputChannel"):
        from missive import emitter as _emitter

        return getattr(_emitter, name)

    if name in (
        "ConfigurationError",
        "InvalidArgumentError",
        "InvalidPortError",
        "InvalidSchemeError",
        "MissiveError",
        "OperationError",
        "ParseError",
    ):
        from missive import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
