"""Missive exception hierarchy.

Shared across Uri, the message types, streams, uploads and factories so
every module raises and catches the same types.

``InvalidArgumentError`` is also a ``ValueError`` and ``OperationError``
is also a ``RuntimeError``, so callers that only know the builtins can
still catch them.
"""

from __future__ import annotations


class MissiveError(Exception):
    """Base for all missive-specific errors."""


class InvalidArgumentError(MissiveError, ValueError):
    """The caller supplied a syntactically invalid value.

    Bad method token, protocol version, status code, request target,
    upload spec or move target.
    """


class ParseError(InvalidArgumentError):
    """A URI string could not be decomposed into components."""

    def __init__(self, detail: str = "Unable to parse URI") -> None:
        super().__init__(detail)


class InvalidSchemeError(InvalidArgumentError):
    """The URI scheme is neither ``http`` nor ``https``."""

    def __init__(self, scheme: str) -> None:
        self.scheme = scheme
        super().__init__(f'Invalid HTTP scheme "{scheme}" provided')


class InvalidPortError(InvalidArgumentError):
    """The URI port is outside 1-65535."""

    def __init__(self, port: int) -> None:
        self.port = port
        super().__init__(f'Invalid HTTP port "{port}". Must be between 1 and 65535')


class OperationError(MissiveError, RuntimeError):
    """Valid inputs, but the operation cannot complete.

    Raised for detached or non-capable streams, uploads that errored or were
    already moved, and failed moves.
    """


class ConfigurationError(MissiveError):
    """Raised when configuration is invalid or an optional extra is missing."""
