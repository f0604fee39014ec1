"""Library configuration.

HttpConfig is a frozen dataclass. Pass one to the factories or the
emitter; everything else falls back to ``DEFAULT_CONFIG``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from missive.errors import ConfigurationError

_PROTOCOL_VERSION = re.compile(r"^[1-2]\.[0-1]$")


@dataclass(frozen=True, slots=True)
class HttpConfig:
    """Defaults used by the factories, streams, uploads and the emitter.

    All fields have sensible defaults. Override what you need::

        config = HttpConfig(chunk_size=64 * 1024, default_host="example.org")
    """

    # Messages
    default_protocol_version: str = "1.1"

    # Server request factory
    default_host: str = "localhost"
    max_form_size: int = 16 * 1024 * 1024  # 16 MB, url-encoded and multipart bodies

    # Streams
    spool_max_size: int = 2 * 1024 * 1024  # in-memory threshold of temporary bodies
    chunk_size: int = 1024 * 1024  # upload moves and body emission

    def __post_init__(self) -> None:
        if not _PROTOCOL_VERSION.match(self.default_protocol_version):
            msg = f"Invalid default protocol version: {self.default_protocol_version!r}"
            raise ConfigurationError(msg)
        if not self.default_host:
            raise ConfigurationError("default_host must not be empty")
        for name in ("max_form_size", "spool_max_size", "chunk_size"):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive, got {getattr(self, name)!r}"
                raise ConfigurationError(msg)


DEFAULT_CONFIG = HttpConfig()
