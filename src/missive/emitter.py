"""Writing a response to an output channel.

``OutputChannel`` models the output side of a CGI-style server: header
lines and a status line are collected until the first body byte is
written, then the head is serialized once and ``headers_sent`` flips to
true. ``Emitter`` adds a response's head to a channel (unless it was
already sent) and copies the body after it.
"""

from __future__ import annotations

import logging
from typing import IO

from missive.config import DEFAULT_CONFIG, HttpConfig
from missive.http.response import Response

logger = logging.getLogger("missive.emitter")

_CRLF = b"\r\n"


class OutputChannel:
    """Buffered head, streamed body, over a binary sink.

    Example::

        channel = OutputChannel(sys.stdout.buffer)
        channel.add_header("Content-Type: text/plain")
        channel.set_status_line("HTTP/1.1 200 OK")
        channel.write(b"hello")  # head goes out first
    """

    __slots__ = ("_sink", "_status_line", "_header_lines", "_headers_sent")

    def __init__(self, sink: IO[bytes]) -> None:
        self._sink = sink
        self._status_line: str | None = None
        self._header_lines: list[str] = []
        self._headers_sent = False

    @property
    def headers_sent(self) -> bool:
        return self._headers_sent

    @property
    def header_lines(self) -> list[str]:
        """Header lines queued (or already sent), in order."""
        return list(self._header_lines)

    @property
    def status_line(self) -> str | None:
        return self._status_line

    def add_header(self, line: str) -> None:
        """Queue ``Name: value``. Lines added after the head was sent are dropped."""
        if self._headers_sent:
            logger.debug("Header %r ignored, headers already sent", line)
            return
        self._header_lines.append(line)

    def set_status_line(self, line: str) -> None:
        if self._headers_sent:
            logger.debug("Status line %r ignored, headers already sent", line)
            return
        self._status_line = line

    def send_headers(self) -> None:
        """Write the status line, the header lines and the blank separator line once."""
        if self._headers_sent:
            return
        head: list[bytes] = []
        if self._status_line is not None:
            head.append(self._status_line.encode("latin-1") + _CRLF)
        head.extend(line.encode("latin-1") + _CRLF for line in self._header_lines)
        head.append(_CRLF)
        self._sink.write(b"".join(head))
        self._headers_sent = True

    def write(self, data: bytes) -> None:
        self.send_headers()
        if data:
            self._sink.write(data)

    def flush(self) -> None:
        self.send_headers()
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()


class Emitter:
    """Writes responses to an ``OutputChannel``."""

    __slots__ = ("_channel", "_config")

    def __init__(self, channel: OutputChannel, config: HttpConfig | None = None) -> None:
        self._channel = channel
        self._config = config or DEFAULT_CONFIG

    def emit(self, response: Response) -> None:
        """Add the head of *response* unless headers were already sent, then copy its body."""
        channel = self._channel
        if not channel.headers_sent:
            for name, values in response.headers.items():
                for value in values:
                    channel.add_header(f"{name}: {value}")
            status = f"HTTP/{response.protocol_version} {response.status_code}"
            if response.reason_phrase:
                status = f"{status} {response.reason_phrase}"
            channel.set_status_line(status)
        else:
            logger.debug("Headers already sent, emitting body only")

        body = response.body
        if body.readable:
            if body.seekable:
                body.rewind()
            for chunk in body.iter_chunks(self._config.chunk_size):
                channel.write(chunk)
        channel.flush()
