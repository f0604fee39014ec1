"""Cookie header parsing for server requests."""

from __future__ import annotations


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Pairs without ``=`` are skipped. A repeated name keeps its last value.
    Returns an empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            key = key.strip()
            if key:
                cookies[key] = value.strip().strip('"')
    return cookies
