"""Query string and url-encoded body parsing.

Produces the flat parameter mapping a server request exposes: a repeated
key keeps its last value, and keys ending in ``[]`` collect every value
into a list under the bare name::

    >>> parse_query("a=1&a=2&tag[]=x&tag[]=y&empty=")
    {'a': '2', 'tag': ['x', 'y'], 'empty': ''}
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl


def parse_query(query_string: str | bytes, encoding: str = "utf-8") -> dict[str, Any]:
    """Parse *query_string* into a parameter dict."""
    if isinstance(query_string, bytes):
        query_string = query_string.decode(encoding, errors="replace")
    params: dict[str, Any] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True, encoding=encoding):
        if key.endswith("[]") and len(key) > 2:
            name = key[:-2]
            existing = params.get(name)
            if isinstance(existing, list):
                existing.append(value)
            else:
                params[name] = [value]
        else:
            params[key] = value
    return params
