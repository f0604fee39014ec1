"""Immutable, case-preserving, case-insensitive HTTP headers.

Implements ``Mapping[str, tuple[str, ...]]`` keyed by the original header
casing. Lookups ignore case. A secondary index maps each lower-cased name
to the casing that was stored first, so ``X-Foo`` and ``x-foo`` always
land in the same entry.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Self, TypeAlias

HeaderValue: TypeAlias = str | int | float | bytes | Iterable[str | int | float | bytes]
HeadersInput: TypeAlias = Mapping[str, HeaderValue] | Iterable[tuple[str, HeaderValue]] | None


def _normalize_value(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return str(value)


def normalize_values(value: HeaderValue) -> tuple[str, ...]:
    """Turn a single value or a sequence of values into a tuple of strings."""
    if isinstance(value, (str, bytes, int, float)):
        return (_normalize_value(value),)
    return tuple(_normalize_value(item) for item in value)


def _iter_pairs(headers: HeadersInput) -> Iterator[tuple[str, HeaderValue]]:
    if headers is None:
        return iter(())
    if isinstance(headers, Mapping):
        return iter(headers.items())
    return iter(headers)


class HeaderMap(Mapping[str, tuple[str, ...]]):
    """Immutable header storage shared by every message type.

    ``__getitem__`` returns all values for a header as a tuple.
    ``get_list`` returns them as a list, ``get_line`` joins them with ``,``.
    The mutators (``replace``, ``add``, ``remove``, ``put_first``) return a
    new ``HeaderMap``.

    Same-name entries with different casing passed to the constructor are
    merged in order under the first casing seen::

        >>> HeaderMap({"X-Foo": ["a"], "x-foo": "b"})
        HeaderMap({'X-Foo': ('a', 'b')})
    """

    __slots__ = ("_names", "_values")

    _values: dict[str, tuple[str, ...]]
    _names: dict[str, str]

    def __init__(self, headers: HeadersInput = None) -> None:
        values: dict[str, tuple[str, ...]] = {}
        names: dict[str, str] = {}
        for name, value in _iter_pairs(headers):
            normalized = name.lower()
            stored = names.get(normalized)
            if stored is None:
                names[normalized] = name
                values[name] = normalize_values(value)
            else:
                values[stored] = values[stored] + normalize_values(value)
        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "_names", names)

    @classmethod
    def from_bulk(cls, headers: HeadersInput) -> Self:
        """Build from a mapping or pairs, passing an existing ``HeaderMap`` through."""
        if isinstance(headers, cls):
            return headers
        return cls(headers)

    @classmethod
    def _from_parts(cls, values: dict[str, tuple[str, ...]], names: dict[str, str]) -> Self:
        new = object.__new__(cls)
        object.__setattr__(new, "_values", values)
        object.__setattr__(new, "_names", names)
        return new

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("HeaderMap is immutable")

    # -- Mapping protocol --

    def __getitem__(self, key: str) -> tuple[str, ...]:
        stored = self._names.get(key.lower())
        if stored is None:
            raise KeyError(key)
        return self._values[stored]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key.lower() in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"HeaderMap({self._values!r})"

    # -- Lookups --

    def stored_name(self, key: str) -> str | None:
        """The casing under which *key* is stored, or ``None``."""
        return self._names.get(key.lower())

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*, empty when missing."""
        return list(self.get(key, ()))

    def get_line(self, key: str) -> str:
        """Return all values for *key* joined with ``,`` (no space)."""
        return ",".join(self.get(key, ()))

    def to_dict(self) -> dict[str, list[str]]:
        """A fresh ``{name: [values]}`` copy in stored order."""
        return {name: list(values) for name, values in self._values.items()}

    # -- Copy-on-write updates --

    def replace(self, name: str, value: HeaderValue) -> HeaderMap:
        """Drop any entry matching *name* and store *value* under *name*'s casing."""
        normalized = name.lower()
        values = dict(self._values)
        names = dict(self._names)
        stored = names.get(normalized)
        if stored is not None:
            del values[stored]
        names[normalized] = name
        values[name] = normalize_values(value)
        return self._from_parts(values, names)

    def add(self, name: str, value: HeaderValue) -> HeaderMap:
        """Append *value* to an existing entry (keeping its casing), else store it."""
        stored = self._names.get(name.lower())
        if stored is None:
            return self.replace(name, value)
        values = dict(self._values)
        values[stored] = values[stored] + normalize_values(value)
        return self._from_parts(values, dict(self._names))

    def remove(self, name: str) -> HeaderMap:
        """Drop the entry matching *name*; returns ``self`` when absent."""
        normalized = name.lower()
        stored = self._names.get(normalized)
        if stored is None:
            return self
        values = dict(self._values)
        names = dict(self._names)
        del values[stored]
        del names[normalized]
        return self._from_parts(values, names)

    def put_first(self, name: str, value: HeaderValue) -> HeaderMap:
        """Store *value* as the first entry, reusing an existing casing for *name*."""
        normalized = name.lower()
        stored = self._names.get(normalized, name)
        values = {stored: normalize_values(value)}
        values.update((key, item) for key, item in self._values.items() if key != stored)
        names = dict(self._names)
        names[normalized] = stored
        return self._from_parts(values, names)
