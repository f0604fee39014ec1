"""Immutable base for slotted value classes.

Assignment after construction raises ``AttributeError``, the same way a
frozen dataclass does. Subclasses set their slots in ``__init__`` through
``object.__setattr__`` and derive modified copies with ``_evolve()``.
"""

from __future__ import annotations

from functools import cache
from typing import Any, Self


@cache
def _slot_names(cls: type) -> tuple[str, ...]:
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names.extend(slot for slot in slots if slot not in names)
    return tuple(names)


class Immutable:
    """Slotted value object with copy-constructor style updates."""

    __slots__ = ()

    def __setattr__(self, name: str, value: Any) -> None:
        msg = f"{type(self).__name__} is immutable; use a with_*() method"
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> None:
        msg = f"{type(self).__name__} is immutable; use a with_*() method"
        raise AttributeError(msg)

    def __copy__(self) -> Self:
        return self

    def _evolve(self, **changes: Any) -> Self:
        """Return a new instance with every slot copied except *changes*."""
        cls = type(self)
        new = object.__new__(cls)
        for name in _slot_names(cls):
            value = changes[name] if name in changes else getattr(self, name)
            object.__setattr__(new, name, value)
        return new
