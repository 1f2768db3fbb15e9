"""
Compute-once cell.

A value slot that is filled by the first caller of :meth:`OnceCell.get`
and returned unchanged to every caller after that. The factory runs at
most once, even when several threads race on the first read.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class OnceCell(Generic[T]):
    """Lock-guarded, lazily initialised value."""

    __slots__ = ("_factory", "_value", "_ready", "_lock")

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory: Optional[Callable[[], T]] = factory
        self._value: Optional[T] = None
        self._ready = False
        self._lock = threading.Lock()

    @property
    def is_set(self) -> bool:
        return self._ready

    def get(self) -> T:
        """Return the value, computing it on first access."""
        if self._ready:
            return self._value  # type: ignore[return-value]

        with self._lock:
            if not self._ready:
                factory = self._factory
                self._value = factory()
                self._ready = True
                # Release the factory so captured collaborators can be collected
                self._factory = None
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        state = "set" if self._ready else "pending"
        return f"OnceCell({state})"
