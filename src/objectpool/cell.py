"""Cells: reactive values that know when they are being observed.

A Cell is read with get() and written with set(). Reads made inside a
Reaction register the reaction as an observer; set() schedules every
observer for a re-run.

A cell is inactive until it gains its first observer and becomes inactive
again when the last observer detaches. The optional on_watched and
on_unwatched hooks fire on exactly those transitions, which is how
ObjectPool.observe() subscribes to the pool only while somebody is looking.
"""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from objectpool._tracking import current_derivation, schedule

if TYPE_CHECKING:
    from objectpool.reaction import Reaction

T = TypeVar("T")

Hook = Callable[[], None]


def _default_equals(old, new) -> bool:
    return old is new or old == new


class Cell(Generic[T]):
    """A single reactive value with an activation lifecycle."""

    __slots__ = ("_value", "_observers", "_on_watched", "_on_unwatched", "_equals")

    def __init__(
        self,
        value: T,
        *,
        on_watched: Hook | None = None,
        on_unwatched: Hook | None = None,
        equals: Callable[[T, T], bool] | None = None,
    ) -> None:
        self._value = value
        self._observers: set[Reaction] = set()
        self._on_watched = on_watched
        self._on_unwatched = on_unwatched
        self._equals = equals or _default_equals

    @property
    def observed(self) -> bool:
        """True while at least one reaction depends on this cell."""
        return bool(self._observers)

    @property
    def value(self) -> T:
        return self.get()

    def get(self) -> T:
        """Read the value. Inside a reaction, registers the dependency."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._add_observer(derivation)
            derivation._dependencies.add(self)
        return self._value

    def peek(self) -> T:
        """Read the value without tracking."""
        return self._value

    def set(self, value: T) -> None:
        """Write a new value and schedule observers if it changed."""
        if self._equals(self._value, value):
            return
        self._value = value
        for observer in list(self._observers):
            schedule(observer)

    def _add_observer(self, observer: Reaction) -> None:
        if observer in self._observers:
            return
        if not self._observers and self._on_watched is not None:
            # Runs before the observer is attached, so a hook that refreshes
            # the value does not re-schedule the reaction reading it.
            self._on_watched()
        self._observers.add(observer)

    def _remove_observer(self, observer: Reaction) -> None:
        if observer not in self._observers:
            return
        self._observers.discard(observer)
        if not self._observers and self._on_unwatched is not None:
            self._on_unwatched()

    def __repr__(self) -> str:
        state = "observed" if self._observers else "idle"
        return f"Cell({self._value!r}, {state})"


def identity_cell(value: T, **hooks) -> Cell[T]:
    """A Cell that treats every set() as a change unless it is the same object.

    Used for denormalized entities, which are rebuilt on each write and may
    be self-referential (so == on them is unsafe).
    """
    return Cell(value, equals=operator.is_, **hooks)
