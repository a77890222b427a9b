"""Reactions: side effects driven by pool cells.

A Reaction is what makes a Cell observed. While a reaction depends on a
cell returned by ObjectPool.observe(), the pool pushes new entity values
into that cell; disposing the reaction detaches it, and the cell stops
listening to the pool once nothing depends on it.

Two flavors:
- autorun(fn): runs fn immediately, re-runs when any cell it read changes.
- reaction(data_fn, effect_fn): tracks data_fn, calls effect_fn with the new
  value only when data_fn's result changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, TypeVar

from objectpool._tracking import current_derivation
from objectpool.cell import _default_equals

if TYPE_CHECKING:
    from objectpool.cell import Cell

T = TypeVar("T")


class Reaction:
    """A reactive side effect that re-runs when its cells change."""

    __slots__ = ("_fn", "_dependencies", "_disposed")

    def __init__(self, fn: Callable[[], object]) -> None:
        self._fn = fn
        self._dependencies: set[Cell] = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _track(self) -> object:
        """Evaluate fn while collecting the cells it reads.

        Cells read last time but not this time are released. Cells read both
        times keep this reaction attached throughout, so they never flap
        through an unwatched/watched cycle on a re-run.
        """
        previous = self._dependencies
        self._dependencies = set()
        token = current_derivation.set(self)
        try:
            return self._fn()
        finally:
            current_derivation.reset(token)
            for dep in previous - self._dependencies:
                dep._remove_observer(self)

    def _run(self) -> None:
        if self._disposed:
            return
        self._track()

    def dispose(self) -> None:
        """Stop this reaction and release every cell it depends on."""
        if self._disposed:
            return
        self._disposed = True
        dependencies, self._dependencies = self._dependencies, set()
        for dep in dependencies:
            dep._remove_observer(self)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        name = getattr(self._fn, "__name__", type(self._fn).__name__)
        return f"{type(self).__name__}({name}, {state})"


class _DataReaction(Reaction):
    """reaction(data_fn, effect_fn): effect only fires on a changed result."""

    __slots__ = ("_effect_fn", "_equals", "_last_value", "_initialized")

    def __init__(
        self,
        data_fn: Callable[[], T],
        effect_fn: Callable[[T], None],
        equals: Callable[[T, T], bool],
    ) -> None:
        super().__init__(data_fn)
        self._effect_fn = effect_fn
        self._equals = equals
        self._last_value = None
        self._initialized = False

    def _run(self) -> None:
        if self._disposed:
            return
        new_value = self._track()
        if not self._initialized or not self._equals(self._last_value, new_value):
            self._last_value = new_value
            self._initialized = True
            self._effect_fn(new_value)

    def _prime(self) -> None:
        self._last_value = self._track()
        self._initialized = True


def autorun(fn: Callable[[], object]) -> Reaction:
    """Run fn immediately, then again whenever a cell it reads changes.

    Usage:
        cell = pool.observe("user:1")
        log = []
        r = autorun(lambda: log.append(cell.get()))
        pool.write({"id": 1, "type": "user", "name": "Bob"})
        # log[-1]["name"] == "Bob"
        r.dispose()
    """
    r = Reaction(fn)
    r._run()
    return r


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
    equals: Callable[[T, T], bool] | None = None,
) -> Reaction:
    """Track data_fn's cells; call effect_fn when its result changes.

    Results are compared with == unless equals is given. Entities read from
    the pool may contain themselves, so either return a projection (a name,
    a tuple of fields) or pass equals=operator.is_ when returning a whole
    entity.

    Usage:
        cell = pool.observe("user:1")
        names = []
        r = reaction(lambda: (cell.get() or {}).get("name"), names.append)
        pool.write({"id": 1, "type": "user", "name": "Alice"})
        # names == ["Alice"]
    """
    r = _DataReaction(data_fn, effect_fn, equals or _default_equals)
    if fire_immediately:
        r._run()
    else:
        r._prime()
    return r
