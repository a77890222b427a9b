"""Dependency tracking and batching for pool cells.

A contextvar holds the derivation (a Reaction) that is currently running.
Any Cell.get() made while it is set registers the cell as a dependency.

Batching: ObjectPool.write() and `with transaction()` defer reaction runs
until the outermost scope exits, so a reaction that reads several entities
touched by one write batch runs once and sees all of them updated.
"""

from __future__ import annotations

import contextvars
import functools
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, ParamSpec, TypeVar

if TYPE_CHECKING:
    from objectpool.reaction import Reaction

P = ParamSpec("P")
R = TypeVar("R")

current_derivation: contextvars.ContextVar[Reaction | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

_batch_depth: int = 0

# Insertion-ordered so reactions run in the order they were invalidated.
_pending: dict[Reaction, None] = {}


def begin_batch() -> None:
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. The outermost exit flushes pending reactions."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def schedule(derivation: Reaction) -> None:
    """Run a derivation now, or queue it if a batch is open."""
    if _batch_depth > 0:
        _pending[derivation] = None
    else:
        derivation._run()


def _flush_pending() -> None:
    # Reactions may invalidate others while running; keep draining.
    global _batch_depth
    _batch_depth += 1
    try:
        while _pending:
            batch = list(_pending)
            _pending.clear()
            for derivation in batch:
                derivation._run()
    finally:
        _batch_depth -= 1


def get_pending_count() -> int:
    """Number of reactions waiting for the current batch to close."""
    return len(_pending)


@contextmanager
def transaction():
    """Batch cell updates and pool writes.

    Usage:
        with transaction():
            pool.write(user)
            pool.write(team)
            # reactions fire here, once
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator form of transaction()."""

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper
