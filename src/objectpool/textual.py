"""Textual integration for pool cells. Opt-in — requires textual.

Binds observed entities to widgets. Effects are skipped while the app is
not running or is paused for widget replacement, NoMatches from widget
queries is swallowed, and triggers from background threads (a worker
calling pool.write) are marshaled through app.call_from_thread.
"""

from __future__ import annotations

import logging
import operator
import threading
from contextlib import contextmanager
from typing import Callable, TypeVar

from textual.css.query import NoMatches

from objectpool import autorun as _autorun, reaction as _reaction
from objectpool.cell import Cell
from objectpool.reaction import Reaction

logger = logging.getLogger("objectpool.textual")

T = TypeVar("T")

# Keyed by id(app) so the app object itself is never mutated.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects while widgets are being replaced."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn: Callable[..., None]) -> Callable[..., None]:
    main = threading.get_ident()

    def _safe(*args) -> None:
        try:
            fn(*args)
        except NoMatches as exc:
            logger.debug("Widget query missed during update: %s", exc)

    def _guarded(*args) -> None:
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def bind(app, cell: Cell[T], effect_fn: Callable[[T], None], *, fire_immediately: bool = False) -> Reaction:
    """Call effect_fn with the cell's value whenever the pool updates it.

    Usage:
        user = pool.observe("user:1")
        stx.bind(app, user, lambda u: app.query_one("#name").update(u["name"]),
                 fire_immediately=True)
    """
    return _reaction(
        cell.get, _guard(app, effect_fn), fire_immediately=fire_immediately, equals=operator.is_
    )


def autorun(app, fn: Callable[[], None]) -> Reaction:
    """autorun() that safely bridges to Textual widgets."""
    return _autorun(_guard(app, fn))
