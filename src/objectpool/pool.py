"""ObjectPool — a normalized, observable store for JSON-shaped data.

write() flattens nested objects into a table keyed by "<type>:<id>",
replacing every identifiable nested object with a Reference. read() walks
the table back into nested dicts and lists. observe() hands out a Cell per
ref that the pool keeps current while something is observing it.

All pool state (backing store, generation, listener registry) lives on the
instance. Create one pool and pass it to whoever needs it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Callable

from objectpool._tracking import transaction
from objectpool.cell import Cell, identity_cell
from objectpool.errors import CyclicReferenceError
from objectpool.identity import DEFAULT_TYPE_KEY, identify
from objectpool.types import (
    JSONObject,
    JSONValue,
    MemoryBacking,
    PoolBacking,
    PoolEntity,
    PoolValue,
    Reference,
)

logger = logging.getLogger("objectpool.pool")

Listener = Callable[[JSONObject], None]

# ref -> resolved dict, shared by every lookup in one resolution pass.
ResolutionCache = dict[str, JSONObject]


class ObjectPool:
    """Normalizing entity pool with per-ref reactive cells.

    Usage:
        pool = ObjectPool()
        pool.write({"id": 1, "type": "user", "name": "Alice",
                    "friend": {"id": 2, "type": "user", "name": "Bob"}})
        pool.read("user:2")   # {"id": 2, "type": "user", "name": "Bob"}
        pool.time             # 1
    """

    def __init__(self, backing: PoolBacking | None = None, *, type_key: str = DEFAULT_TYPE_KEY) -> None:
        self._backing: PoolBacking = backing if backing is not None else MemoryBacking()
        self._type_key = type_key
        self._generation = 0
        self._listeners: dict[str, set[Listener]] = {}

    @property
    def time(self) -> int:
        """Current generation. Increments once per write() call."""
        return self._generation

    @property
    def backing(self) -> PoolBacking:
        return self._backing

    def identify(self, obj: Mapping[str, Any]) -> str | None:
        return identify(obj, self._type_key)

    def entity(self, ref: str) -> PoolEntity | None:
        """The normalized record stored at ref, if any."""
        return self._backing.get(ref)

    def listener_count(self, ref: str) -> int:
        """How many observed cells are currently listening on ref."""
        return len(self._listeners.get(ref, ()))

    # --- Read path ---

    def read(self, ref: str) -> JSONObject | None:
        """Denormalize the entity at ref into nested dicts, or None if absent."""
        return self._resolve_entity(ref, {})

    def _resolve_entity(self, ref: str, cache: ResolutionCache) -> JSONObject | None:
        if ref in cache:
            return cache[ref]

        entity = self._backing.get(ref)
        if entity is None:
            return None

        # Registered before the fields are filled in: a ref reached again
        # further down gets this same dict, completed by the time we return.
        resolved: JSONObject = {}
        cache[ref] = resolved
        for key, item in entity.fields.items():
            resolved[key] = self._resolve_value(item, cache)
        return resolved

    def _resolve_value(self, value: PoolValue, cache: ResolutionCache) -> JSONValue:
        if isinstance(value, Reference):
            match = self._resolve_entity(value.ref, cache)
            if match is not None:
                return match
            # Dangling: surfaces as the marker itself rather than None.
            return value.as_mapping()
        if isinstance(value, tuple):
            return [self._resolve_value(item, cache) for item in value]
        if isinstance(value, Mapping):
            return {key: self._resolve_value(item, cache) for key, item in value.items()}
        return value

    # --- Write path ---

    def write(self, *items: JSONValue) -> None:
        """Normalize items into the pool as one batch.

        Raises CyclicReferenceError if any dict or list is reached twice
        in the same call. Entities normalized before that point stay
        written, but the generation does not advance and nobody is notified.
        """
        visited: set[int] = set()
        touched: dict[str, None] = {}

        for item in items:
            self._normalize(item, visited, touched)

        self._generation += 1
        logger.debug(
            "Wrote %d item(s) at generation %d, %d ref(s) touched",
            len(items), self._generation, len(touched),
        )
        self._notify(touched)

    def _visit(self, node: object, visited: set[int]) -> None:
        # Keyed on id(): the caller's input graph keeps every node alive
        # for the duration of write(), so ids cannot be recycled.
        key = id(node)
        if key in visited:
            raise CyclicReferenceError()
        visited.add(key)

    def _normalize(self, value: Any, visited: set[int], touched: dict[str, None]) -> PoolValue:
        if isinstance(value, Mapping):
            self._visit(value, visited)
            ref = self.identify(value)
            if ref is not None:
                return self._store(ref, value, visited, touched)
            return MappingProxyType(
                {key: self._normalize(item, visited, touched) for key, item in value.items()}
            )

        if isinstance(value, (list, tuple)):
            # Tuples cannot contain themselves, and CPython shares equal
            # tuple constants, so only lists are tracked.
            if isinstance(value, list):
                self._visit(value, visited)
            return tuple(self._normalize(item, visited, touched) for item in value)

        return value

    def _store(
        self,
        ref: str,
        data: Mapping[str, Any],
        visited: set[int],
        touched: dict[str, None],
    ) -> Reference:
        touched[ref] = None
        incoming = {key: self._normalize(item, visited, touched) for key, item in data.items()}

        # Looked up after the children are stored, so a nested object with
        # the same ref merges instead of being overwritten.
        existing = self._backing.get(ref)
        fields = dict(existing.fields) if existing is not None else {}
        fields.update(incoming)

        self._backing.set(
            ref,
            PoolEntity(updated_at=self._generation, fields=MappingProxyType(fields)),
        )
        return Reference(ref)

    # --- Notification ---

    def _notify(self, refs: Iterable[str]) -> None:
        cache: ResolutionCache = {}
        with transaction():
            for ref in refs:
                listeners = self._listeners.get(ref)
                if not listeners:
                    continue
                value = self._resolve_entity(ref, cache)
                if value is None:
                    logger.debug("Skipping notification for %s: no entity", ref)
                    continue
                for listener in list(listeners):
                    listener(value)

    def observe(self, ref: str) -> Cell[JSONObject | None]:
        """A Cell holding read(ref), kept current while it is observed.

        The cell listens to the pool only between its first observer
        attaching and its last observer detaching.
        """

        def listener(value: JSONObject) -> None:
            cell.set(value)

        def watched() -> None:
            self._listeners.setdefault(ref, set()).add(listener)
            logger.debug("Observing %s (%d listener(s))", ref, len(self._listeners[ref]))
            # Writes made while idle were not pushed; catch up.
            cell.set(self.read(ref))

        def unwatched() -> None:
            listeners = self._listeners.get(ref)
            if listeners is None:
                return
            listeners.discard(listener)
            if not listeners:
                del self._listeners[ref]
            logger.debug("Stopped observing %s", ref)

        cell = identity_cell(self.read(ref), on_watched=watched, on_unwatched=unwatched)
        return cell

    def __repr__(self) -> str:
        return f"ObjectPool(time={self._generation}, observed={len(self._listeners)})"
