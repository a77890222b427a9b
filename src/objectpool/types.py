"""Value types stored in the pool, and the backing store it writes to."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, Union

JSONScalar = Union[str, int, float, bool, None]
JSONObject = dict[str, Any]
JSONValue = Union[JSONScalar, JSONObject, list[Any]]

# Key of the mapping a dangling Reference resolves to.
REF_LABEL = "__ref"


@dataclass(frozen=True, slots=True)
class Reference:
    """Stands in for a pooled entity inside another entity's fields.

    Compared by the ref it carries, never by object identity.
    """

    ref: str

    def as_mapping(self) -> JSONObject:
        return {REF_LABEL: self.ref}


# A normalized value: scalars, tuples of pool values, read-only mappings of
# pool values (inline objects without identity), or a Reference.
PoolValue = Union[JSONScalar, tuple, Mapping[str, Any], Reference]


@dataclass(frozen=True, slots=True)
class PoolEntity:
    """The stored record at one ref.

    fields is a read-only mapping; updates build a new PoolEntity.
    """

    updated_at: int
    fields: Mapping[str, PoolValue]


class PoolBacking(Protocol):
    """Anything the pool can store entities in."""

    def get(self, ref: str) -> PoolEntity | None: ...

    def set(self, ref: str, entity: PoolEntity) -> None: ...


class MemoryBacking:
    """Default backing store: a dict, never evicted."""

    __slots__ = ("_entities",)

    def __init__(self) -> None:
        self._entities: dict[str, PoolEntity] = {}

    def get(self, ref: str) -> PoolEntity | None:
        return self._entities.get(ref)

    def set(self, ref: str, entity: PoolEntity) -> None:
        self._entities[ref] = entity

    def __contains__(self, ref: str) -> bool:
        return ref in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __repr__(self) -> str:
        return f"MemoryBacking({len(self._entities)} entities)"
