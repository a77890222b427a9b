"""objectpool: a normalized, observable in-memory pool for JSON-shaped data."""

from importlib.metadata import version as _version

__version__ = _version("objectpool")

from objectpool._tracking import action, get_pending_count, transaction
from objectpool.cell import Cell
from objectpool.errors import CyclicReferenceError, PoolError
from objectpool.identity import identify
from objectpool.pool import ObjectPool
from objectpool.reaction import Reaction, autorun, reaction
from objectpool.types import MemoryBacking, PoolBacking, PoolEntity, Reference
# textual NOT auto-imported — opt-in only

__all__ = [
    "ObjectPool",
    "identify",
    "Cell",
    "Reaction",
    "autorun",
    "reaction",
    "action",
    "transaction",
    "get_pending_count",
    "PoolEntity",
    "Reference",
    "PoolBacking",
    "MemoryBacking",
    "PoolError",
    "CyclicReferenceError",
]
