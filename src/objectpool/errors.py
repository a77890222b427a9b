"""Exceptions raised by the object pool."""


class PoolError(Exception):
    """Base class for object pool errors."""


class CyclicReferenceError(PoolError, ValueError):
    """The same input node was reached twice while normalizing one write.

    Entities normalized before the cycle was found stay written.
    """

    def __init__(self, message: str = "Cyclic reference detected") -> None:
        super().__init__(message)
