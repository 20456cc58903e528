"""Identifiers and authority tokens for registry entries."""

from typing import NewType

from .linear import Linear

EntityId = NewType("EntityId", str)
OwnerId = NewType("OwnerId", str)


class Capability(Linear):
    """Single-instance proof of authority over one registry entry."""

    __slots__ = ("_entity_id",)

    kind = "capability"

    def __init__(self, entity_id: EntityId) -> None:
        self._entity_id = entity_id

    @property
    def entity_id(self) -> EntityId:
        return self._entity_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(entity_id={self._entity_id!r})"


class ExtendCap(Capability):
    """Authority to attach new resources to an entity."""

    __slots__ = ()
    kind = "extend"


class TransferCap(Capability):
    """Authority to move an entity to a new owner."""

    __slots__ = ()
    kind = "transfer"


class DeleteCap(Capability):
    """Authority to delete an entity and reclaim its storage."""

    __slots__ = ()
    kind = "delete"
