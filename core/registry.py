"""Object registry collaborator and its in-memory reference implementation."""

from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, Optional, Protocol
import logging
import uuid

from .errors import InvalidArgumentError, NotFoundError, PermissionDeniedError
from .models import DeleteCap, EntityId, ExtendCap, OwnerId, TransferCap

logger = logging.getLogger(__name__)


class ObjectRegistry(Protocol):
    def create_entity(self, owner: OwnerId) -> EntityId:
        ...

    def exists(self, entity_id: EntityId) -> bool:
        ...

    def resolve_owner(self, entity_id: EntityId) -> OwnerId:
        ...

    def generate_extend_capability(self, entity_id: EntityId) -> ExtendCap:
        ...

    def generate_transfer_capability(self, entity_id: EntityId) -> TransferCap:
        ...

    def generate_delete_capability(self, entity_id: EntityId) -> DeleteCap:
        ...

    def disable_ungated_transfer(self, cap: TransferCap) -> None:
        ...

    def transfer_entity(self, cap: TransferCap, new_owner: OwnerId) -> None:
        ...

    def delete_entity(self, cap: DeleteCap) -> None:
        ...


@dataclass
class EntityRecord:
    entity_id: EntityId
    owner: OwnerId
    ungated_transfer: bool = True


class InMemoryObjectRegistry:
    """Process-local registry; entity ids are never handed out twice."""

    def __init__(self, id_provider: Optional[Callable[[], str]] = None) -> None:
        self._id_provider = id_provider or _new_entity_id
        self._records: Dict[EntityId, EntityRecord] = {}
        self._retired: set = set()
        self._lock = RLock()

    def create_entity(self, owner: OwnerId) -> EntityId:
        if not owner:
            raise InvalidArgumentError("Entity owner is required.")
        with self._lock:
            entity_id = EntityId(self._id_provider())
            if entity_id in self._records or entity_id in self._retired:
                raise InvalidArgumentError(f"Entity id already issued: {entity_id}")
            self._records[entity_id] = EntityRecord(entity_id=entity_id, owner=owner)
        logger.debug(f"Created entity {entity_id} for {owner}")
        return entity_id

    def exists(self, entity_id: EntityId) -> bool:
        with self._lock:
            return entity_id in self._records

    def resolve_owner(self, entity_id: EntityId) -> OwnerId:
        return self._require(entity_id).owner

    def generate_extend_capability(self, entity_id: EntityId) -> ExtendCap:
        self._require(entity_id)
        return ExtendCap(entity_id)

    def generate_transfer_capability(self, entity_id: EntityId) -> TransferCap:
        self._require(entity_id)
        return TransferCap(entity_id)

    def generate_delete_capability(self, entity_id: EntityId) -> DeleteCap:
        self._require(entity_id)
        return DeleteCap(entity_id)

    def is_transferable(self, entity_id: EntityId) -> bool:
        return self._require(entity_id).ungated_transfer

    def disable_ungated_transfer(self, cap: TransferCap) -> None:
        _require_kind(cap, TransferCap)
        with self._lock:
            self._require(cap.entity_id).ungated_transfer = False

    def transfer_entity(self, cap: TransferCap, new_owner: OwnerId) -> None:
        _require_kind(cap, TransferCap)
        if not new_owner:
            raise InvalidArgumentError("New owner is required.")
        with self._lock:
            record = self._require(cap.entity_id)
            if not record.ungated_transfer:
                raise PermissionDeniedError("Entity transfer is disabled.")
            record.owner = new_owner

    def delete_entity(self, cap: DeleteCap) -> None:
        _require_kind(cap, DeleteCap)
        with self._lock:
            self._require(cap.entity_id)
            del self._records[cap.entity_id]
            self._retired.add(cap.entity_id)
        logger.debug(f"Deleted entity {cap.entity_id}")

    def _require(self, entity_id: EntityId) -> EntityRecord:
        with self._lock:
            record = self._records.get(entity_id)
        if record is None:
            raise NotFoundError(f"Unknown entity: {entity_id}")
        return record


def _require_kind(cap: object, expected: type) -> None:
    if not isinstance(cap, expected):
        raise InvalidArgumentError(f"Expected {expected.__name__}, got {type(cap).__name__}.")


def _new_entity_id() -> str:
    return uuid.uuid4().hex
