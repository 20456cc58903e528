from .errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    LedgerError,
    NotFoundError,
    OutOfRangeError,
    PermissionDeniedError,
)
from .identity import CallerIdentity, ContextCallerIdentity, require_caller
from .linear import Linear
from .models import Capability, DeleteCap, EntityId, ExtendCap, OwnerId, TransferCap
from .registry import EntityRecord, InMemoryObjectRegistry, ObjectRegistry

__all__ = [
    "AlreadyExistsError",
    "CallerIdentity",
    "Capability",
    "ContextCallerIdentity",
    "DeleteCap",
    "EntityId",
    "EntityRecord",
    "ExtendCap",
    "InMemoryObjectRegistry",
    "InvalidArgumentError",
    "LedgerError",
    "Linear",
    "NotFoundError",
    "ObjectRegistry",
    "OutOfRangeError",
    "OwnerId",
    "PermissionDeniedError",
    "TransferCap",
    "require_caller",
]
