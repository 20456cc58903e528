"""Per-owner map from asset to the owner's sub-account."""

from threading import Lock
from typing import Dict, Optional

from core.errors import AlreadyExistsError, NotFoundError
from core.models import EntityId, OwnerId


class AccountIndex:
    """At most one sub-account per (owner, asset) pair."""

    def __init__(self) -> None:
        self._indices: Dict[OwnerId, Dict[EntityId, EntityId]] = {}
        self._lock = Lock()

    def ensure_index(self, owner: OwnerId) -> None:
        with self._lock:
            self._indices.setdefault(owner, {})

    def has_index(self, owner: OwnerId) -> bool:
        with self._lock:
            return owner in self._indices

    def lookup(self, owner: OwnerId, asset_id: EntityId) -> Optional[EntityId]:
        with self._lock:
            return self._indices.get(owner, {}).get(asset_id)

    def register(self, owner: OwnerId, asset_id: EntityId, account_id: EntityId) -> None:
        with self._lock:
            entries = self._indices.setdefault(owner, {})
            if asset_id in entries:
                raise AlreadyExistsError(f"{owner} already holds a sub-account for {asset_id}.")
            entries[asset_id] = account_id

    def unregister(self, owner: OwnerId, asset_id: EntityId) -> EntityId:
        with self._lock:
            entries = self._indices.get(owner, {})
            if asset_id not in entries:
                raise NotFoundError(f"{owner} holds no sub-account for {asset_id}.")
            return entries.pop(asset_id)

    def entries(self, owner: OwnerId) -> Dict[EntityId, EntityId]:
        with self._lock:
            return dict(self._indices.get(owner, {}))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._indices.values())
