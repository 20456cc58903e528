"""Asset capability records attached to asset entities, gated on ownership."""

from contextlib import contextmanager
from threading import RLock
from typing import Dict, Iterator, Sequence
import logging

from core.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from core.identity import CallerIdentity, require_caller
from core.models import EntityId
from core.registry import ObjectRegistry

from .bundle import AssetCapabilities
from .models import AssetCapability, BurnCap, FreezeCap, MintCap

logger = logging.getLogger(__name__)


class AssetCapabilityStore:
    """Keeps one AssetCapabilities record per asset.

    Reads of slot occupancy are open to anyone. Extracting or returning a
    capability requires the verified caller to be the current owner of the
    asset entity as reported by the registry.
    """

    def __init__(self, registry: ObjectRegistry, identity: CallerIdentity) -> None:
        self._registry = registry
        self._identity = identity
        self._records: Dict[EntityId, AssetCapabilities] = {}
        self._lock = RLock()

    def initialize(self, asset_id: EntityId, flags: Sequence[bool]) -> None:
        self._require_owner(asset_id)
        caps = AssetCapabilities.new_from_flags(asset_id, flags)
        with self._lock:
            if asset_id in self._records:
                raise AlreadyExistsError(f"Capabilities already initialized for {asset_id}.")
            self._records[asset_id] = caps
        logger.info(f"Initialized capabilities for asset {asset_id}: {caps.occupied()}")

    def exists(self, asset_id: EntityId) -> bool:
        with self._lock:
            return asset_id in self._records

    def contains(self, asset_id: EntityId, kind: str) -> bool:
        with self._lock:
            return self._record(asset_id)._contains(_check_kind(kind))

    def get(self, asset_id: EntityId, kind: str) -> AssetCapability:
        kind = _check_kind(kind)
        self._require_owner(asset_id)
        with self._lock:
            return self._record(asset_id)._extract(kind)

    def put(self, asset_id: EntityId, kind: str, cap: AssetCapability) -> None:
        kind = _check_kind(kind)
        self._require_owner(asset_id)
        if not isinstance(cap, AssetCapability) or cap.asset_id != asset_id:
            raise InvalidArgumentError("Capability does not belong to this asset.")
        with self._lock:
            self._record(asset_id)._add(kind, cap)

    @contextmanager
    def lease(self, asset_id: EntityId, kind: str) -> Iterator[AssetCapability]:
        """Extract a capability for the duration of a block, then return it."""

        cap = self.get(asset_id, kind)
        try:
            yield cap
        finally:
            with self._lock:
                self._record(asset_id)._add(kind, cap)

    def contains_mint(self, asset_id: EntityId) -> bool:
        return self.contains(asset_id, "mint")

    def contains_freeze(self, asset_id: EntityId) -> bool:
        return self.contains(asset_id, "freeze")

    def contains_burn(self, asset_id: EntityId) -> bool:
        return self.contains(asset_id, "burn")

    def get_mint(self, asset_id: EntityId) -> MintCap:
        return self.get(asset_id, "mint")

    def get_freeze(self, asset_id: EntityId) -> FreezeCap:
        return self.get(asset_id, "freeze")

    def get_burn(self, asset_id: EntityId) -> BurnCap:
        return self.get(asset_id, "burn")

    def put_mint(self, asset_id: EntityId, cap: MintCap) -> None:
        self.put(asset_id, "mint", cap)

    def put_freeze(self, asset_id: EntityId, cap: FreezeCap) -> None:
        self.put(asset_id, "freeze", cap)

    def put_burn(self, asset_id: EntityId, cap: BurnCap) -> None:
        self.put(asset_id, "burn", cap)

    def lease_mint(self, asset_id: EntityId):
        return self.lease(asset_id, "mint")

    def lease_freeze(self, asset_id: EntityId):
        return self.lease(asset_id, "freeze")

    def lease_burn(self, asset_id: EntityId):
        return self.lease(asset_id, "burn")

    def _require_owner(self, asset_id: EntityId) -> None:
        require_caller(self._identity, self._registry.resolve_owner(asset_id))

    def _record(self, asset_id: EntityId) -> AssetCapabilities:
        record = self._records.get(asset_id)
        if record is None:
            raise NotFoundError(f"No capabilities recorded for asset {asset_id}.")
        return record


def _check_kind(kind: str) -> str:
    if kind not in ("mint", "freeze", "burn"):
        raise InvalidArgumentError(f"Unknown asset capability kind: {kind}")
    return kind
