"""Per-entity and per-asset capability holders with one slot per kind."""

from typing import Dict, Sequence, Tuple

from core.errors import InvalidArgumentError
from core.models import Capability, DeleteCap, EntityId, ExtendCap, TransferCap
from core.registry import ObjectRegistry

from .models import BurnCap, FreezeCap, MintCap
from .slot import Slot


def validate_flags(flags: Sequence[bool]) -> Tuple[bool, bool, bool]:
    """Return the enablement vector as a 3-tuple or fail loudly."""

    if isinstance(flags, (str, bytes)) or len(flags) != 3:
        raise InvalidArgumentError("Capability flags must have exactly three entries.")
    if not all(isinstance(flag, bool) for flag in flags):
        raise InvalidArgumentError("Capability flags must be booleans.")
    return flags[0], flags[1], flags[2]


class _CapabilityHolder:
    _KINDS: Tuple[Tuple[str, type], ...] = ()

    def __init__(self, owner_id: EntityId) -> None:
        self._owner_id = owner_id
        self._slots: Dict[str, Slot] = {kind: Slot(kind) for kind, _ in self._KINDS}

    def _add(self, kind: str, cap: Capability) -> None:
        expected = dict(self._KINDS)[kind]
        if not isinstance(cap, expected):
            raise InvalidArgumentError(
                f"Expected {expected.__name__}, got {type(cap).__name__}."
            )
        if cap.entity_id != self._owner_id:
            raise InvalidArgumentError(f"{expected.__name__} is bound to a different id.")
        self._slots[kind].put(cap)

    def _borrow(self, kind: str) -> Capability:
        return self._slots[kind].borrow()

    def _extract(self, kind: str) -> Capability:
        return self._slots[kind].take()

    def _contains(self, kind: str) -> bool:
        return self._slots[kind].is_occupied()

    def kinds(self) -> Tuple[str, ...]:
        return tuple(kind for kind, _ in self._KINDS)

    def occupied(self) -> Tuple[str, ...]:
        return tuple(kind for kind in self.kinds() if self._contains(kind))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._owner_id!r}, occupied={self.occupied()!r})"


class CapabilityBundle(_CapabilityHolder):
    """At most one extend, transfer and delete capability for one entity."""

    _KINDS = (("extend", ExtendCap), ("transfer", TransferCap), ("delete", DeleteCap))

    @property
    def entity_id(self) -> EntityId:
        return self._owner_id

    @classmethod
    def new(cls, entity_id: EntityId) -> "CapabilityBundle":
        return cls(entity_id)

    @classmethod
    def new_from_flags(
        cls, registry: ObjectRegistry, entity_id: EntityId, flags: Sequence[bool]
    ) -> "CapabilityBundle":
        extend, transfer, delete = validate_flags(flags)
        bundle = cls(entity_id)
        if extend:
            bundle.add_extend(registry.generate_extend_capability(entity_id))
        if transfer:
            bundle.add_transfer(registry.generate_transfer_capability(entity_id))
        if delete:
            bundle.add_delete(registry.generate_delete_capability(entity_id))
        return bundle

    def add_extend(self, cap: ExtendCap) -> None:
        self._add("extend", cap)

    def add_transfer(self, cap: TransferCap) -> None:
        self._add("transfer", cap)

    def add_delete(self, cap: DeleteCap) -> None:
        self._add("delete", cap)

    def borrow_extend(self) -> ExtendCap:
        return self._borrow("extend")

    def borrow_transfer(self) -> TransferCap:
        return self._borrow("transfer")

    def borrow_delete(self) -> DeleteCap:
        return self._borrow("delete")

    def extract_extend(self) -> ExtendCap:
        return self._extract("extend")

    def extract_transfer(self) -> TransferCap:
        return self._extract("transfer")

    def extract_delete(self) -> DeleteCap:
        return self._extract("delete")

    def contains_extend(self) -> bool:
        return self._contains("extend")

    def contains_transfer(self) -> bool:
        return self._contains("transfer")

    def contains_delete(self) -> bool:
        return self._contains("delete")


class AssetCapabilities(_CapabilityHolder):
    """At most one mint, freeze and burn capability for one asset."""

    _KINDS = (("mint", MintCap), ("freeze", FreezeCap), ("burn", BurnCap))

    @property
    def asset_id(self) -> EntityId:
        return self._owner_id

    @classmethod
    def new(cls, asset_id: EntityId) -> "AssetCapabilities":
        return cls(asset_id)

    @classmethod
    def new_from_flags(cls, asset_id: EntityId, flags: Sequence[bool]) -> "AssetCapabilities":
        mint, freeze, burn = validate_flags(flags)
        caps = cls(asset_id)
        if mint:
            caps.add_mint(MintCap(asset_id))
        if freeze:
            caps.add_freeze(FreezeCap(asset_id))
        if burn:
            caps.add_burn(BurnCap(asset_id))
        return caps

    def add_mint(self, cap: MintCap) -> None:
        self._add("mint", cap)

    def add_freeze(self, cap: FreezeCap) -> None:
        self._add("freeze", cap)

    def add_burn(self, cap: BurnCap) -> None:
        self._add("burn", cap)

    def borrow_mint(self) -> MintCap:
        return self._borrow("mint")

    def borrow_freeze(self) -> FreezeCap:
        return self._borrow("freeze")

    def borrow_burn(self) -> BurnCap:
        return self._borrow("burn")

    def extract_mint(self) -> MintCap:
        return self._extract("mint")

    def extract_freeze(self) -> FreezeCap:
        return self._extract("freeze")

    def extract_burn(self) -> BurnCap:
        return self._extract("burn")

    def contains_mint(self) -> bool:
        return self._contains("mint")

    def contains_freeze(self) -> bool:
        return self._contains("freeze")

    def contains_burn(self) -> bool:
        return self._contains("burn")
