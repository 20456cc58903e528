"""Capability-gated issuance counters per asset."""

from dataclasses import dataclass
from typing import Dict, Optional
import logging

from capabilities.models import AssetCapability, BurnCap, MintCap
from core.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError, OutOfRangeError
from core.models import EntityId

from .locks import KeyedLocks, supply_key
from .models import Supply
from .policy import LedgerPolicy

logger = logging.getLogger(__name__)


@dataclass
class _SupplyRecord:
    current: int = 0
    maximum: Optional[int] = None


class SupplyTracker:
    """Current and maximum issuance for every initialized asset."""

    def __init__(
        self,
        locks: Optional[KeyedLocks] = None,
        policy: Optional[LedgerPolicy] = None,
    ) -> None:
        self._locks = locks or KeyedLocks()
        self._policy = policy or LedgerPolicy()
        self._records: Dict[EntityId, _SupplyRecord] = {}

    def initialize(self, asset_id: EntityId, maximum: Optional[int] = None) -> None:
        if maximum is not None:
            if isinstance(maximum, bool) or not isinstance(maximum, int) or maximum < 0:
                raise InvalidArgumentError("Maximum supply must be a non-negative integer.")
            if maximum > self._policy.max_amount:
                raise OutOfRangeError(f"Maximum supply exceeds {self._policy.max_amount}.")
        with self._locks.hold(supply_key(asset_id)):
            if asset_id in self._records:
                raise AlreadyExistsError(f"Supply already initialized for {asset_id}.")
            self._records[asset_id] = _SupplyRecord(maximum=maximum)
        logger.info(f"Initialized supply for asset {asset_id} (maximum={maximum})")

    @property
    def locks(self) -> KeyedLocks:
        return self._locks

    def exists(self, asset_id: EntityId) -> bool:
        return asset_id in self._records

    def current_supply(self, asset_id: EntityId) -> int:
        return self._record(asset_id).current

    def maximum_supply(self, asset_id: EntityId) -> Optional[int]:
        return self._record(asset_id).maximum

    def snapshot(self, asset_id: EntityId) -> Supply:
        with self._locks.hold(supply_key(asset_id)):
            record = self._record(asset_id)
            return Supply(current=record.current, maximum=record.maximum)

    def increase(self, cap: MintCap, asset_id: EntityId, amount: int) -> int:
        with self._locks.hold(supply_key(asset_id)):
            self.check_increase(cap, asset_id, amount)
            return self.apply(asset_id, amount)

    def decrease(self, cap: BurnCap, asset_id: EntityId, amount: int) -> int:
        with self._locks.hold(supply_key(asset_id)):
            self.check_decrease(cap, asset_id, amount)
            return self.apply(asset_id, -amount)

    def remove(self, cap: BurnCap, asset_id: EntityId) -> None:
        _require_cap(cap, BurnCap, asset_id)
        with self._locks.hold(supply_key(asset_id)):
            record = self._record(asset_id)
            if record.current != 0:
                raise InvalidArgumentError("Cannot remove supply with outstanding issuance.")
            del self._records[asset_id]
        logger.info(f"Removed supply tracker for asset {asset_id}")

    def check_increase(self, cap: MintCap, asset_id: EntityId, amount: int) -> None:
        """Validate a mint of ``amount`` without applying it.

        Only meaningful while the caller holds ``supply_key(asset_id)`` from
        this tracker's ``locks`` and applies the change under the same hold.
        """

        _require_cap(cap, MintCap, asset_id)
        self._policy.require_amount(amount)
        record = self._record(asset_id)
        limit = self._policy.max_amount if record.maximum is None else record.maximum
        if record.current + amount > limit:
            raise OutOfRangeError(
                f"Supply of {asset_id} would exceed {limit} "
                f"(current {record.current}, requested {amount})."
            )

    def check_decrease(self, cap: BurnCap, asset_id: EntityId, amount: int) -> None:
        """Validate a burn of ``amount``; same locking contract as ``check_increase``."""

        _require_cap(cap, BurnCap, asset_id)
        self._policy.require_amount(amount)
        record = self._record(asset_id)
        if amount > record.current:
            raise InvalidArgumentError(
                f"Supply of {asset_id} would underflow "
                f"(current {record.current}, requested {amount})."
            )

    def apply(self, asset_id: EntityId, delta: int) -> int:
        """Add ``delta`` to current supply.

        Performs no validation: call it only after the matching check, with
        ``supply_key(asset_id)`` still held.
        """

        record = self._record(asset_id)
        record.current += delta
        logger.info(f"Supply of {asset_id} changed by {delta:+d} to {record.current}")
        return record.current

    def _record(self, asset_id: EntityId) -> _SupplyRecord:
        record = self._records.get(asset_id)
        if record is None:
            raise NotFoundError(f"No supply recorded for asset {asset_id}.")
        return record


def _require_cap(cap: AssetCapability, expected: type, asset_id: EntityId) -> None:
    if not isinstance(cap, expected):
        raise InvalidArgumentError(f"Expected {expected.__name__}, got {type(cap).__name__}.")
    if cap.asset_id != asset_id:
        raise InvalidArgumentError(f"{expected.__name__} is bound to a different asset.")
