"""Linear transfer unit for fungible value in transit."""

from threading import Lock
from typing import List, Sequence
import logging
import warnings

from core.errors import InvalidArgumentError
from core.linear import Linear
from core.models import EntityId

logger = logging.getLogger(__name__)

_FABRICATE = object()


class LinearValueLeakWarning(ResourceWarning):
    """Emitted when a nonzero CashValue is collected without being consumed."""


class CashValue(Linear):
    """A quantity of one asset that must be consumed exactly once.

    Instances are produced only by the ledger (minting, withdrawing,
    splitting or merging). Depositing, merging, burning or destroying a
    zero value consumes them; a consumed value can no longer be spent.
    """

    __slots__ = ("_asset_id", "_amount", "_consumed", "_warn_on_leak", "_lock")

    def __init__(
        self,
        asset_id: EntityId,
        amount: int,
        *,
        _key: object = None,
        warn_on_leak: bool = True,
    ) -> None:
        if _key is not _FABRICATE:
            raise TypeError("CashValue can only be created by the ledger.")
        self._asset_id = asset_id
        self._amount = amount
        self._consumed = False
        self._warn_on_leak = warn_on_leak
        self._lock = Lock()

    @property
    def asset_id(self) -> EntityId:
        return self._asset_id

    @property
    def amount(self) -> int:
        return self._amount

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _consume(self) -> int:
        with self._lock:
            if self._consumed:
                raise InvalidArgumentError("CashValue has already been consumed.")
            self._consumed = True
            return self._amount

    def _restore(self) -> None:
        with self._lock:
            self._consumed = False

    def __del__(self) -> None:
        if getattr(self, "_consumed", True) or not self._amount or not self._warn_on_leak:
            return
        logger.error(f"Unconsumed CashValue dropped: {self._amount} of {self._asset_id}")
        warnings.warn(
            f"CashValue of {self._amount} {self._asset_id} was dropped without being consumed.",
            LinearValueLeakWarning,
        )

    def __repr__(self) -> str:
        state = ", consumed" if self._consumed else ""
        return f"CashValue(asset_id={self._asset_id!r}, amount={self._amount}{state})"


def fabricate(asset_id: EntityId, amount: int, warn_on_leak: bool = True) -> CashValue:
    return CashValue(asset_id, amount, _key=_FABRICATE, warn_on_leak=warn_on_leak)


def merge(values: Sequence[CashValue]) -> CashValue:
    """Fold same-asset values into one, consuming every input."""

    items = list(values)
    if not items:
        raise InvalidArgumentError("Cannot merge an empty list of values.")
    if len({id(item) for item in items}) != len(items):
        raise InvalidArgumentError("The same CashValue appears more than once.")
    if not all(isinstance(item, CashValue) for item in items):
        raise InvalidArgumentError("Only CashValue instances can be merged.")
    asset_id = items[0].asset_id
    for item in items:
        if item.asset_id != asset_id:
            raise InvalidArgumentError("Cannot merge values of different assets.")

    consumed: List[CashValue] = []
    total = 0
    try:
        for item in items:
            total += item._consume()
            consumed.append(item)
    except InvalidArgumentError:
        for item in consumed:
            item._restore()
        raise
    return fabricate(asset_id, total, warn_on_leak=items[0]._warn_on_leak)


def extract(cash: CashValue, amount: int) -> CashValue:
    """Split ``amount`` off ``cash`` into a new value of the same asset."""

    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidArgumentError("Amount must be a non-negative integer.")
    with cash._lock:
        if cash._consumed:
            raise InvalidArgumentError("CashValue has already been consumed.")
        if amount > cash._amount:
            raise InvalidArgumentError("Cannot extract more than the value holds.")
        cash._amount -= amount
    return fabricate(cash.asset_id, amount, warn_on_leak=cash._warn_on_leak)


def destroy_zero(cash: CashValue) -> None:
    """Consume a value that holds nothing."""

    with cash._lock:
        if cash._consumed:
            raise InvalidArgumentError("CashValue has already been consumed.")
        if cash._amount != 0:
            raise InvalidArgumentError("Only zero-amount values can be destroyed.")
        cash._consumed = True
