"""Ledger configuration."""

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from core.errors import InvalidArgumentError, OutOfRangeError

U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class LedgerPolicy:
    """Bounds and diagnostics applied by a ledger instance.

    max_amount caps every balance, transfer amount and supply counter.
    warn_on_leak controls whether an unconsumed nonzero CashValue reports
    itself when it is garbage-collected.
    """

    max_amount: int = U64_MAX
    warn_on_leak: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.max_amount, bool) or not isinstance(self.max_amount, int):
            raise ValueError("max_amount must be an integer.")
        if not 0 < self.max_amount <= U64_MAX:
            raise ValueError("max_amount must be within 1..2**64-1.")

    def require_amount(self, amount: int) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidArgumentError("Amount must be an integer.")
        if amount <= 0:
            raise InvalidArgumentError("Amount must be positive.")
        if amount > self.max_amount:
            raise OutOfRangeError(f"Amount exceeds the limit of {self.max_amount}.")
        return amount

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "LedgerPolicy":
        env = os.environ if environ is None else environ
        raw_max = env.get("LEDGER_MAX_AMOUNT")
        return LedgerPolicy(
            max_amount=int(raw_max) if raw_max else U64_MAX,
            warn_on_leak=_bool_env(env.get("LEDGER_WARN_ON_LEAK"), default=True),
        )


def _bool_env(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}
