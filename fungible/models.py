"""Balance and supply records for the fungible ledger."""

from dataclasses import dataclass
from typing import Dict, Optional

from core.models import DeleteCap, EntityId, OwnerId


@dataclass(frozen=True)
class Supply:
    current: int
    maximum: Optional[int] = None

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {"current": self.current, "maximum": self.maximum}


@dataclass
class SubAccount:
    """Per-(owner, asset) balance record; reachable only through the account index."""

    account_id: EntityId
    owner: OwnerId
    asset_id: EntityId
    delete_capability: DeleteCap
    balance: int = 0
    frozen: bool = False

    def is_collectable(self) -> bool:
        return self.balance == 0 and not self.frozen

    def view(self) -> "SubAccountView":
        return SubAccountView(
            account_id=self.account_id,
            owner=self.owner,
            asset_id=self.asset_id,
            balance=self.balance,
            frozen=self.frozen,
        )


@dataclass(frozen=True)
class SubAccountView:
    account_id: EntityId
    owner: OwnerId
    asset_id: EntityId
    balance: int
    frozen: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "account_id": self.account_id,
            "owner": self.owner,
            "asset_id": self.asset_id,
            "balance": self.balance,
            "frozen": self.frozen,
        }
