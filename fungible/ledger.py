"""Balance ledger over lazily created per-owner sub-accounts."""

from typing import Callable, Dict, FrozenSet, Optional, Sequence, Tuple, TypeVar
import logging

from capabilities.models import BurnCap, FreezeCap, MintCap
from core.errors import InvalidArgumentError, NotFoundError, OutOfRangeError
from core.identity import CallerIdentity, require_caller
from core.models import EntityId, OwnerId
from core.registry import ObjectRegistry

from . import cash as cash_ops
from .account_index import AccountIndex
from .cash import CashValue, fabricate
from .locks import LockKey, account_key, supply_key
from .models import SubAccount, SubAccountView
from .policy import LedgerPolicy
from .supply import SupplyTracker

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Ledger:
    """Owns balances, issuance and the sub-account lifecycle for every asset.

    Each public operation is one indivisible transition: preconditions are
    checked under the relevant per-key locks before anything is mutated.
    Registry calls (entity allocation and deletion) always happen with no
    lock held. A sub-account comes into existence on first deposit or
    explicit provisioning and is deleted when a withdrawal leaves it empty
    and unfrozen.
    """

    def __init__(
        self,
        registry: ObjectRegistry,
        identity: CallerIdentity,
        supply: Optional[SupplyTracker] = None,
        index: Optional[AccountIndex] = None,
        policy: Optional[LedgerPolicy] = None,
    ) -> None:
        self._registry = registry
        self._identity = identity
        self._policy = policy or LedgerPolicy()
        self._supply = supply or SupplyTracker(policy=self._policy)
        self._locks = self._supply.locks
        self._index = index or AccountIndex()
        self._accounts: Dict[EntityId, SubAccount] = {}

    @property
    def supply(self) -> SupplyTracker:
        return self._supply

    @property
    def index(self) -> AccountIndex:
        return self._index

    @property
    def policy(self) -> LedgerPolicy:
        return self._policy

    # Provisioning

    def get_or_create_subaccount(
        self, owner: OwnerId, asset_id: EntityId, create_on_demand: bool
    ) -> SubAccountView:
        return self._apply_to_account(
            owner, asset_id, lambda account: account.view(), create=create_on_demand
        )

    def ensure_subaccount(self, owner: OwnerId, asset_id: EntityId) -> SubAccountView:
        return self.get_or_create_subaccount(owner, asset_id, create_on_demand=True)

    def subaccount_exists(self, owner: OwnerId, asset_id: EntityId) -> bool:
        return self._index.lookup(owner, asset_id) is not None

    def holdings(self, owner: OwnerId) -> Tuple[SubAccountView, ...]:
        views = []
        for asset_id in sorted(self._index.entries(owner)):
            with self._locks.hold(account_key(owner, asset_id)):
                account = self._find(owner, asset_id)
                if account is not None:
                    views.append(account.view())
        return tuple(views)

    def balance(self, owner: OwnerId, asset_id: EntityId) -> int:
        with self._locks.hold(account_key(owner, asset_id)):
            account = self._find(owner, asset_id)
            return account.balance if account is not None else 0

    def is_frozen(self, owner: OwnerId, asset_id: EntityId) -> bool:
        with self._locks.hold(account_key(owner, asset_id)):
            account = self._find(owner, asset_id)
            return account.frozen if account is not None else False

    def asset_total(self, asset_id: EntityId) -> int:
        """Sum of every live sub-account balance for ``asset_id``.

        The sum is read while holding the lock of every account of the asset,
        retrying until the set of holders is stable under those locks, so a
        transfer is never observed half applied.
        """

        owners = self._holders(asset_id)
        while True:
            with self._locks.hold(*(account_key(owner, asset_id) for owner in owners)):
                current = self._holders(asset_id)
                if current == owners:
                    return sum(self._require(owner, asset_id).balance for owner in owners)
            owners = current

    # Movement

    def withdraw(self, owner: OwnerId, asset_id: EntityId, amount: int) -> CashValue:
        require_caller(self._identity, owner)
        self._policy.require_amount(amount)
        with self._locks.hold(account_key(owner, asset_id)):
            account = self._require(owner, asset_id)
            self._check_debit(account, amount)
            collected = self._debit(account, amount)
            value = self._fabricate(asset_id, amount)
        self._reclaim(collected)
        return value

    def deposit(self, cash: CashValue, to: OwnerId) -> SubAccountView:
        _require_live(cash)

        def credit(account: SubAccount) -> SubAccountView:
            self._check_credit(account, cash.amount)
            account.balance += cash._consume()
            return account.view()

        view = self._apply_to_account(to, cash.asset_id, credit, create=True)
        logger.debug(f"Deposited {cash.amount} of {cash.asset_id} to {to}")
        return view

    def transfer(self, owner: OwnerId, asset_id: EntityId, to: OwnerId, amount: int) -> None:
        require_caller(self._identity, owner)
        self._policy.require_amount(amount)
        if self._index.lookup(owner, asset_id) is None:
            raise NotFoundError(f"{owner} holds no sub-account for {asset_id}.")

        def move(target: SubAccount) -> Optional[SubAccount]:
            source = self._require(owner, asset_id)
            self._check_debit(source, amount)
            if source is target:
                return None
            self._check_credit(target, amount)
            collected = self._debit(source, amount)
            target.balance += amount
            return collected

        collected = self._apply_to_account(
            to, asset_id, move, create=True, extra_keys=(account_key(owner, asset_id),)
        )
        self._reclaim(collected)
        logger.debug(f"Transferred {amount} of {asset_id} from {owner} to {to}")

    # Value in transit

    def merge(self, values: Sequence[CashValue]) -> CashValue:
        return cash_ops.merge(values)

    def extract(self, cash: CashValue, amount: int) -> CashValue:
        return cash_ops.extract(cash, amount)

    def destroy_zero(self, cash: CashValue) -> None:
        cash_ops.destroy_zero(cash)

    # Issuance

    def mint_with_cap(self, cap: MintCap, asset_id: EntityId, amount: int) -> CashValue:
        self._supply.increase(cap, asset_id, amount)
        return self._fabricate(asset_id, amount)

    def mint_to(self, cap: MintCap, asset_id: EntityId, amount: int, to: OwnerId) -> SubAccountView:
        """Mint ``amount`` straight into ``to``'s sub-account as one transition.

        Supply only grows if the credit succeeds, so no value is ever left in
        transit when the destination cannot be provisioned or would overflow.
        """

        def issue(account: SubAccount) -> SubAccountView:
            self._supply.check_increase(cap, asset_id, amount)
            self._check_credit(account, amount)
            self._supply.apply(asset_id, amount)
            account.balance += amount
            return account.view()

        view = self._apply_to_account(
            to, asset_id, issue, create=True, extra_keys=(supply_key(asset_id),)
        )
        logger.debug(f"Minted {amount} of {asset_id} to {to}")
        return view

    def burn_with_cap(
        self, cap: BurnCap, asset_id: EntityId, amount: int, from_owner: OwnerId
    ) -> None:
        self._policy.require_amount(amount)
        with self._locks.hold(supply_key(asset_id), account_key(from_owner, asset_id)):
            self._supply.check_decrease(cap, asset_id, amount)
            account = self._require(from_owner, asset_id)
            self._check_debit(account, amount)
            self._supply.apply(asset_id, -amount)
            collected = self._debit(account, amount)
        self._reclaim(collected)

    def burn_value(self, cap: BurnCap, cash: CashValue) -> None:
        _require_live(cash)
        with self._locks.hold(supply_key(cash.asset_id)):
            self._supply.check_decrease(cap, cash.asset_id, cash.amount)
            amount = cash._consume()
            self._supply.apply(cash.asset_id, -amount)

    # Sanctions

    def freeze(self, cap: FreezeCap, owner: OwnerId, asset_id: EntityId) -> SubAccountView:
        return self._set_frozen(cap, owner, asset_id, True)

    def unfreeze(self, cap: FreezeCap, owner: OwnerId, asset_id: EntityId) -> SubAccountView:
        return self._set_frozen(cap, owner, asset_id, False)

    def prune(self, owner: OwnerId, asset_id: EntityId) -> bool:
        """Delete an empty, unfrozen sub-account; return whether one was removed."""

        with self._locks.hold(account_key(owner, asset_id)):
            account = self._find(owner, asset_id)
            if account is None or not account.is_collectable():
                return False
            self._detach(account)
        self._reclaim(account)
        return True

    def _set_frozen(
        self, cap: FreezeCap, owner: OwnerId, asset_id: EntityId, frozen: bool
    ) -> SubAccountView:
        if not isinstance(cap, FreezeCap):
            raise InvalidArgumentError(f"Expected FreezeCap, got {type(cap).__name__}.")
        if cap.asset_id != asset_id:
            raise InvalidArgumentError("FreezeCap is bound to a different asset.")

        def toggle(account: SubAccount) -> SubAccountView:
            account.frozen = frozen
            return account.view()

        view = self._apply_to_account(owner, asset_id, toggle, create=frozen)
        logger.info(f"{'Froze' if frozen else 'Unfroze'} {owner} for asset {asset_id}")
        return view

    # Internals

    def _apply_to_account(
        self,
        owner: OwnerId,
        asset_id: EntityId,
        apply: Callable[[SubAccount], R],
        create: bool,
        extra_keys: Tuple[LockKey, ...] = (),
    ) -> R:
        """Run ``apply`` on the (owner, asset) sub-account under its lock.

        When the account is missing and ``create`` is set, a fresh entity is
        allocated outside the lock and only registered once ``apply`` has
        succeeded on it; an unused allocation is released afterwards.
        """

        spare: Optional[SubAccount] = None
        try:
            while True:
                if create and spare is None and self._index.lookup(owner, asset_id) is None:
                    spare = self._allocate(owner, asset_id)
                with self._locks.hold(account_key(owner, asset_id), *extra_keys):
                    account = self._find(owner, asset_id)
                    if account is not None:
                        return apply(account)
                    if not create:
                        raise NotFoundError(f"{owner} holds no sub-account for {asset_id}.")
                    if spare is None:
                        continue
                    result = apply(spare)
                    self._attach(spare)
                    spare = None
                    return result
        finally:
            if spare is not None:
                self._registry.delete_entity(spare.delete_capability)
                logger.debug(f"Released unused sub-account entity {spare.account_id}")

    def _allocate(self, owner: OwnerId, asset_id: EntityId) -> SubAccount:
        account_id = self._registry.create_entity(owner)
        transfer = self._registry.generate_transfer_capability(account_id)
        self._registry.disable_ungated_transfer(transfer)
        return SubAccount(
            account_id=account_id,
            owner=owner,
            asset_id=asset_id,
            delete_capability=self._registry.generate_delete_capability(account_id),
        )

    def _attach(self, account: SubAccount) -> None:
        self._index.ensure_index(account.owner)
        self._index.register(account.owner, account.asset_id, account.account_id)
        self._accounts[account.account_id] = account
        logger.info(
            f"Created sub-account {account.account_id} for {account.owner} "
            f"holding {account.asset_id}"
        )

    def _detach(self, account: SubAccount) -> None:
        self._index.unregister(account.owner, account.asset_id)
        del self._accounts[account.account_id]

    def _reclaim(self, account: Optional[SubAccount]) -> None:
        if account is None:
            return
        self._registry.delete_entity(account.delete_capability)
        logger.info(
            f"Deleted empty sub-account {account.account_id} of {account.owner} "
            f"for {account.asset_id}"
        )

    def _holders(self, asset_id: EntityId) -> FrozenSet[OwnerId]:
        return frozenset(
            account.owner
            for account in tuple(self._accounts.values())
            if account.asset_id == asset_id
        )

    def _find(self, owner: OwnerId, asset_id: EntityId) -> Optional[SubAccount]:
        account_id = self._index.lookup(owner, asset_id)
        if account_id is None:
            return None
        return self._accounts[account_id]

    def _require(self, owner: OwnerId, asset_id: EntityId) -> SubAccount:
        account = self._find(owner, asset_id)
        if account is None:
            raise NotFoundError(f"{owner} holds no sub-account for {asset_id}.")
        return account

    def _check_debit(self, account: SubAccount, amount: int) -> None:
        if account.balance < amount:
            raise InvalidArgumentError(
                f"Insufficient balance: {account.balance} available, {amount} requested."
            )

    def _check_credit(self, account: SubAccount, amount: int) -> None:
        if account.balance + amount > self._policy.max_amount:
            raise OutOfRangeError(f"Balance would exceed {self._policy.max_amount}.")

    def _debit(self, account: SubAccount, amount: int) -> Optional[SubAccount]:
        """Subtract ``amount`` and detach the account if it is now collectable."""

        account.balance -= amount
        if account.is_collectable():
            self._detach(account)
            return account
        return None

    def _fabricate(self, asset_id: EntityId, amount: int) -> CashValue:
        return fabricate(asset_id, amount, warn_on_leak=self._policy.warn_on_leak)


def _require_live(cash: CashValue) -> None:
    if not isinstance(cash, CashValue):
        raise InvalidArgumentError("Expected a CashValue.")
    if cash.consumed:
        raise InvalidArgumentError("CashValue has already been consumed.")
