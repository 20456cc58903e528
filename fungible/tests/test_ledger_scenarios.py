"""End-to-end ledger scenarios, conservation and concurrent access."""

import random
import threading
import unittest

from capabilities.bundle import AssetCapabilities
from capabilities.store import AssetCapabilityStore
from core.errors import InvalidArgumentError, NotFoundError, OutOfRangeError, PermissionDeniedError
from core.identity import ContextCallerIdentity
from core.registry import InMemoryObjectRegistry
from fungible.ledger import Ledger
from fungible.policy import LedgerPolicy


def _build(maximum=None):
    registry = InMemoryObjectRegistry()
    identity = ContextCallerIdentity()
    ledger = Ledger(registry, identity, policy=LedgerPolicy(warn_on_leak=False))
    ledger.supply.initialize("gold", maximum=maximum)
    caps = AssetCapabilities.new_from_flags("gold", [True, True, True])
    return registry, identity, ledger, caps


class LedgerScenarioTests(unittest.TestCase):
    def test_mint_stops_at_maximum(self) -> None:
        _, _, ledger, caps = _build(maximum=100)
        mint = caps.borrow_mint()
        value = ledger.mint_with_cap(mint, "gold", 100)
        with self.assertRaises(OutOfRangeError):
            ledger.mint_with_cap(mint, "gold", 1)
        self.assertEqual(ledger.supply.current_supply("gold"), 100)
        ledger.deposit(value, "alice")

    def test_repeated_deposits_share_one_account(self) -> None:
        _, _, ledger, caps = _build()
        mint = caps.borrow_mint()
        ledger.deposit(ledger.mint_with_cap(mint, "gold", 10), "alice")
        ledger.deposit(ledger.mint_with_cap(mint, "gold", 15), "alice")
        self.assertEqual(ledger.balance("alice", "gold"), 25)
        self.assertEqual(len(ledger.index.entries("alice")), 1)
        self.assertEqual(len(ledger.index), 1)

    def test_full_withdraw_then_withdraw_again(self) -> None:
        _, identity, ledger, caps = _build()
        ledger.deposit(ledger.mint_with_cap(caps.borrow_mint(), "gold", 20), "alice")
        with identity.acting_as("alice"):
            value = ledger.withdraw("alice", "gold", 20)
            self.assertEqual(value.amount, 20)
            self.assertIsNone(ledger.index.lookup("alice", "gold"))
            with self.assertRaises(NotFoundError):
                ledger.withdraw("alice", "gold", 1)
        ledger.deposit(value, "bob")

    def test_frozen_account_survives_full_withdraw(self) -> None:
        _, identity, ledger, caps = _build()
        freeze = caps.borrow_freeze()
        ledger.deposit(ledger.mint_with_cap(caps.borrow_mint(), "gold", 20), "alice")
        ledger.freeze(freeze, "alice", "gold")
        with identity.acting_as("alice"):
            value = ledger.withdraw("alice", "gold", 20)
        self.assertTrue(ledger.subaccount_exists("alice", "gold"))
        self.assertEqual(ledger.balance("alice", "gold"), 0)
        self.assertTrue(ledger.is_frozen("alice", "gold"))
        self.assertFalse(ledger.prune("alice", "gold"))

        ledger.unfreeze(freeze, "alice", "gold")
        self.assertTrue(ledger.subaccount_exists("alice", "gold"))
        self.assertTrue(ledger.prune("alice", "gold"))
        self.assertFalse(ledger.subaccount_exists("alice", "gold"))
        ledger.burn_value(caps.borrow_burn(), value)

    def test_mint_then_burn_restores_supply(self) -> None:
        _, _, ledger, caps = _build()
        ledger.deposit(ledger.mint_with_cap(caps.borrow_mint(), "gold", 40), "alice")
        before = ledger.supply.current_supply("gold")
        ledger.deposit(ledger.mint_with_cap(caps.borrow_mint(), "gold", 15), "alice")
        ledger.burn_with_cap(caps.borrow_burn(), "gold", 15, "alice")
        self.assertEqual(ledger.supply.current_supply("gold"), before)
        self.assertEqual(ledger.balance("alice", "gold"), 40)

    def test_supply_equals_balances_plus_transit(self) -> None:
        _, identity, ledger, caps = _build()
        mint = caps.borrow_mint()
        ledger.deposit(ledger.mint_with_cap(mint, "gold", 70), "alice")
        ledger.deposit(ledger.mint_with_cap(mint, "gold", 30), "bob")
        with identity.acting_as("alice"):
            ledger.transfer("alice", "gold", "carol", 25)
            in_transit = ledger.withdraw("alice", "gold", 5)
        self.assertEqual(
            ledger.asset_total("gold") + in_transit.amount,
            ledger.supply.current_supply("gold"),
        )
        ledger.deposit(in_transit, "carol")
        self.assertEqual(ledger.asset_total("gold"), 100)


class IssuerWorkflowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = InMemoryObjectRegistry()
        self.identity = ContextCallerIdentity()
        self.store = AssetCapabilityStore(self.registry, self.identity)
        self.ledger = Ledger(self.registry, self.identity)
        self.asset = self.registry.create_entity("issuer")
        self.ledger.supply.initialize(self.asset, maximum=1_000)
        with self.identity.acting_as("issuer"):
            self.store.initialize(self.asset, [True, True, False])

    def test_issuer_mints_through_leased_capability(self) -> None:
        with self.identity.acting_as("issuer"):
            with self.store.lease_mint(self.asset) as mint:
                self.ledger.deposit(self.ledger.mint_with_cap(mint, self.asset, 250), "alice")
        self.assertTrue(self.store.contains_mint(self.asset))
        self.assertEqual(self.ledger.balance("alice", self.asset), 250)

    def test_non_issuer_cannot_take_capability(self) -> None:
        with self.identity.acting_as("alice"):
            with self.assertRaises(PermissionDeniedError):
                self.store.get_mint(self.asset)
        self.assertFalse(self.store.contains_burn(self.asset))

    def test_issuer_freezes_holder(self) -> None:
        with self.identity.acting_as("issuer"):
            with self.store.lease_freeze(self.asset) as freeze:
                self.ledger.freeze(freeze, "alice", self.asset)
        self.assertTrue(self.ledger.is_frozen("alice", self.asset))


class ConcurrentLedgerTests(unittest.TestCase):
    owners = ("alice", "bob", "carol", "dave")

    def test_concurrent_transfers_conserve_total(self) -> None:
        _, identity, ledger, caps = _build()
        mint = caps.borrow_mint()
        for owner in self.owners:
            ledger.deposit(ledger.mint_with_cap(mint, "gold", 100), owner)
        errors = []

        def trade(owner: str, seed: int) -> None:
            rng = random.Random(seed)
            with identity.acting_as(owner):
                for _ in range(200):
                    to = rng.choice(self.owners)
                    try:
                        ledger.transfer(owner, "gold", to, rng.randint(1, 30))
                    except (InvalidArgumentError, NotFoundError):
                        continue
                    except Exception as exc:  # pragma: no cover - surfaced below
                        errors.append(exc)

        workers = [
            threading.Thread(target=trade, args=(owner, seed))
            for seed, owner in enumerate(self.owners)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        self.assertEqual(errors, [])
        self.assertEqual(ledger.asset_total("gold"), 400)
        self.assertEqual(
            sum(ledger.balance(owner, "gold") for owner in self.owners), 400
        )
        self.assertEqual(ledger.supply.current_supply("gold"), 400)

    def test_total_is_constant_while_transfers_run(self) -> None:
        _, identity, ledger, caps = _build()
        mint = caps.borrow_mint()
        for owner in self.owners:
            ledger.deposit(ledger.mint_with_cap(mint, "gold", 100), owner)
        done = threading.Event()
        samples = []

        def trade(owner: str, seed: int) -> None:
            rng = random.Random(seed)
            with identity.acting_as(owner):
                for _ in range(300):
                    try:
                        ledger.transfer(owner, "gold", rng.choice(self.owners), rng.randint(1, 100))
                    except (InvalidArgumentError, NotFoundError):
                        continue

        def sample() -> None:
            while not done.is_set():
                samples.append(ledger.asset_total("gold"))

        sampler = threading.Thread(target=sample)
        workers = [
            threading.Thread(target=trade, args=(owner, seed))
            for seed, owner in enumerate(self.owners)
        ]
        sampler.start()
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        done.set()
        sampler.join()

        self.assertTrue(samples)
        self.assertEqual(set(samples), {400})

    def test_concurrent_first_deposits_create_one_account(self) -> None:
        _, _, ledger, caps = _build()
        mint = caps.borrow_mint()
        values = [ledger.mint_with_cap(mint, "gold", 1) for _ in range(32)]
        barrier = threading.Barrier(len(values))

        def pay(value) -> None:
            barrier.wait()
            ledger.deposit(value, "carol")

        workers = [threading.Thread(target=pay, args=(value,)) for value in values]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        self.assertEqual(ledger.balance("carol", "gold"), 32)
        self.assertEqual(len(ledger.index), 1)
        self.assertTrue(all(value.consumed for value in values))


if __name__ == "__main__":
    unittest.main()
