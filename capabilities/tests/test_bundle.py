"""Invariant tests for capability slots and bundles."""

import itertools
import unittest

from capabilities.bundle import AssetCapabilities, CapabilityBundle
from capabilities.models import BurnCap, FreezeCap, MintCap
from capabilities.slot import Slot
from core.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from core.models import DeleteCap, ExtendCap, TransferCap
from core.registry import InMemoryObjectRegistry


class SlotTests(unittest.TestCase):
    def test_empty_slot_reads_fail(self) -> None:
        slot = Slot("mint")
        self.assertFalse(slot.is_occupied())
        with self.assertRaises(NotFoundError):
            slot.borrow()
        with self.assertRaises(NotFoundError):
            slot.take()

    def test_borrow_returns_same_object(self) -> None:
        slot = Slot("delete")
        value = object()
        slot.put(value)
        self.assertIs(slot.borrow(), value)
        self.assertTrue(slot.is_occupied())

    def test_put_never_overwrites(self) -> None:
        slot = Slot("delete")
        first, second = object(), object()
        slot.put(first)
        with self.assertRaises(AlreadyExistsError):
            slot.put(second)
        self.assertIs(slot.take(), first)
        self.assertFalse(slot.is_occupied())

    def test_put_none_rejected(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            Slot("delete").put(None)


class CapabilityBundleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = InMemoryObjectRegistry()
        self.entity_id = self.registry.create_entity("alice")

    def test_flags_match_contents_for_every_vector(self) -> None:
        for flags in itertools.product((False, True), repeat=3):
            with self.subTest(flags=flags):
                bundle = CapabilityBundle.new_from_flags(self.registry, self.entity_id, list(flags))
                self.assertEqual(
                    (bundle.contains_extend(), bundle.contains_transfer(), bundle.contains_delete()),
                    flags,
                )

    def test_malformed_flags_rejected(self) -> None:
        for flags in ([], [True], [True, False], [True, False, True, False], ["yes", 1, 0]):
            with self.subTest(flags=flags):
                with self.assertRaises(InvalidArgumentError):
                    CapabilityBundle.new_from_flags(self.registry, self.entity_id, flags)

    def test_new_bundle_is_empty(self) -> None:
        bundle = CapabilityBundle.new(self.entity_id)
        self.assertEqual(bundle.occupied(), ())
        with self.assertRaises(NotFoundError):
            bundle.borrow_delete()
        with self.assertRaises(NotFoundError):
            bundle.extract_transfer()

    def test_add_on_occupied_slot_keeps_existing(self) -> None:
        bundle = CapabilityBundle.new_from_flags(self.registry, self.entity_id, [False, False, True])
        original = bundle.borrow_delete()
        with self.assertRaises(AlreadyExistsError):
            bundle.add_delete(self.registry.generate_delete_capability(self.entity_id))
        self.assertIs(bundle.borrow_delete(), original)

    def test_add_rejects_foreign_entity(self) -> None:
        other = self.registry.create_entity("bob")
        bundle = CapabilityBundle.new(self.entity_id)
        with self.assertRaises(InvalidArgumentError):
            bundle.add_extend(self.registry.generate_extend_capability(other))
        self.assertFalse(bundle.contains_extend())

    def test_add_rejects_wrong_kind(self) -> None:
        bundle = CapabilityBundle.new(self.entity_id)
        with self.assertRaises(InvalidArgumentError):
            bundle.add_delete(self.registry.generate_transfer_capability(self.entity_id))

    def test_extract_then_add_round_trip(self) -> None:
        bundle = CapabilityBundle.new_from_flags(self.registry, self.entity_id, [True, True, True])
        before = bundle.occupied()

        cap = bundle.extract_transfer()
        self.assertIsInstance(cap, TransferCap)
        self.assertFalse(bundle.contains_transfer())

        bundle.add_transfer(cap)
        self.assertEqual(bundle.occupied(), before)
        self.assertIs(bundle.borrow_transfer(), cap)

    def test_borrow_does_not_remove(self) -> None:
        bundle = CapabilityBundle.new_from_flags(self.registry, self.entity_id, [True, False, False])
        cap = bundle.borrow_extend()
        self.assertIsInstance(cap, ExtendCap)
        self.assertTrue(bundle.contains_extend())
        self.assertIs(bundle.extract_extend(), cap)

    def test_capabilities_bound_to_entity(self) -> None:
        bundle = CapabilityBundle.new_from_flags(self.registry, self.entity_id, [True, True, True])
        for cap in (bundle.borrow_extend(), bundle.borrow_transfer(), bundle.borrow_delete()):
            self.assertEqual(cap.entity_id, self.entity_id)
        self.assertIsInstance(bundle.borrow_delete(), DeleteCap)


class AssetCapabilitiesTests(unittest.TestCase):
    def test_flags_match_contents_for_every_vector(self) -> None:
        for flags in itertools.product((False, True), repeat=3):
            with self.subTest(flags=flags):
                caps = AssetCapabilities.new_from_flags("asset", list(flags))
                self.assertEqual(
                    (caps.contains_mint(), caps.contains_freeze(), caps.contains_burn()),
                    flags,
                )

    def test_malformed_flags_rejected(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            AssetCapabilities.new_from_flags("asset", [True, True])

    def test_asset_mismatch_rejected(self) -> None:
        caps = AssetCapabilities.new("asset")
        with self.assertRaises(InvalidArgumentError):
            caps.add_mint(MintCap("other"))

    def test_extract_then_add_round_trip(self) -> None:
        caps = AssetCapabilities.new_from_flags("asset", [True, True, True])
        burn = caps.extract_burn()
        self.assertIsInstance(burn, BurnCap)
        self.assertEqual(burn.asset_id, "asset")
        self.assertFalse(caps.contains_burn())
        caps.add_burn(burn)
        self.assertEqual(caps.occupied(), ("mint", "freeze", "burn"))

    def test_occupied_slot_rejects_second_capability(self) -> None:
        caps = AssetCapabilities.new_from_flags("asset", [False, True, False])
        original = caps.borrow_freeze()
        with self.assertRaises(AlreadyExistsError):
            caps.add_freeze(FreezeCap("asset"))
        self.assertIs(caps.borrow_freeze(), original)


if __name__ == "__main__":
    unittest.main()
