"""
Inventory store tests.

Stock counts are integers >= 0 on both backends, whatever the delta.
"""

import math
import unittest

import pytest

from storefront.models import StockLevel
from storefront.services.inventory_service import MemoryInventoryStore, SqlInventoryStore, set_stock_as


class MemoryInventoryTests(unittest.TestCase):
    def setUp(self):
        self.inventory = MemoryInventoryStore({"TEE-1": 3})

    def test_unknown_product_reads_zero(self):
        self.assertEqual(self.inventory.get_stock("NOPE"), 0)

    def test_set_stock_floors_and_clamps(self):
        self.assertEqual(self.inventory.set_stock("TEE-1", 4.9), 4)
        self.assertEqual(self.inventory.set_stock("TEE-1", -2), 0)
        self.assertEqual(self.inventory.set_stock("TEE-1", "garbage"), 0)
        self.assertEqual(self.inventory.get_stock("TEE-1"), 0)

    def test_adjust_stock_applies_delta(self):
        self.assertEqual(self.inventory.adjust_stock("TEE-1", 2), 5)
        self.assertEqual(self.inventory.adjust_stock("TEE-1", -1), 4)

    def test_non_finite_delta_leaves_count_unchanged(self):
        self.assertEqual(self.inventory.adjust_stock("TEE-1", math.nan), 3)
        self.assertEqual(self.inventory.adjust_stock("TEE-1", "x"), 3)

    def test_uncommitted_writes_roll_back(self):
        self.inventory.adjust_stock("TEE-1", -3, commit=False)
        self.assertEqual(self.inventory.get_stock("TEE-1"), 0)
        self.inventory.rollback()
        self.assertEqual(self.inventory.get_stock("TEE-1"), 3)

    def test_set_stock_as_returns_stored_value(self):
        self.assertEqual(set_stock_as(self.inventory, "TEE-1", 12, actor="ops@shop.test"), 12)
        self.assertEqual(self.inventory.snapshot(["TEE-1", "NOPE"]), {"TEE-1": 12, "NOPE": 0})


@pytest.mark.parametrize("delta", [-1, -3, -4, -1000, -math.inf, 0.5, -0.5, 10**9 * -1])
def test_stock_is_never_negative(delta):
    inventory = MemoryInventoryStore({"TEE-1": 3})
    assert inventory.adjust_stock("TEE-1", delta) >= 0
    assert inventory.get_stock("TEE-1") >= 0


class TestSqlInventoryStore:
    def test_set_and_adjust_persist(self, db_session):
        inventory = SqlInventoryStore()
        inventory.set_stock("TEE-1", 5)
        assert inventory.adjust_stock("TEE-1", -2) == 3

        row = db_session.get(StockLevel, "TEE-1")
        assert row.quantity == 3

    def test_decrement_clamps_at_zero(self, db_session):
        inventory = SqlInventoryStore()
        inventory.set_stock("TEE-1", 2)
        assert inventory.adjust_stock("TEE-1", -50) == 0
        assert inventory.get_stock("TEE-1") == 0

    def test_rollback_discards_staged_writes(self, db_session):
        inventory = SqlInventoryStore()
        inventory.set_stock("TEE-1", 5)
        inventory.adjust_stock("TEE-1", -5, commit=False)
        inventory.rollback()
        assert inventory.get_stock("TEE-1") == 5
