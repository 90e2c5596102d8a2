"""Cart tests: every mutation path clamps to the same stock rule."""

import unittest

from storefront.services import cart_service
from storefront.services.cart_service import Cart


TEE = {"id": "TEE-1", "name": "Cotton Tee", "price": 100, "category": "apparel"}
MUG = {"id": "MUG-1", "name": "Stoneware Mug", "price": 50}


class CartServiceTests(unittest.TestCase):
    def setUp(self):
        self.cart = Cart()

    def test_add_clamps_to_stock(self):
        line = cart_service.add_to_cart(self.cart, TEE, stock=3, qty=5)
        self.assertEqual(line.quantity, 3)
        self.assertEqual(line.stock, 3)

    def test_add_requests_at_least_one(self):
        line = cart_service.add_to_cart(self.cart, TEE, stock=3, qty=0)
        self.assertEqual(line.quantity, 1)

    def test_add_merges_then_clamps(self):
        cart_service.add_to_cart(self.cart, TEE, stock=3, qty=2)
        line = cart_service.add_to_cart(self.cart, TEE, stock=3, qty=2)
        self.assertEqual(len(self.cart.lines), 1)
        self.assertEqual(line.quantity, 3)

    def test_out_of_stock_product_is_not_added(self):
        self.assertIsNone(cart_service.add_to_cart(self.cart, TEE, stock=0))
        self.assertTrue(self.cart.is_empty)

    def test_update_to_zero_removes_line(self):
        cart_service.add_to_cart(self.cart, TEE, stock=3)
        self.assertIsNone(cart_service.update_quantity(self.cart, "TEE-1", 0))
        self.assertTrue(self.cart.is_empty)

    def test_update_clamps_to_live_stock(self):
        cart_service.add_to_cart(self.cart, TEE, stock=10, qty=4)
        line = cart_service.update_quantity(self.cart, "TEE-1", 8, stock=2)
        self.assertEqual(line.quantity, 2)
        self.assertEqual(line.stock, 2)

    def test_update_with_non_numeric_keeps_quantity(self):
        cart_service.add_to_cart(self.cart, TEE, stock=10, qty=4)
        line = cart_service.update_quantity(self.cart, "TEE-1", "lots")
        self.assertEqual(line.quantity, 4)

    def test_update_missing_line(self):
        self.assertIsNone(cart_service.update_quantity(self.cart, "NOPE", 1))

    def test_remove_and_clear(self):
        cart_service.add_to_cart(self.cart, TEE, stock=3)
        cart_service.add_to_cart(self.cart, MUG, stock=3)
        self.assertTrue(cart_service.remove_item(self.cart, "TEE-1"))
        self.assertFalse(cart_service.remove_item(self.cart, "TEE-1"))
        cart_service.clear(self.cart)
        self.assertTrue(self.cart.is_empty)

    def test_summary(self):
        cart_service.add_to_cart(self.cart, TEE, stock=5, qty=2)
        cart_service.add_to_cart(self.cart, MUG, stock=5, qty=1)
        self.assertEqual(self.cart.summary(), {"item_count": 3, "subtotal": 250})

    def test_from_dict_drops_malformed_lines(self):
        cart = Cart.from_dict({
            "lines": [
                {"product_id": "TEE-1", "name": "Cotton Tee", "price": 100, "stock": 3, "quantity": 9},
                {"name": "no id", "quantity": 1, "stock": 1},
                {"product_id": "MUG-1", "stock": 0, "quantity": 2},
                "junk",
            ]
        })
        self.assertEqual([line.product_id for line in cart.lines], ["TEE-1"])
        self.assertEqual(cart.lines[0].quantity, 3)
        self.assertTrue(Cart.from_dict(None).is_empty)


class CartReloadMergeTests(unittest.TestCase):
    def test_repeated_lines_merge_and_clamp(self):
        cart = Cart.from_dict({
            "lines": [
                {"product_id": "TEE-1", "name": "Cotton Tee", "price": 100, "stock": 3, "quantity": 3},
                {"product_id": "MUG-1", "name": "Stoneware Mug", "price": 50, "stock": 10, "quantity": 1},
                {"product_id": "TEE-1", "name": "Cotton Tee", "price": 100, "stock": 3, "quantity": 3},
            ]
        })

        self.assertEqual([line.product_id for line in cart.lines], ["TEE-1", "MUG-1"])
        self.assertEqual(cart.find("TEE-1").quantity, 3)
        self.assertEqual(cart.summary(), {"item_count": 4, "subtotal": 350})

    def test_merge_uses_smallest_stock_snapshot(self):
        cart = Cart.from_dict({
            "lines": [
                {"product_id": "TEE-1", "stock": 5, "quantity": 2},
                {"product_id": "TEE-1", "stock": 2, "quantity": 2},
            ]
        })
        line = cart.find("TEE-1")
        self.assertEqual(line.stock, 2)
        self.assertEqual(line.quantity, 2)
