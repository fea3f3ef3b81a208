"""
Unit tests for cart operations.
"""

import pytest
from decimal import Decimal

from retail_pos.exceptions import BusinessLogicError, NotFoundError, InsufficientStockError
from retail_pos.services import cart_service


class TestAddToCart:

    def test_new_line_snapshots_name_and_price(self, catalog, cart):
        line = cart_service.add_to_cart(catalog, cart, 1, 2)

        assert line.name == 'Laptop'
        assert line.price == Decimal('100.00')
        assert line.quantity == 2

        # Later price changes do not touch the cart line
        catalog.get(1).price = Decimal('120.00')
        assert cart.get_line(1).price == Decimal('100.00')

    def test_adding_again_merges_lines(self, catalog, cart):
        cart_service.add_to_cart(catalog, cart, 1, 2)
        cart_service.add_to_cart(catalog, cart, 1, 1)

        assert len(cart) == 1
        assert cart.get_line(1).quantity == 3

    def test_out_of_stock_product_not_available(self, catalog, cart):
        with pytest.raises(BusinessLogicError, match='Product not available'):
            cart_service.add_to_cart(catalog, cart, 3)

    def test_unknown_product_not_available(self, catalog, cart):
        with pytest.raises(BusinessLogicError, match='Product not available'):
            cart_service.add_to_cart(catalog, cart, 999)

    def test_exceeding_stock_rejected(self, catalog, cart):
        cart_service.add_to_cart(catalog, cart, 2, 3)
        with pytest.raises(InsufficientStockError) as exc:
            cart_service.add_to_cart(catalog, cart, 2, 1)

        assert exc.value.status_code == 409
        assert cart.get_line(2).quantity == 3

    def test_zero_quantity_rejected(self, catalog, cart):
        with pytest.raises(BusinessLogicError):
            cart_service.add_to_cart(catalog, cart, 1, 0)


class TestUpdateQuantity:

    def test_change_to_zero_removes_line(self, catalog, cart):
        cart_service.add_to_cart(catalog, cart, 1, 1)
        assert cart_service.update_quantity(catalog, cart, 1, -1) is None
        assert cart.is_empty

    def test_change_above_stock_leaves_cart_unchanged(self, catalog, cart):
        cart_service.add_to_cart(catalog, cart, 2, 2)
        with pytest.raises(InsufficientStockError):
            cart_service.update_quantity(catalog, cart, 2, 5)
        assert cart.get_line(2).quantity == 2

    def test_set_quantity(self, catalog, cart):
        cart_service.add_to_cart(catalog, cart, 1, 1)
        cart_service.set_quantity(catalog, cart, 1, 4)
        assert cart.get_line(1).quantity == 4

    def test_line_not_in_cart(self, catalog, cart):
        with pytest.raises(NotFoundError):
            cart_service.update_quantity(catalog, cart, 1, 1)

    def test_remove_missing_line_is_noop(self, cart):
        cart_service.remove_from_cart(cart, 42)
        assert cart.is_empty


class TestDiscounts:

    def test_apply_discount(self, cart):
        discount = cart_service.apply_discount(cart, 'percentage', '10', ' SAVE10 ')

        assert discount.value == Decimal('10')
        assert discount.code == 'SAVE10'
        assert cart.discount is discount

    @pytest.mark.parametrize('kind,value', [
        ('percentage', '0'),
        ('fixed', '-5'),
        ('fixed', 'abc'),
        ('percentage', '101'),
        ('bogus', '5'),
    ])
    def test_invalid_discount_rejected(self, cart, kind, value):
        with pytest.raises(BusinessLogicError):
            cart_service.apply_discount(cart, kind, value)
        assert cart.discount.is_active is False

    def test_clear_discount(self, cart):
        cart_service.apply_discount(cart, 'fixed', '5')
        cart_service.clear_discount(cart)
        assert cart.discount.is_active is False


class TestQuickKeysAndBarcodes:

    def test_quick_key_adds_one_unit(self, catalog, cart):
        line = cart_service.add_by_quick_key(catalog, cart, 2)
        assert line.product_id == 2
        assert line.quantity == 1

    def test_unknown_quick_key(self, catalog, cart):
        with pytest.raises(NotFoundError):
            cart_service.add_by_quick_key(catalog, cart, 9)

    def test_scan_requires_enabled_scanner(self, catalog, cart):
        with pytest.raises(BusinessLogicError, match='not enabled'):
            cart_service.scan_barcode(catalog, cart, {'barcodeScannerEnabled': False}, '890001')

    def test_scan_exact_barcode(self, catalog, cart):
        line = cart_service.scan_barcode(catalog, cart, {'barcodeScannerEnabled': True}, '890001')
        assert line.product_id == 1

    def test_scan_falls_back_to_name(self, catalog, cart):
        line = cart_service.scan_barcode(catalog, cart, {'barcodeScannerEnabled': True}, 'MOUSE')
        assert line.product_id == 2

    def test_scan_unknown_code(self, catalog, cart):
        with pytest.raises(NotFoundError):
            cart_service.scan_barcode(catalog, cart, {'barcodeScannerEnabled': True}, 'zzz')


class TestCartSummary:

    def test_summary_includes_totals(self, catalog, cart):
        cart_service.add_to_cart(catalog, cart, 1, 2)
        cart_service.apply_discount(cart, 'percentage', '10')
        summary = cart_service.cart_summary(cart)

        assert summary['itemCount'] == 2
        assert summary['items'][0]['lineTotal'] == '200.00'
        assert summary['totals']['total'] == '198.00'

    def test_tax_toggle(self, catalog, cart):
        cart_service.add_to_cart(catalog, cart, 1, 1)
        cart_service.set_tax_enabled(cart, False)
        assert cart_service.cart_summary(cart)['totals']['tax'] == '0.00'

    @pytest.mark.parametrize('value', ['false', 0, None])
    def test_tax_flag_must_be_boolean(self, cart, value):
        with pytest.raises(BusinessLogicError, match='enabled must be true or false'):
            cart_service.set_tax_enabled(cart, value)
        assert cart.tax_enabled is True
