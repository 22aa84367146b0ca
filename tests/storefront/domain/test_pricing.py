"""Tests for the pricing calculator — fees, totals, escrow split and display."""

from decimal import Decimal

import pytest
from storefront.cart.cart import Cart
from storefront.cart.pricing import (
    DeliveryMethod,
    PriceBreakdown,
    calculate_service_fee,
    calculate_subtotal,
    delivery_fee_for,
    format_amount,
    price_cart,
    price_lines,
    split_escrow,
)


class TestSubtotal:
    def test_sums_unit_price_times_quantity(self):
        assert calculate_subtotal([(10000, 2), (1250, 3)]) == 23750

    def test_order_of_lines_is_irrelevant(self):
        lines = [(10000, 2), (1250, 3), (3500, 1)]
        assert calculate_subtotal(lines) == calculate_subtotal(list(reversed(lines))) == 27250

    def test_empty_lines_cost_nothing(self):
        assert calculate_subtotal([]) == 0


class TestServiceFee:
    def test_five_percent_of_subtotal(self):
        assert calculate_service_fee(20000) == 1000

    def test_rounds_half_up_to_the_pesewa(self):
        assert calculate_service_fee(1250) == 63
        assert calculate_service_fee(1210) == 61

    def test_rounds_down_below_half(self):
        assert calculate_service_fee(1208) == 60

    def test_explicit_rate(self):
        assert calculate_service_fee(20000, rate=Decimal("0.10")) == 2000

    def test_rate_from_settings(self, monkeypatch):
        from storefront.config import get_settings

        monkeypatch.setenv("STOREFRONT_SERVICE_FEE_RATE", "0.02")
        get_settings.cache_clear()

        assert calculate_service_fee(20000) == 400


class TestDeliveryFee:
    def test_pickup_is_free(self):
        assert delivery_fee_for(DeliveryMethod.PICKUP) == 0

    def test_delivery_uses_flat_fee(self):
        assert delivery_fee_for("delivery") == 1500

    def test_flat_fee_override(self):
        assert delivery_fee_for("delivery", flat_fee=2000) == 2000

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError):
            delivery_fee_for("drone")


class TestPriceLines:
    def test_pickup_total(self):
        breakdown = price_lines([(10000, 2)], "pickup")

        assert breakdown.subtotal == 20000
        assert breakdown.service_fee == 1000
        assert breakdown.delivery_fee == 0
        assert breakdown.total == 21000

    def test_delivery_total(self):
        breakdown = price_lines([(10000, 2)], "delivery")

        assert breakdown.delivery_fee == 1500
        assert breakdown.total == 22500

    def test_discount_reduces_total(self):
        breakdown = price_lines([(10000, 2)], "pickup", discount=500)
        assert breakdown.total == 20500

    def test_negative_amounts_rejected(self):
        with pytest.raises(ValueError):
            PriceBreakdown(subtotal=-1, service_fee=0, delivery_fee=0)

    def test_total_is_sum_of_parts(self):
        breakdown = PriceBreakdown(subtotal=4700, service_fee=235, delivery_fee=1500, discount=100)
        assert breakdown.total == 4700 + 1500 + 235 - 100


class TestPriceCart:
    def test_prices_cart_lines(self, textbook):
        cart = Cart.create(user_id="user-001")
        cart.add_item(textbook, quantity=2)

        breakdown = price_cart(cart, DeliveryMethod.PICKUP)

        assert breakdown.subtotal == 20000
        assert breakdown.total == 21000

    def test_empty_cart(self):
        breakdown = price_cart(Cart.create(), "delivery")

        assert breakdown.subtotal == 0
        assert breakdown.service_fee == 0
        assert breakdown.total == 1500

    def test_insertion_order_does_not_change_totals(self, textbook, notebook):
        first = Cart.create(user_id="user-001")
        first.add_item(textbook, quantity=2)
        first.add_item(notebook, quantity=3)

        second = Cart.create(user_id="user-002")
        second.add_item(notebook, quantity=3)
        second.add_item(textbook, quantity=2)

        assert first.subtotal == second.subtotal == 20000 + 3 * 1250
        for method in DeliveryMethod:
            assert price_cart(first, method) == price_cart(second, method)
            assert price_cart(first, method).total == price_cart(second, method).total


class TestEscrowSplit:
    def test_default_split_keeps_service_fee(self):
        split = split_escrow(price_lines([(10000, 2)], "delivery"))

        assert split.amount == 22500
        assert split.buyer_fee == 1000
        assert split.seller_commission == 0
        assert split.platform_fee == 1000
        assert split.seller_amount == 21500

    def test_commission_comes_out_of_seller_amount(self):
        split = split_escrow(price_lines([(10000, 2)], "pickup"), commission_rate=Decimal("0.03"))

        assert split.seller_commission == 600
        assert split.platform_fee == 1600
        assert split.seller_amount == 21000 - 1600

    def test_amount_equals_seller_amount_plus_platform_fee(self):
        split = split_escrow(price_lines([(3333, 3)], "delivery"), commission_rate=Decimal("0.025"))
        assert split.amount == split.seller_amount + split.platform_fee


class TestFormatAmount:
    def test_formats_minor_units(self):
        assert format_amount(21000) == "GHS 210.00"

    def test_thousands_separator(self):
        assert format_amount(123456789) == "GHS 1,234,567.89"

    def test_explicit_currency(self):
        assert format_amount(5, currency="USD") == "USD 0.05"
