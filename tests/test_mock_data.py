"""
Tests for the mock dataset generator.
"""

import random

import pytest

from scm_dashboard.constants import OrderStatus, PaymentStatus
from scm_dashboard.mock_data import MockDataGenerator, generate_mock_orders, generate_mock_suppliers


class TestMockSuppliers:
    """Tests for generate_mock_suppliers."""

    def test_ids_and_names(self):
        suppliers = generate_mock_suppliers(7, random.Random(1))

        assert [s.id for s in suppliers] == [f"SUP-{101 + i}" for i in range(7)]
        assert suppliers[0].name == 'AgroEquip India'
        assert suppliers[5].name == 'AgroEquip India 2'
        assert all(0.89 <= s.delivery_rate <= 0.99 for s in suppliers)
        assert all(0.0 <= s.pricing_variance <= 0.05 for s in suppliers)


class TestMockOrders:
    """Tests for generate_mock_orders."""

    @pytest.fixture
    def dataset(self, now):
        return MockDataGenerator(random_seed=42).generate(order_count=200, supplier_count=5, now=now)

    def test_reproducible(self, now):
        first = MockDataGenerator(random_seed=3).generate(order_count=20, now=now)
        second = MockDataGenerator(random_seed=3).generate(order_count=20, now=now)
        assert first == second

    def test_ids(self, dataset):
        _, orders = dataset
        assert orders[0].id == 'BM-2024001'
        assert len({o.id for o in orders}) == len(orders)
        for order in orders:
            assert [li.id for li in order.line_items] == [
                f"{order.id}-li-{j + 1}" for j in range(len(order.line_items))
            ]

    def test_totals_are_consistent(self, dataset):
        _, orders = dataset
        for order in orders:
            assert 1 <= len(order.line_items) <= 3
            assert order.total_quantity == sum(li.quantity for li in order.line_items)
            assert order.total_supplier_cost == pytest.approx(
                sum(li.final_price_per_unit * li.quantity for li in order.line_items)
            )

    def test_line_items_reference_known_suppliers(self, dataset):
        suppliers, orders = dataset
        known = {s.id for s in suppliers}
        assert all(li.supplier_id in known for o in orders for li in o.line_items)

    def test_stage_history_is_consistent(self, dataset, now):
        _, orders = dataset
        for order in orders:
            assert order.stage_history
            assert all(h.start_date <= now for h in order.stage_history)
            last = order.stage_history[-1]
            assert last.stage == order.current_stage
            if not order.is_cancelled:
                assert last.end_date is None

    def test_cancelled_orders(self, dataset):
        _, orders = dataset
        for order in orders:
            if not order.is_cancelled:
                continue
            assert order.payment_status == PaymentStatus.PENDING
            assert order.client_payments == []
            assert order.dispatch_date is None
            assert order.reason_for_cancellation

    def test_paid_orders_are_fully_paid(self, dataset, now):
        _, orders = dataset
        for order in orders:
            assert all(p.payment_date <= now for p in order.client_payments)
            if order.payment_status == PaymentStatus.PAID:
                assert order.total_paid >= order.total_final_price
                assert order.actual_payment_date is not None

    def test_covers_the_pipeline(self, dataset):
        _, orders = dataset
        stages = {o.current_stage for o in orders}
        assert OrderStatus.FRESH_ORDER in stages
        assert len(stages) >= 4

    def test_requires_suppliers(self, now):
        with pytest.raises(ValueError):
            generate_mock_orders(3, [], now=now)
