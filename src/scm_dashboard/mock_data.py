"""
Mock dataset generator.

Produces suppliers and orders that look like a reconciled import: stage
histories with SLA delay flags, one to three line items per order, supplier
payment tranches, client payments and a derived payment status. About 5% of
orders are cancelled.

All randomness comes from one ``random.Random``, so a seed reproduces the
same dataset for the same ``now``.

Usage:
    generator = MockDataGenerator(random_seed=42)
    suppliers, orders = generator.generate(order_count=50, supplier_count=7)
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from .constants import (
    CLIENT_COUNTRIES,
    DEFAULT_SLA_DAYS_PER_STAGE,
    DEFAULT_SUPPLIER_COUNTRY,
    PIPELINE_STAGES,
    PRODUCT_TYPE_LIST,
    SUPPLIER_NAMES,
    OrderStatus,
    PaymentStatus,
    ProductType,
)
from .models import ClientPayment, Order, OrderLineItem, StageHistoryItem, Supplier

logger = logging.getLogger(__name__)

CANCELLATION_RATE = 0.05
MAX_ORDER_AGE_DAYS = 90

MOCK_PRODUCT_NAMES: Dict[ProductType, List[str]] = {
    ProductType.GRASS_CUTTER: [
        "Heavy Duty Lawn Mower GC-X1000", "EcoTrim Electric GC-E500",
        "ProSeries Reel Mower GC-R750", "Compact Gas Mower GC-G300",
    ],
    ProductType.WATER_PUMP: [
        "Submersible Well Pump WP-S200", "High-Pressure Irrigation Pump WP-H1500",
        "Portable Utility Pump WP-U50", "Solar Powered Fountain Pump WP-SP80",
    ],
    ProductType.POWER_TILLER: [
        "AgroPro Cultivator PT-C60", "GardenMaster Tiller PT-G45",
        "Mini Electric Tiller PT-E20", "Heavy Duty Diesel Tiller PT-D100",
    ],
    ProductType.SPRAYER: [
        "Backpack Chemical Sprayer SP-B16L", "Orchard Mist Sprayer SP-M500",
        "Electrostatic Field Sprayer SP-ESF10", "Handheld Pump Sprayer SP-H2L",
    ],
    ProductType.HARVESTER: [
        "Mini Rice Combine Harvester MH-R50", "Corn Silage Harvester MH-CS200",
        "Sugarcane Harvester MH-S120", "Manual Grain Harvester MH-G10",
    ],
}

SLA = DEFAULT_SLA_DAYS_PER_STAGE


def generate_mock_suppliers(count: int, rng: Optional[random.Random] = None) -> List[Supplier]:
    """Suppliers SUP-101, SUP-102, ... named after SUPPLIER_NAMES."""
    rng = rng or random.Random()
    suppliers = []
    for i in range(count):
        name = SUPPLIER_NAMES[i % len(SUPPLIER_NAMES)]
        if i >= len(SUPPLIER_NAMES):
            name = f"{name} {i // len(SUPPLIER_NAMES) + 1}"
        suppliers.append(Supplier(
            id=f"SUP-{100 + i + 1}",
            name=name,
            country=DEFAULT_SUPPLIER_COUNTRY,
            avg_tat_days=float(rng.randint(15, 24)),
            delivery_rate=round(rng.random() * 0.1 + 0.89, 2),
            pricing_variance=round(rng.random() * 0.05, 2),
        ))
    return suppliers


def _stage_history(
    rng: random.Random,
    order_date: datetime,
    target_stage: OrderStatus,
    cancelled: bool,
    cancellation_reason: Optional[str],
    now: datetime,
) -> Tuple[List[StageHistoryItem], OrderStatus]:
    """
    Walk the pipeline from the order date up to ``target_stage``.

    A stage whose simulated end would fall after ``now`` stays open and
    becomes the current stage. Cancelled orders close every stage they
    reached and end with a CANCELLED entry.
    """
    history: List[StageHistoryItem] = []
    target_index = PIPELINE_STAGES.index(target_stage)
    current = OrderStatus.FRESH_ORDER
    cursor = order_date

    for index, stage in enumerate(PIPELINE_STAGES[:target_index + 1]):
        current = stage
        sla = SLA[stage]
        duration = rng.random() * sla + sla * 0.75
        end = cursor + timedelta(days=duration)

        if not cancelled and (index == target_index or end > now):
            is_delayed = stage != OrderStatus.PAID and (now - cursor).total_seconds() / 86400 > sla
            history.append(StageHistoryItem(
                stage=stage,
                start_date=cursor,
                is_delayed=is_delayed,
                notes=f"Exceeded SLA of {sla} days." if is_delayed else None,
            ))
            break

        if end > now:
            end = now
            duration = (end - cursor).total_seconds() / 86400
        is_delayed = duration > sla
        history.append(StageHistoryItem(
            stage=stage,
            start_date=cursor,
            end_date=end,
            is_delayed=is_delayed,
            notes=f"Exceeded SLA of {sla} days by {duration - sla:.1f} days." if is_delayed else None,
        ))
        cursor = end
        if cursor >= now:
            break

    if cancelled:
        history.append(StageHistoryItem(
            stage=OrderStatus.CANCELLED,
            start_date=cursor,
            notes=cancellation_reason or "Order cancelled",
        ))
        current = OrderStatus.CANCELLED

    return history, current


def _supplier_terms(
    rng: random.Random,
    line_item: OrderLineItem,
    order_id: str,
    position: int,
    order_date: datetime,
    stage: OrderStatus,
) -> None:
    """Fill production/dispatch dates and payment tranches on a line item."""
    production_start = order_date + timedelta(days=rng.randint(2, 6))
    expected_dispatch = production_start + timedelta(days=rng.randint(10, 19))
    line_item.supplier_production_start_date = production_start
    line_item.supplier_expected_dispatch_date = expected_dispatch

    dispatched = PIPELINE_STAGES.index(stage) >= PIPELINE_STAGES.index(OrderStatus.READY_FOR_DISPATCH)
    actual_dispatch = None
    if dispatched:
        actual_dispatch = expected_dispatch + timedelta(days=rng.randint(-2, 2))
        line_item.supplier_actual_dispatch_date = actual_dispatch
        line_item.supplier_bl_number = f"BL-{order_id[-4:]}-{position}{rng.randrange(100)}"

    cost = line_item.supplier_cost
    terms = rng.random()
    if terms < 0.33:
        line_item.supplier_payment_terms = "30% Adv, 40% Pre-Disp, 30% Post-Disp"
        line_item.supplier_advance_paid_amount = round(cost * 0.3, 2)
        line_item.supplier_advance_paid_date = production_start - timedelta(days=rng.randint(1, 2))
        line_item.supplier_before_paid_amount = round(cost * 0.4, 2)
        line_item.supplier_before_paid_date = expected_dispatch - timedelta(days=rng.randint(1, 3))
        if actual_dispatch is not None:
            line_item.supplier_balance_paid_amount = round(cost * 0.3, 2)
            line_item.supplier_balance_paid_date = actual_dispatch + timedelta(days=rng.randint(1, 5))
    elif terms < 0.66:
        line_item.supplier_payment_terms = "50% Advance, 50% on Dispatch"
        line_item.supplier_advance_paid_amount = round(cost * 0.5, 2)
        line_item.supplier_advance_paid_date = production_start - timedelta(days=rng.randint(1, 3))
        if actual_dispatch is not None:
            line_item.supplier_balance_paid_amount = round(cost * 0.5, 2)
            line_item.supplier_balance_paid_date = actual_dispatch + timedelta(days=rng.randint(1, 5))
    elif actual_dispatch is not None:
        line_item.supplier_balance_paid_amount = round(cost, 2)
        if rng.random() < 0.5:
            line_item.supplier_payment_terms = "100% on Dispatch"
            line_item.supplier_balance_paid_date = actual_dispatch + timedelta(days=rng.randint(2, 8))
        else:
            line_item.supplier_payment_terms = "30 Day Net after Dispatch"
            line_item.supplier_balance_paid_date = actual_dispatch + timedelta(days=rng.randint(25, 34))
    else:
        line_item.supplier_payment_terms = "Awaiting Dispatch for Final Terms"

    if rng.random() < 0.3:
        line_item.supplier_notes = f"Supplier confirmed ETA for {line_item.product_name}."


def _client_payments(
    rng: random.Random,
    order_id: str,
    amount_due: float,
    dispatch_date: datetime,
) -> List[ClientPayment]:
    scenario = rng.random()
    payments: List[ClientPayment] = []

    if scenario < 0.3:
        return payments

    if scenario < 0.7:
        paid = 0.0
        when = dispatch_date + timedelta(days=rng.randint(1, 10))
        for k in range(1 if rng.random() < 0.5 else 2):
            amount = round(amount_due * (rng.random() * 0.3 + 0.2), 2)
            if paid + amount >= amount_due * 0.95:
                break
            payments.append(ClientPayment(
                id=f"cp-{order_id}-{k}",
                amount_paid=amount,
                payment_date=when,
                payment_method='Bank Transfer' if rng.random() < 0.7 else 'Cheque',
                notes=f"Partial payment {k + 1}",
            ))
            paid += amount
            when = when + timedelta(days=rng.randint(5, 14))
        return payments

    if rng.random() < 0.6:
        payments.append(ClientPayment(
            id=f"cp-{order_id}-full",
            amount_paid=amount_due,
            payment_date=dispatch_date + timedelta(days=rng.randrange(int(SLA[OrderStatus.PAID] * 0.8))),
            payment_method='Bank Transfer',
            notes='Full payment received.',
        ))
        return payments

    first_amount = round(amount_due * 0.4, 2)
    first_date = dispatch_date + timedelta(days=rng.randint(1, 10))
    payments.append(ClientPayment(
        id=f"cp-{order_id}-p1",
        amount_paid=first_amount,
        payment_date=first_date,
        payment_method='Bank Transfer',
        notes='First installment.',
    ))
    payments.append(ClientPayment(
        id=f"cp-{order_id}-p2",
        amount_paid=round(amount_due - first_amount, 2),
        payment_date=first_date + timedelta(days=rng.randint(5, 19)),
        payment_method='Bank Transfer',
        notes='Final installment.',
    ))
    return payments


def generate_mock_orders(
    count: int,
    suppliers: List[Supplier],
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[Order]:
    """
    Generate ``count`` orders BM-2024001, BM-2024002, ...

    Args:
        count: Number of orders
        suppliers: Suppliers to assign line items to (must not be empty)
        rng: Random source
        now: Reference time for order ages, delays and overdue payments
    """
    if not suppliers:
        raise ValueError("At least one supplier is required to generate mock orders")

    rng = rng or random.Random()
    now = now or datetime.now()
    orders = []

    for i in range(count):
        order_id = f"BM-{2024000 + i + 1}"
        order_date = now - timedelta(days=rng.randint(1, MAX_ORDER_AGE_DAYS))

        target_stage = PIPELINE_STAGES[rng.randrange(len(PIPELINE_STAGES))]
        cancelled = rng.random() < CANCELLATION_RATE
        reason = "Cancelled due to client request (mock data)." if cancelled else None

        history, current_stage = _stage_history(rng, order_date, target_stage, cancelled, reason, now)

        line_items = []
        for j in range(rng.randint(1, 3)):
            product_type = PRODUCT_TYPE_LIST[rng.randrange(len(PRODUCT_TYPE_LIST))]
            product_name = rng.choice(MOCK_PRODUCT_NAMES[product_type])
            quoted = float(rng.randint(100, 799))
            negotiated = quoted
            if current_stage not in (OrderStatus.FRESH_ORDER, OrderStatus.CANCELLED) and rng.random() > 0.3:
                negotiated = round(quoted * (rng.random() * 0.1 + 0.9), 2)

            line_item = OrderLineItem(
                id=f"{order_id}-li-{j + 1}",
                order_id=order_id,
                product_id=f"PROD-{product_type.value[:3].upper()}{rng.randrange(1000)}",
                product_name=product_name,
                product_type=product_type,
                quantity=rng.randint(1, 5),
                supplier_id=rng.choice(suppliers).id,
                quoted_price_per_unit=quoted,
                negotiated_price_per_unit=negotiated,
                final_price_per_unit=round(negotiated * (rng.random() * 0.3 + 0.5), 2),
                line_item_notes=f"Internal note for {product_name}" if rng.random() > 0.7 else None,
            )
            if current_stage != OrderStatus.CANCELLED and current_stage != OrderStatus.FRESH_ORDER:
                _supplier_terms(rng, line_item, order_id, j + 1, order_date, current_stage)
            line_items.append(line_item)

        total_quoted = round(sum(li.quoted_price_per_unit * li.quantity for li in line_items), 2)
        total_negotiated = round(sum(li.negotiated_price_per_unit * li.quantity for li in line_items), 2)

        order = Order(
            id=order_id,
            client_name=f"Client {chr(65 + i % 26)}{i // 26 or ''}",
            client_country=rng.choice(CLIENT_COUNTRIES),
            order_date=order_date,
            current_stage=current_stage,
            stage_history=history,
            line_items=line_items,
            total_quantity=sum(li.quantity for li in line_items),
            total_quoted_price=total_quoted,
            total_negotiated_price=total_negotiated,
            total_final_price=total_negotiated,
            total_supplier_cost=round(sum(li.supplier_cost for li in line_items), 2),
            client_moq=float(rng.randint(1, 5) * max(1, len(line_items) // 2) * 2),
            order_notes=f"Order note for {order_id}." if rng.random() > 0.8 else None,
            reason_for_cancellation=reason,
        )

        delivered = order.stage_entry(OrderStatus.DELIVERED)
        ready = order.stage_entry(OrderStatus.READY_FOR_DISPATCH)
        if delivered is not None:
            order.dispatch_date = delivered.start_date
            order.actual_delivery_date = delivered.end_date
        elif ready is not None and ready.end_date is not None:
            order.dispatch_date = ready.end_date

        production = order.stage_entry(OrderStatus.PRODUCTION)
        if ready is not None:
            order.expected_delivery_date = ready.start_date + timedelta(
                days=SLA[OrderStatus.READY_FOR_DISPATCH] + SLA[OrderStatus.DELIVERED]
            )
        elif production is not None:
            order.expected_delivery_date = production.start_date + timedelta(
                days=SLA[OrderStatus.PRODUCTION] + SLA[OrderStatus.READY_FOR_DISPATCH] + SLA[OrderStatus.DELIVERED]
            )
        else:
            order.expected_delivery_date = order_date + timedelta(days=45 + len(line_items) * 5)

        if order.is_cancelled:
            order.expected_delivery_date = order_date
            order.dispatch_date = None
            order.actual_delivery_date = None
        else:
            _settle_client_payments(rng, order, now)

        orders.append(order)

    cancelled_count = sum(1 for o in orders if o.is_cancelled)
    logger.info(f"Generated {len(orders)} mock orders ({cancelled_count} cancelled)")
    return orders


def _settle_client_payments(rng: random.Random, order: Order, now: datetime) -> None:
    if order.dispatch_date is not None:
        order.expected_payment_date = order.dispatch_date + timedelta(days=SLA[OrderStatus.PAID])
        if order.total_final_price > 0:
            order.client_payments = [
                p for p in _client_payments(rng, order.id, order.total_final_price, order.dispatch_date)
                if p.payment_date <= now
            ]

    paid = order.total_paid
    if order.client_payments and paid >= order.total_final_price:
        order.payment_status = PaymentStatus.PAID
        order.actual_payment_date = max(p.payment_date for p in order.client_payments)
    elif order.expected_payment_date is not None and order.expected_payment_date < now:
        order.payment_status = PaymentStatus.OVERDUE
    elif paid > 0:
        order.payment_status = PaymentStatus.PARTIALLY_PAID
    else:
        order.payment_status = PaymentStatus.PENDING


class MockDataGenerator:
    """
    Seeded mock dataset generator.

    Args:
        random_seed: Seed for reproducible datasets
    """

    def __init__(self, random_seed: int = 42):
        self.random_seed = random_seed
        self._rng = random.Random(random_seed)

    def generate(
        self,
        order_count: int = 50,
        supplier_count: int = 7,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Supplier], List[Order]]:
        """Generate suppliers, then orders that reference them."""
        suppliers = generate_mock_suppliers(supplier_count, self._rng)
        orders = generate_mock_orders(order_count, suppliers, self._rng, now=now)
        return suppliers, orders
