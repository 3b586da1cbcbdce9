"""
Dashboard KPIs.

KPIs are split between two scopes:

- all-time: computed over the whole active dataset, so they stay stable
  while filters change (deliveries, items sold, client value, delays)
- in-view: computed over the filtered orders (order count, overdue client
  payments, supplier amounts due per tranche)
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from ..constants import OrderStatus, PaymentStatus
from ..models import Order

DELIVERED_STAGES = (OrderStatus.DELIVERED, OrderStatus.PAID)

# (warning, danger) thresholds; a value strictly above a threshold trips it
DELAYED_RATIO_THRESHOLDS = (0.1, 0.2)
OVERDUE_PAYMENT_THRESHOLDS = (2, 5)
SUPPLIER_DUE_THRESHOLDS = (5000, 20000)


@dataclass
class Kpi:
    """A titled KPI card."""

    title: str
    value: Union[int, float, str]
    unit: Optional[str] = None
    status: str = 'good'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class KpiSnapshot:
    """Raw KPI numbers for one dataset and view."""

    # All-time
    delivered_orders: int = 0
    items_sold: float = 0
    client_value: float = 0.0
    collected: float = 0.0
    delayed_orders: int = 0
    active_orders: int = 0

    # In view
    orders_in_view: int = 0
    overdue_client_payments: int = 0
    supplier_advance_due: float = 0.0
    supplier_pre_dispatch_due: float = 0.0
    supplier_balance_due: float = 0.0

    @property
    def delayed_ratio(self) -> float:
        """Delayed orders as a fraction of non-cancelled orders."""
        if not self.active_orders:
            return 0.0
        return self.delayed_orders / self.active_orders

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['delayed_ratio'] = self.delayed_ratio
        return data

    def to_cards(self) -> List[Kpi]:
        """Render the snapshot as dashboard KPI cards."""
        return [
            Kpi('Total Orders Delivered', self.delivered_orders, '(All Time)'),
            Kpi('Total Items Sold', self.items_sold, '(From Delivered)'),
            Kpi(
                'Total Client Value',
                _money(self.client_value),
                f"(Collected: {_money(self.collected)})",
            ),
            Kpi('Orders (Active View)', self.orders_in_view),
            Kpi(
                'Delayed Orders',
                self.delayed_orders,
                f"({self.delayed_ratio * 100:.0f}% of total)",
                _status(self.delayed_ratio, DELAYED_RATIO_THRESHOLDS),
            ),
            Kpi(
                'Overdue Client Payments',
                self.overdue_client_payments,
                '(In View)',
                _status(self.overdue_client_payments, OVERDUE_PAYMENT_THRESHOLDS),
            ),
            Kpi(
                'Supplier Adv. Due',
                _money(self.supplier_advance_due),
                '(In View)',
                _status(self.supplier_advance_due, SUPPLIER_DUE_THRESHOLDS),
            ),
            Kpi(
                'Supplier Pre-Disp. Due',
                _money(self.supplier_pre_dispatch_due),
                '(In View)',
                _status(self.supplier_pre_dispatch_due, SUPPLIER_DUE_THRESHOLDS),
            ),
            Kpi(
                'Supplier Balance Due',
                _money(self.supplier_balance_due),
                '(In View)',
                _status(self.supplier_balance_due, SUPPLIER_DUE_THRESHOLDS),
            ),
        ]


def _status(value: float, thresholds) -> str:
    warning, danger = thresholds
    if value > danger:
        return 'danger'
    if value > warning:
        return 'warning'
    return 'good'


def _money(amount: float) -> str:
    if float(amount).is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


def _is_delayed(order: Order) -> bool:
    if order.is_cancelled:
        return False
    return any(
        item.is_delayed and item.stage not in (OrderStatus.PAID, OrderStatus.CANCELLED)
        for item in order.stage_history
    )


def calculate_kpis(orders_in_view: Sequence[Order], all_orders: Sequence[Order]) -> KpiSnapshot:
    """
    Compute the KPI snapshot.

    Args:
        orders_in_view: Filtered orders
        all_orders: Whole active dataset

    Returns:
        KpiSnapshot
    """
    snapshot = KpiSnapshot(orders_in_view=len(orders_in_view))

    for order in orders_in_view:
        if order.is_cancelled:
            continue
        if order.payment_status == PaymentStatus.OVERDUE:
            snapshot.overdue_client_payments += 1
        for li in order.line_items:
            if li.supplier_advance_paid_amount and li.supplier_advance_paid_date is None:
                snapshot.supplier_advance_due += li.supplier_advance_paid_amount
            if li.supplier_before_paid_amount and li.supplier_before_paid_date is None:
                snapshot.supplier_pre_dispatch_due += li.supplier_before_paid_amount
            if li.supplier_balance_paid_amount and li.supplier_balance_paid_date is None:
                snapshot.supplier_balance_due += li.supplier_balance_paid_amount

    for order in all_orders:
        if order.is_cancelled:
            continue
        snapshot.active_orders += 1
        if _is_delayed(order):
            snapshot.delayed_orders += 1

        if order.current_stage not in DELIVERED_STAGES:
            continue
        snapshot.delivered_orders += 1
        snapshot.items_sold += order.total_quantity
        snapshot.client_value += order.total_final_price
        if order.payment_status == PaymentStatus.PAID:
            snapshot.collected += order.total_final_price
        else:
            snapshot.collected += order.total_paid

    return snapshot
