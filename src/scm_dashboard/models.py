"""
Order, line item and supplier models.

All dates are naive local datetimes. ``to_dict()`` renders them as ISO-8601
strings and enums by value so results can be dumped with ``json``.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .constants import (
    DEFAULT_SLA_DAYS_PER_STAGE,
    DEFAULT_SUPPLIER_COUNTRY,
    OrderStatus,
    PaymentStatus,
    ProductType,
)


def _jsonable(value: Any) -> Any:
    """Recursively convert dates and enums into JSON-friendly values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {_jsonable(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass
class Supplier:
    """Supplier registered from the first line item that names it."""

    id: str
    name: str
    country: str = DEFAULT_SUPPLIER_COUNTRY
    avg_tat_days: float = 0.0
    delivery_rate: float = 0.0
    pricing_variance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass
class OrderLineItem:
    """One product/quantity/supplier unit within an order."""

    id: str
    order_id: str
    product_id: str
    product_name: str
    product_type: ProductType
    quantity: float
    supplier_id: Optional[str]
    quoted_price_per_unit: float = 0.0
    negotiated_price_per_unit: Optional[float] = None
    # Unit cost paid to the supplier
    final_price_per_unit: float = 0.0
    line_item_notes: Optional[str] = None

    supplier_production_start_date: Optional[datetime] = None
    supplier_expected_dispatch_date: Optional[datetime] = None
    supplier_actual_dispatch_date: Optional[datetime] = None
    supplier_bl_number: Optional[str] = None
    supplier_payment_terms: Optional[str] = None
    supplier_advance_paid_amount: Optional[float] = None
    supplier_advance_paid_date: Optional[datetime] = None
    supplier_before_paid_amount: Optional[float] = None
    supplier_before_paid_date: Optional[datetime] = None
    supplier_balance_paid_amount: Optional[float] = None
    supplier_balance_paid_date: Optional[datetime] = None
    supplier_notes: Optional[str] = None

    @property
    def supplier_cost(self) -> float:
        return self.final_price_per_unit * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass
class StageHistoryItem:
    """An order's stay in one pipeline stage."""

    stage: OrderStatus
    start_date: datetime
    end_date: Optional[datetime] = None
    is_delayed: bool = False
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass
class ClientPayment:
    """A payment received from the client."""

    id: str
    amount_paid: float
    payment_date: datetime
    payment_method: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass
class Order:
    """
    A fully reconciled purchase order.

    ``total_final_price`` is the client-facing order value and only ever comes
    from the Order sheet. ``total_supplier_cost`` is always recomputed from the
    line items.
    """

    id: str
    client_name: str
    client_country: str
    order_date: datetime
    current_stage: OrderStatus
    stage_history: List[StageHistoryItem] = field(default_factory=list)
    line_items: List[OrderLineItem] = field(default_factory=list)

    total_quantity: float = 0
    total_quoted_price: float = 0.0
    total_negotiated_price: float = 0.0
    total_final_price: float = 0.0
    total_supplier_cost: float = 0.0

    client_payments: List[ClientPayment] = field(default_factory=list)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    expected_payment_date: Optional[datetime] = None
    actual_payment_date: Optional[datetime] = None

    expected_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    dispatch_date: Optional[datetime] = None

    sla_days_per_stage: Dict[OrderStatus, int] = field(
        default_factory=lambda: dict(DEFAULT_SLA_DAYS_PER_STAGE)
    )
    client_moq: Optional[float] = None
    order_notes: Optional[str] = None
    reason_for_cancellation: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self.current_stage == OrderStatus.CANCELLED

    @property
    def total_paid(self) -> float:
        return sum(p.amount_paid for p in self.client_payments)

    @property
    def remaining_balance(self) -> float:
        return self.total_final_price - self.total_paid

    def stage_entry(self, stage: OrderStatus) -> Optional[StageHistoryItem]:
        """First history entry for a stage, if any."""
        for item in self.stage_history:
            if item.stage == stage:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass
class ReconcileResult:
    """Result of reconciling an Order sheet with a Supplier sheet."""

    orders: List[Order] = field(default_factory=list)
    suppliers: List[Supplier] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'orders': [o.to_dict() for o in self.orders],
            'suppliers': [s.to_dict() for s in self.suppliers],
            'errors': list(self.errors),
        }

    def __str__(self) -> str:
        return (
            f"Reconcile Result:\n"
            f"  Orders: {len(self.orders):,}\n"
            f"  Suppliers: {len(self.suppliers):,}\n"
            f"  Line Items: {sum(len(o.line_items) for o in self.orders):,}\n"
            f"  Errors: {len(self.errors)}"
        )
