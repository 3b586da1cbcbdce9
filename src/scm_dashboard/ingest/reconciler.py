"""
Order / Supplier sheet reconciler.

Joins the Order sheet and the Supplier/Line-Item sheet on OrderID and
produces fully derived Order records.

Flow:
    order text    -> parse_csv -> OrderSheetParser    -> {order_id: OrderDraft}
    supplier text -> parse_csv -> SupplierSheetParser -> {order_id: [OrderLineItem]}
                                                         {supplier_id: Supplier}
    merge -> totals, payment status, cross-row warnings -> ReconcileResult

Usage:
    result = reconcile(order_csv_text, supplier_csv_text)

    reconciler = SheetReconciler()
    result = reconciler.reconcile_files("exports/orders.csv", "exports/suppliers.csv")

A missing header row or a missing required header in either sheet is a
structural failure: the result carries no orders or suppliers, only errors.
Every other problem is reported in ``errors`` next to best-effort data.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..constants import DEFAULT_SLA_DAYS_PER_STAGE, OrderStatus, PaymentStatus
from ..models import Order, OrderLineItem, ReconcileResult
from .csv_parser import parse_csv
from .fields import missing_headers, normalize_headers
from .line_items import REQUIRED_SUPPLIER_HEADERS, SupplierSheetParser
from .line_items import SHEET_LABEL as SUPPLIER_SHEET_LABEL
from .orders import REQUIRED_ORDER_HEADERS, OrderDraft, OrderSheetParser
from .orders import SHEET_LABEL as ORDER_SHEET_LABEL

logger = logging.getLogger(__name__)

# Tried in order when reading sheet exports from disk
FILE_ENCODINGS = ['utf-8-sig', 'cp1252', 'latin-1']

ORDER_FILE_NAMES = ['orders.csv', 'Orders.csv', 'order_sheet.csv', 'order_data.csv']
SUPPLIER_FILE_NAMES = [
    'suppliers.csv', 'Suppliers.csv', 'supplier_sheet.csv',
    'line_items.csv', 'supplier_line_items.csv',
]


class SheetReconciler:
    """
    Reconciles an Order sheet with a Supplier/Line-Item sheet.

    Args:
        now: Reference time for open-stage delays and overdue payments
        sla_days_per_stage: SLA table, defaults to DEFAULT_SLA_DAYS_PER_STAGE
    """

    def __init__(
        self,
        now: Optional[datetime] = None,
        sla_days_per_stage: Optional[Dict[OrderStatus, int]] = None,
    ):
        self.now = now
        self.sla_days_per_stage = dict(sla_days_per_stage or DEFAULT_SLA_DAYS_PER_STAGE)

    def reconcile(self, order_csv: str, supplier_csv: str) -> ReconcileResult:
        """
        Reconcile two sheets given as CSV text.

        Args:
            order_csv: Order sheet CSV text
            supplier_csv: Supplier/Line-Item sheet CSV text

        Returns:
            ReconcileResult with orders (Order sheet order), suppliers
            (first appearance order) and all errors
        """
        now = self.now or datetime.now()
        errors: List[str] = []

        order_headers, order_rows = self._split_sheet(
            order_csv, ORDER_SHEET_LABEL, REQUIRED_ORDER_HEADERS, errors
        )
        supplier_headers, supplier_rows = self._split_sheet(
            supplier_csv, SUPPLIER_SHEET_LABEL, REQUIRED_SUPPLIER_HEADERS, errors
        )
        if order_headers is None or supplier_headers is None:
            logger.warning(f"Reconcile aborted: {len(errors)} structural error(s)")
            return ReconcileResult(errors=errors)

        joined = SupplierSheetParser().parse(supplier_headers, supplier_rows)
        errors.extend(joined.errors)

        order_parser = OrderSheetParser(now=now, sla_days_per_stage=self.sla_days_per_stage)
        drafts, order_errors = order_parser.parse(order_headers, order_rows)
        errors.extend(order_errors)

        orders = [
            self._merge(draft, joined.line_items_by_order.get(order_id, []), now, errors)
            for order_id, draft in drafts.items()
        ]

        for order_id, items in joined.line_items_by_order.items():
            if order_id not in drafts:
                errors.append(
                    f"Warning (OrderID: {order_id}): {len(items)} line item(s) in the "
                    f"Supplier CSV have no matching order in the Order CSV."
                )

        result = ReconcileResult(
            orders=orders,
            suppliers=list(joined.suppliers.values()),
            errors=errors,
        )
        logger.info(
            f"Reconciled {len(result.orders)} orders, {len(result.suppliers)} suppliers "
            f"with {len(result.errors)} error(s)"
        )
        return result

    def reconcile_files(
        self,
        order_path: Union[str, Path],
        supplier_path: Union[str, Path],
    ) -> ReconcileResult:
        """
        Reconcile two sheet exports stored on disk.

        Raises:
            FileNotFoundError: If either file does not exist
            ValueError: If a file cannot be decoded
        """
        order_path = Path(order_path)
        supplier_path = Path(supplier_path)

        logger.info(f"Loading Order sheet from {order_path}")
        order_text = _read_text(order_path)
        logger.info(f"Loading Supplier sheet from {supplier_path}")
        supplier_text = _read_text(supplier_path)

        return self.reconcile(order_text, supplier_text)

    def reconcile_directory(self, csv_dir: Union[str, Path]) -> ReconcileResult:
        """
        Reconcile the two sheet exports found in a directory.

        Expects files named:
        - orders.csv or order_sheet.csv (required)
        - suppliers.csv, supplier_sheet.csv or line_items.csv (required)

        Raises:
            ValueError: If the directory or either file is missing
        """
        csv_dir = Path(csv_dir)
        if not csv_dir.is_dir():
            raise ValueError(f"Directory not found: {csv_dir}")

        order_path = _find_file(csv_dir, ORDER_FILE_NAMES)
        if order_path is None:
            raise ValueError(f"Order sheet CSV not found in {csv_dir}")

        supplier_path = _find_file(csv_dir, SUPPLIER_FILE_NAMES)
        if supplier_path is None:
            raise ValueError(f"Supplier sheet CSV not found in {csv_dir}")

        return self.reconcile_files(order_path, supplier_path)

    @staticmethod
    def _split_sheet(
        text: str,
        label: str,
        required: Sequence[str],
        errors: List[str],
    ) -> Tuple[Optional[List[str]], List[List[str]]]:
        """
        Tokenize a sheet and validate its header row.

        Returns:
            (headers, data_rows); headers is None on a structural failure
        """
        rows = parse_csv(text or '', errors=errors, label=label)
        if not rows:
            errors.append(f"{label} is empty or invalid (must have a header row).")
            return None, []

        headers = normalize_headers(rows[0])
        missing = missing_headers(headers, required)
        for header in missing:
            errors.append(f"{label}: Missing required header \"{header}\".")
        if missing:
            return None, []

        data_rows = rows[1:]
        if not data_rows:
            errors.append(f"Warning: {label} has headers but no data rows.")
        return headers, data_rows

    def _merge(
        self,
        draft: OrderDraft,
        line_items: List[OrderLineItem],
        now: datetime,
        errors: List[str],
    ) -> Order:
        total_quantity = sum(li.quantity for li in line_items)
        total_supplier_cost = round(sum(li.supplier_cost for li in line_items), 2)

        if draft.total_final_price is None:
            errors.append(
                f"Warning (OrderID: {draft.id}): TotalFinalPrice (Client Price) is missing "
                f"or invalid in Order CSV. Order value calculations may be incorrect. "
                f"Defaulted to $0."
            )
            total_final_price = 0.0
        else:
            total_final_price = round(draft.total_final_price, 2)

        if draft.total_negotiated_price:
            total_negotiated_price = round(draft.total_negotiated_price, 2)
        else:
            total_negotiated_price = total_final_price

        order = Order(
            id=draft.id,
            client_name=draft.client_name,
            client_country=draft.client_country,
            order_date=draft.order_date,
            current_stage=draft.current_stage,
            stage_history=draft.stage_history,
            line_items=list(line_items),
            total_quantity=total_quantity,
            total_quoted_price=total_negotiated_price,
            total_negotiated_price=total_negotiated_price,
            total_final_price=total_final_price,
            total_supplier_cost=total_supplier_cost,
            payment_status=derive_payment_status(
                draft.current_stage,
                draft.actual_payment_date,
                draft.expected_payment_date,
                now,
            ),
            expected_payment_date=draft.expected_payment_date,
            actual_payment_date=draft.actual_payment_date,
            expected_delivery_date=draft.expected_delivery_date,
            actual_delivery_date=draft.actual_delivery_date,
            dispatch_date=draft.dispatch_date,
            sla_days_per_stage=dict(self.sla_days_per_stage),
            client_moq=draft.client_moq,
            order_notes=draft.order_notes,
            reason_for_cancellation=draft.reason_for_cancellation,
        )

        if (
            total_supplier_cost == 0
            and not order.is_cancelled
            and any(li.quantity > 0 for li in line_items)
        ):
            errors.append(
                f"Warning (OrderID: {draft.id}): Total Supplier Cost is $0. No supplier "
                f"unit cost was found in the Supplier/Line Item CSV, so supplier cost and "
                f"margin figures for this order will be inaccurate."
            )

        return order


def derive_payment_status(
    current_stage: OrderStatus,
    actual_payment_date: Optional[datetime],
    expected_payment_date: Optional[datetime],
    now: datetime,
) -> PaymentStatus:
    """
    Client payment status from the Order sheet payment dates.

    Paid when an actual payment date exists, Overdue when the expected date
    has passed, Pending otherwise. Cancelled orders are always Pending.
    """
    if current_stage == OrderStatus.CANCELLED:
        return PaymentStatus.PENDING
    if actual_payment_date is not None:
        return PaymentStatus.PAID
    if expected_payment_date is not None and expected_payment_date < now:
        return PaymentStatus.OVERDUE
    return PaymentStatus.PENDING


def reconcile(
    order_csv: str,
    supplier_csv: str,
    now: Optional[datetime] = None,
) -> ReconcileResult:
    """
    Convenience function to reconcile two sheets given as CSV text.

    Args:
        order_csv: Order sheet CSV text
        supplier_csv: Supplier/Line-Item sheet CSV text
        now: Reference time (default: current local time)

    Returns:
        ReconcileResult
    """
    return SheetReconciler(now=now).reconcile(order_csv, supplier_csv)


def _read_text(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    for encoding in FILE_ENCODINGS:
        try:
            with open(path, 'r', encoding=encoding, newline='') as f:
                return f.read()
        except UnicodeDecodeError:
            continue
    raise ValueError(f"Could not decode {path} with any supported encoding")


def _find_file(csv_dir: Path, names: Sequence[str]) -> Optional[Path]:
    for name in names:
        path = csv_dir / name
        if path.exists():
            return path
    return None
