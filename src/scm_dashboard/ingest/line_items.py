"""
Supplier / Line-Item sheet parser.

Reads the Supplier sheet (one row per order line item) and builds two
indices used by the reconciler:

- ``suppliers``: supplier ID -> Supplier, first row for an ID wins
- ``line_items_by_order``: order ID -> [OrderLineItem] in sheet order

Bad cells never drop a row. Numbers that fail to parse default to 0 (or stay
unset for optional amounts), invalid dates stay unset, and each problem is
recorded as a human-readable error.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..constants import DEFAULT_SUPPLIER_COUNTRY, PRODUCT_TYPE_LIST, match_product_type
from ..models import OrderLineItem, Supplier
from .dates import parse_date
from .fields import as_count, first_value, parse_number, row_to_record

logger = logging.getLogger(__name__)


SHEET_LABEL = "Supplier/Line Item Data CSV"

REQUIRED_SUPPLIER_HEADERS = [
    'OrderID',
    'LineItemID',
    'Quantity',
    'SupplierID_for_LineItem',
    'SupplierName_for_LineItem',
]

# Supplier unit cost is optional and accepted under several names
UNIT_COST_COLUMNS = [
    'SupplierUnitCost_for_LineItem',
    'SupplierFinalPricePerUnit',
    'FinalPricePerUnit',
]

# Optional line item dates: column -> OrderLineItem attribute
DATE_FIELD_MAP = {
    'SupplierProductionStartDate': 'supplier_production_start_date',
    'SupplierExpectedDispatchDate': 'supplier_expected_dispatch_date',
    'SupplierActualDispatchDate': 'supplier_actual_dispatch_date',
    'SupplierAdvancePaidDate': 'supplier_advance_paid_date',
    'SupplierBeforePaidDate': 'supplier_before_paid_date',
    'SupplierBalancePaidDate': 'supplier_balance_paid_date',
}

# Supplier payment tranche amounts: column -> OrderLineItem attribute
AMOUNT_FIELD_MAP = {
    'SupplierAdvancePaidAmount': 'supplier_advance_paid_amount',
    'SupplierBeforePaidAmount': 'supplier_before_paid_amount',
    'SupplierBalancePaidAmount': 'supplier_balance_paid_amount',
}


@dataclass
class LineItemJoinResult:
    """Indices built from the Supplier sheet."""

    suppliers: Dict[str, Supplier] = field(default_factory=dict)
    line_items_by_order: Dict[str, List[OrderLineItem]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    rows_read: int = 0

    @property
    def line_item_count(self) -> int:
        return sum(len(items) for items in self.line_items_by_order.values())


class SupplierSheetParser:
    """
    Builds supplier and line item indices from Supplier sheet rows.

    Usage:
        parser = SupplierSheetParser()
        result = parser.parse(headers, data_rows)
    """

    def parse(
        self,
        headers: Sequence[str],
        data_rows: Sequence[Sequence[str]],
    ) -> LineItemJoinResult:
        """
        Parse Supplier sheet data rows.

        Args:
            headers: Normalized header row
            data_rows: Rows after the header

        Returns:
            LineItemJoinResult with suppliers, grouped line items and errors
        """
        result = LineItemJoinResult()

        for row_index, row in enumerate(data_rows):
            record = row_to_record(headers, row)
            result.rows_read += 1
            self._parse_row(record, row_index, result)

        logger.info(
            f"Supplier sheet: {result.rows_read} rows, "
            f"{len(result.suppliers)} suppliers, "
            f"{result.line_item_count} line items across "
            f"{len(result.line_items_by_order)} orders"
        )
        return result

    def _parse_row(
        self,
        record: Dict[str, Optional[str]],
        row_index: int,
        result: LineItemJoinResult,
    ) -> None:
        # Header is spreadsheet row 1
        sheet_row = row_index + 2
        errors = result.errors

        order_id = record.get('OrderID')
        if not order_id:
            errors.append(f"Supplier CSV (Row {sheet_row}): Missing OrderID for linking.")
            return

        supplier_id = record.get('SupplierID_for_LineItem')
        if supplier_id and supplier_id not in result.suppliers:
            result.suppliers[supplier_id] = self._build_supplier(
                supplier_id, record, sheet_row, errors
            )
        elif not supplier_id:
            logger.debug(f"Supplier CSV row {sheet_row}: line item without SupplierID")

        line_item_id = record.get('LineItemID') or f"{order_id}-li-{row_index + 1}"
        context = f"Supplier CSV (OrderID: {order_id}, LineItemID: {line_item_id})"

        quantity = self._parse_quantity(record.get('Quantity'), context, errors)

        product_type = match_product_type(record.get('ProductType'))
        if product_type is None:
            if record.get('ProductType'):
                errors.append(
                    f"{context}: Unknown ProductType \"{record['ProductType']}\". "
                    f"Using catalog default."
                )
            product_type = PRODUCT_TYPE_LIST[row_index % len(PRODUCT_TYPE_LIST)]

        unit_cost_raw = first_value(record, UNIT_COST_COLUMNS)
        unit_cost = self._optional_number(unit_cost_raw, 'supplier unit cost', context, errors)
        quoted = self._optional_number(
            record.get('QuotedPricePerUnit'), 'QuotedPricePerUnit', context, errors
        )
        negotiated = self._optional_number(
            record.get('NegotiatedPricePerUnit'), 'NegotiatedPricePerUnit', context, errors
        )

        line_item = OrderLineItem(
            id=line_item_id,
            order_id=order_id,
            product_id=record.get('ProductID') or f"prod-{line_item_id[-4:]}",
            product_name=record.get('ProductName') or f"Product {line_item_id}",
            product_type=product_type,
            quantity=quantity,
            supplier_id=supplier_id,
            quoted_price_per_unit=quoted or 0.0,
            negotiated_price_per_unit=negotiated,
            final_price_per_unit=unit_cost or 0.0,
            line_item_notes=record.get('LineItemNotes'),
            supplier_bl_number=record.get('SupplierBLNumber'),
            supplier_payment_terms=record.get('SupplierPaymentTerms'),
            supplier_notes=record.get('SupplierNotes'),
        )

        for column, attr in DATE_FIELD_MAP.items():
            raw = record.get(column)
            if not raw:
                continue
            parsed = parse_date(raw)
            if parsed is None:
                errors.append(f"{context}: Invalid {column} \"{raw}\".")
            setattr(line_item, attr, parsed)

        for column, attr in AMOUNT_FIELD_MAP.items():
            setattr(line_item, attr, self._optional_number(record.get(column), column, context, errors))

        result.line_items_by_order.setdefault(order_id, []).append(line_item)

    def _build_supplier(
        self,
        supplier_id: str,
        record: Dict[str, Optional[str]],
        sheet_row: int,
        errors: List[str],
    ) -> Supplier:
        name = record.get('SupplierName_for_LineItem')
        if not name:
            errors.append(
                f"Supplier CSV (Row {sheet_row}): Missing SupplierName_for_LineItem "
                f"for SupplierID {supplier_id}."
            )
            name = f"Unknown Supplier {supplier_id}"

        context = f"Supplier CSV (Row {sheet_row}, SupplierID: {supplier_id})"
        avg_tat = self._optional_number(
            record.get('SupplierAvgTATDays_for_LineItem'),
            'SupplierAvgTATDays_for_LineItem', context, errors,
        )
        delivery_rate = self._rate(
            record.get('SupplierDeliveryRate_for_LineItem'),
            'SupplierDeliveryRate_for_LineItem', context, errors,
        )
        pricing_variance = self._rate(
            record.get('SupplierPricingVariance_for_LineItem'),
            'SupplierPricingVariance_for_LineItem', context, errors,
        )

        return Supplier(
            id=supplier_id,
            name=name,
            country=record.get('SupplierCountry_for_LineItem') or DEFAULT_SUPPLIER_COUNTRY,
            avg_tat_days=avg_tat or 0.0,
            delivery_rate=delivery_rate,
            pricing_variance=pricing_variance,
        )

    @staticmethod
    def _parse_quantity(raw: Optional[str], context: str, errors: List[str]):
        if raw is None:
            return 0

        value = parse_number(raw)
        if value is None:
            errors.append(
                f"{context}: Invalid number format for quantity \"{raw}\". Defaulting to 0."
            )
            return 0
        if value < 0:
            errors.append(f"{context}: Negative quantity \"{raw}\". Defaulting to 0.")
            return 0
        return as_count(value)

    @staticmethod
    def _optional_number(
        raw: Optional[str],
        column: str,
        context: str,
        errors: List[str],
    ) -> Optional[float]:
        if raw is None:
            return None
        value = parse_number(raw)
        if value is None:
            errors.append(f"{context}: Invalid number for {column} \"{raw}\".")
        return value

    def _rate(self, raw: Optional[str], column: str, context: str, errors: List[str]) -> float:
        value = self._optional_number(raw, column, context, errors)
        if value is None:
            return 0.0
        if not 0.0 <= value <= 1.0:
            clamped = min(max(value, 0.0), 1.0)
            errors.append(
                f"{context}: {column} \"{raw}\" is outside 0-1. Clamped to {clamped}."
            )
            return clamped
        return value
