"""
Sheet header contract and example templates.

The two templates reconcile cleanly into two orders: one in Production
with two line items from different suppliers, and one Cancelled order.
"""

import csv
import io
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from ..constants import PIPELINE_STAGES, OrderStatus, stage_end_column, stage_start_column

ORDER_SHEET_BASE_HEADERS: List[str] = [
    'OrderID', 'ClientName', 'ClientCountry', 'OrderDate', 'CurrentStage',
    'ExpectedDeliveryDate', 'ExpectedPaymentDate', 'ActualPaymentDate',
    'ClientMOQ', 'OrderNotes', 'ReasonForCancellation',
    'TotalNegotiatedPrice', 'TotalFinalPrice',
]

ORDER_SHEET_HEADERS: List[str] = (
    ORDER_SHEET_BASE_HEADERS
    + [stage_start_column(s) for s in PIPELINE_STAGES]
    + [stage_end_column(s) for s in PIPELINE_STAGES]
    + [stage_start_column(OrderStatus.CANCELLED)]
)

SUPPLIER_SHEET_HEADERS: List[str] = [
    'OrderID',
    'LineItemID',
    'Quantity',
    'SupplierID_for_LineItem',
    'SupplierName_for_LineItem',
    'SupplierAvgTATDays_for_LineItem',
    'SupplierDeliveryRate_for_LineItem',
    'SupplierPricingVariance_for_LineItem',
    'SupplierProductionStartDate',
    'SupplierExpectedDispatchDate',
    'SupplierActualDispatchDate',
    'SupplierBLNumber',
    'SupplierPaymentTerms',
    'SupplierAdvancePaidAmount', 'SupplierAdvancePaidDate',
    'SupplierBeforePaidAmount', 'SupplierBeforePaidDate',
    'SupplierBalancePaidAmount', 'SupplierBalancePaidDate',
    'SupplierNotes',
]

# Optional columns understood by the Supplier sheet parser
SUPPLIER_SHEET_OPTIONAL_HEADERS: List[str] = [
    'ProductID',
    'ProductName',
    'ProductType',
    'QuotedPricePerUnit',
    'NegotiatedPricePerUnit',
    'LineItemNotes',
    'SupplierUnitCost_for_LineItem',
    'SupplierCountry_for_LineItem',
]


def _write_csv(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if v is None else v for v in row])
    return buffer.getvalue()


def _days_ago(now: datetime, days: int) -> str:
    return (now - timedelta(days=days)).strftime('%Y-%m-%d')


def generate_order_sheet_template(now: Optional[datetime] = None) -> str:
    """Example Order sheet CSV with dates relative to ``now``."""
    now = now or datetime.now()
    day = lambda offset: _days_ago(now, offset)

    production = {
        'OrderID': 'BM-2025001',
        'ClientName': 'Global Farm Inc.',
        'ClientCountry': 'USA',
        'OrderDate': day(30),
        'CurrentStage': OrderStatus.PRODUCTION.value,
        'ExpectedDeliveryDate': day(-15),
        'ExpectedPaymentDate': day(-5),
        'ClientMOQ': '100',
        'OrderNotes': 'Rush order for Global Farm.',
        'TotalNegotiatedPrice': '12000',
        'TotalFinalPrice': '11800',
        stage_start_column(OrderStatus.FRESH_ORDER): day(30),
        stage_end_column(OrderStatus.FRESH_ORDER): day(28),
        stage_start_column(OrderStatus.PRODUCTION): day(25),
    }
    cancelled = {
        'OrderID': 'BM-2025002',
        'ClientName': 'Euro Landwirtschaft',
        'ClientCountry': 'Germany',
        'OrderDate': day(10),
        'CurrentStage': OrderStatus.CANCELLED.value,
        'ExpectedDeliveryDate': day(5),
        'ClientMOQ': '20',
        'OrderNotes': 'Initial inquiry, requirements changed.',
        'ReasonForCancellation': 'Client changed requirements.',
        'TotalNegotiatedPrice': '9000',
        'TotalFinalPrice': '8800',
        stage_start_column(OrderStatus.FRESH_ORDER): day(10),
        stage_end_column(OrderStatus.FRESH_ORDER): day(9),
        stage_start_column(OrderStatus.CANCELLED): day(9),
    }

    rows = [[example.get(h, '') for h in ORDER_SHEET_HEADERS] for example in (production, cancelled)]
    return _write_csv(ORDER_SHEET_HEADERS, rows)


def generate_supplier_sheet_template(now: Optional[datetime] = None) -> str:
    """Example Supplier/Line-Item sheet CSV matching the Order sheet template."""
    now = now or datetime.now()
    day = lambda offset: _days_ago(now, offset)
    headers = SUPPLIER_SHEET_HEADERS + SUPPLIER_SHEET_OPTIONAL_HEADERS

    examples = [
        {
            'OrderID': 'BM-2025001',
            'LineItemID': 'BM-2025001-LI1',
            'Quantity': '50',
            'SupplierID_for_LineItem': 'SUP-101',
            'SupplierName_for_LineItem': 'AgroEquip India',
            'SupplierAvgTATDays_for_LineItem': '20',
            'SupplierDeliveryRate_for_LineItem': '0.95',
            'SupplierPricingVariance_for_LineItem': '0.02',
            'SupplierProductionStartDate': day(20),
            'SupplierExpectedDispatchDate': day(5),
            'SupplierActualDispatchDate': day(4),
            'SupplierBLNumber': 'BL12345XYZ',
            'SupplierPaymentTerms': '30% Adv, 40% Pre-Disp, 30% Post-Disp',
            'SupplierAdvancePaidAmount': '2700',
            'SupplierAdvancePaidDate': day(22),
            'SupplierBeforePaidAmount': '3600',
            'SupplierBeforePaidDate': day(6),
            'SupplierBalancePaidAmount': '2700',
            'SupplierBalancePaidDate': day(3),
            'SupplierNotes': 'Awaiting final QC check from supplier side.',
            'ProductType': 'Grass Cutter',
            'SupplierUnitCost_for_LineItem': '180',
        },
        {
            'OrderID': 'BM-2025001',
            'LineItemID': 'BM-2025001-LI2',
            'Quantity': '20',
            'SupplierID_for_LineItem': 'SUP-102',
            'SupplierName_for_LineItem': 'FarmMech Solutions',
            'SupplierAvgTATDays_for_LineItem': '15',
            'SupplierDeliveryRate_for_LineItem': '0.98',
            'SupplierPricingVariance_for_LineItem': '0.01',
            'SupplierProductionStartDate': day(18),
            'SupplierExpectedDispatchDate': day(3),
            'SupplierActualDispatchDate': day(3),
            'SupplierBLNumber': 'BL98765ABC',
            'SupplierPaymentTerms': '100% on Dispatch',
            'SupplierBalancePaidAmount': '1400',
            'SupplierBalancePaidDate': day(2),
            'SupplierNotes': 'All clear.',
            'ProductType': 'Water Pump',
            'SupplierUnitCost_for_LineItem': '70',
        },
        {
            'OrderID': 'BM-2025002',
            'LineItemID': 'BM-2025002-LI1',
            'Quantity': '20',
            'SupplierID_for_LineItem': 'SUP-101',
            'SupplierName_for_LineItem': 'AgroEquip India',
            'SupplierAvgTATDays_for_LineItem': '20',
            'SupplierDeliveryRate_for_LineItem': '0.95',
            'SupplierPricingVariance_for_LineItem': '0.02',
            'SupplierNotes': 'Related to cancelled order BM-2025002.',
            'ProductType': 'Power Tiller',
        },
    ]

    rows = [[example.get(h, '') for h in headers] for example in examples]
    return _write_csv(headers, rows)
