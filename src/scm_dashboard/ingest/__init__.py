"""
Ingest module for the Order and Supplier/Line-Item sheets.

Supports:
- CSV text or files exported from the two sheets
- Google Sheets share links (downloaded as CSV exports)
- Example templates that document the header contract

Data flow:
    CSV text -> parse_csv -> OrderSheetParser / SupplierSheetParser -> reconcile
"""

from .csv_parser import parse_csv
from .dates import add_days, days_between, format_date, get_stage_date, parse_date
from .google_sheets import SheetFetcher, SheetFetchError, get_export_url
from .line_items import LineItemJoinResult, SupplierSheetParser
from .orders import OrderDraft, OrderSheetParser
from .reconciler import SheetReconciler, derive_payment_status, reconcile
from .templates import (
    ORDER_SHEET_HEADERS,
    SUPPLIER_SHEET_HEADERS,
    generate_order_sheet_template,
    generate_supplier_sheet_template,
)

__all__ = [
    # Tokenizer and dates
    'parse_csv',
    'parse_date',
    'format_date',
    'days_between',
    'add_days',
    'get_stage_date',
    # Sheet parsers
    'SupplierSheetParser',
    'LineItemJoinResult',
    'OrderSheetParser',
    'OrderDraft',
    # Reconciler
    'SheetReconciler',
    'reconcile',
    'derive_payment_status',
    # Remote source
    'SheetFetcher',
    'SheetFetchError',
    'get_export_url',
    # Templates
    'ORDER_SHEET_HEADERS',
    'SUPPLIER_SHEET_HEADERS',
    'generate_order_sheet_template',
    'generate_supplier_sheet_template',
]
