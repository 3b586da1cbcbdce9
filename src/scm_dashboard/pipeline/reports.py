"""
Tabular reports built with pandas.

- orders_frame: one row per order, as in the order list table
- payment_tracker_frame: client payment position for orders where payment
  is due or has been received
- supplier_performance_frame: supplier metrics joined with line item volume

Chart summaries over non-cancelled orders:

- country_distribution_frame: top countries by order count, with value
- order_trends_frame: monthly order count and value
- product_popularity_frame: units ordered per product type
- pricing_summary_frame: quoted, negotiated and supplier totals per product type
- payment_status_frame: order count per client payment status

``write_reports`` saves every report as a CSV file.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from ..constants import PRODUCT_TYPE_LIST, OrderStatus, PaymentStatus
from ..models import Order, Supplier

logger = logging.getLogger(__name__)

ORDER_COLUMNS = [
    'Order ID', 'Client', 'Country', 'Items (Qty)', 'Order Date', 'Stage',
    'Exp. Delivery', 'Client Price', 'Supplier Cost', 'Margin', 'Payment', 'Suppliers',
]

PAYMENT_COLUMNS = [
    'Order ID', 'Client Name', 'Total Client Price ($)', 'Total Paid by Client ($)',
    'Remaining Balance ($)', 'Payment Status', 'Expected Final Payment Date',
]

SUPPLIER_COLUMNS = [
    'Supplier ID', 'Supplier Name', 'Country', 'Avg. TAT (days)', 'Delivery Rate (%)',
    'Pricing Variance (%)', 'Line Items', 'Orders', 'Total Quantity', 'Total Cost ($)',
]

COUNTRY_COLUMNS = ['Country', 'Orders', 'Total Value ($)']
TREND_COLUMNS = ['Month', 'Orders', 'Total Value ($)']
PRODUCT_COLUMNS = ['Product Type', 'Total Quantity']
PRICING_COLUMNS = [
    'Product Type', 'Orders', 'Total Quoted ($)', 'Total Negotiated ($)', 'Total Supplier Cost ($)',
]
PAYMENT_STATUS_COLUMNS = ['Payment Status', 'Orders']

TOP_COUNTRIES = 10


def orders_frame(orders: Sequence[Order]) -> pd.DataFrame:
    """Order list with financial rollups and the suppliers involved."""
    records = []
    for order in orders:
        supplier_ids = sorted({li.supplier_id for li in order.line_items if li.supplier_id})
        records.append({
            'Order ID': order.id,
            'Client': order.client_name,
            'Country': order.client_country,
            'Items (Qty)': order.total_quantity,
            'Order Date': order.order_date,
            'Stage': order.current_stage.value,
            'Exp. Delivery': order.expected_delivery_date,
            'Client Price': order.total_final_price,
            'Supplier Cost': order.total_supplier_cost,
            'Margin': round(order.total_final_price - order.total_supplier_cost, 2),
            'Payment': order.payment_status.value,
            'Suppliers': ', '.join(supplier_ids),
        })
    return pd.DataFrame.from_records(records, columns=ORDER_COLUMNS)


def _needs_payment_tracking(order: Order) -> bool:
    if order.is_cancelled:
        return False
    return (
        order.current_stage in (OrderStatus.DELIVERED, OrderStatus.PAID)
        or order.payment_status in (PaymentStatus.OVERDUE, PaymentStatus.PARTIALLY_PAID)
        or (order.payment_status == PaymentStatus.PENDING and order.expected_payment_date is not None)
    )


def payment_tracker_frame(orders: Sequence[Order]) -> pd.DataFrame:
    """Client payment position for delivered, paid, overdue or scheduled orders."""
    records = [
        {
            'Order ID': order.id,
            'Client Name': order.client_name,
            'Total Client Price ($)': order.total_final_price,
            'Total Paid by Client ($)': order.total_paid,
            'Remaining Balance ($)': round(order.remaining_balance, 2),
            'Payment Status': order.payment_status.value,
            'Expected Final Payment Date': order.expected_payment_date,
        }
        for order in orders
        if _needs_payment_tracking(order)
    ]
    return pd.DataFrame.from_records(records, columns=PAYMENT_COLUMNS)


def supplier_performance_frame(
    suppliers: Sequence[Supplier],
    orders: Optional[Sequence[Order]] = None,
) -> pd.DataFrame:
    """
    Supplier metrics, optionally joined with line item volume per supplier.

    Suppliers without line items in ``orders`` show zero volume.
    """
    frame = pd.DataFrame.from_records(
        [
            {
                'Supplier ID': s.id,
                'Supplier Name': s.name,
                'Country': s.country,
                'Avg. TAT (days)': s.avg_tat_days,
                'Delivery Rate (%)': round(s.delivery_rate * 100, 1),
                'Pricing Variance (%)': round(s.pricing_variance * 100, 1),
            }
            for s in suppliers
        ],
        columns=SUPPLIER_COLUMNS[:6],
    )

    line_items = pd.DataFrame.from_records(
        [
            {
                'Supplier ID': li.supplier_id,
                'order_id': li.order_id,
                'line_item_id': li.id,
                'quantity': li.quantity,
                'cost': li.supplier_cost,
            }
            for order in (orders or [])
            for li in order.line_items
            if li.supplier_id
        ],
        columns=['Supplier ID', 'order_id', 'line_item_id', 'quantity', 'cost'],
    )

    volume = line_items.groupby('Supplier ID').agg(**{
        'Line Items': ('line_item_id', 'count'),
        'Orders': ('order_id', 'nunique'),
        'Total Quantity': ('quantity', 'sum'),
        'Total Cost ($)': ('cost', 'sum'),
    }).reset_index()

    frame = frame.merge(volume, on='Supplier ID', how='left')
    for column in ['Line Items', 'Orders', 'Total Quantity', 'Total Cost ($)']:
        frame[column] = pd.to_numeric(frame[column], errors='coerce').fillna(0)
    frame['Line Items'] = frame['Line Items'].astype(int)
    frame['Orders'] = frame['Orders'].astype(int)
    frame['Total Cost ($)'] = frame['Total Cost ($)'].round(2)
    return frame[SUPPLIER_COLUMNS]


def _chart_orders(orders: Sequence[Order]) -> List[Order]:
    return [order for order in orders if not order.is_cancelled]


def _in_catalog_order(summary: pd.DataFrame) -> pd.DataFrame:
    """Reorder rows indexed by product type name to the catalog order."""
    present = [t.value for t in PRODUCT_TYPE_LIST if t.value in summary.index]
    return summary.loc[present]


def country_distribution_frame(orders: Sequence[Order], top: int = TOP_COUNTRIES) -> pd.DataFrame:
    """
    Order count and value per client country, busiest countries first.

    Ties keep the order in which countries first appear.
    """
    frame = pd.DataFrame.from_records(
        [{'Country': o.client_country, 'value': o.total_final_price} for o in _chart_orders(orders)],
        columns=['Country', 'value'],
    )
    if frame.empty:
        return pd.DataFrame(columns=COUNTRY_COLUMNS)

    summary = frame.groupby('Country', sort=False).agg(**{
        'Orders': ('value', 'count'),
        'Total Value ($)': ('value', 'sum'),
    }).reset_index()
    summary = summary.sort_values('Orders', ascending=False, kind='stable').head(top).copy()
    summary['Total Value ($)'] = summary['Total Value ($)'].round(2)
    return summary[COUNTRY_COLUMNS].reset_index(drop=True)


def order_trends_frame(orders: Sequence[Order]) -> pd.DataFrame:
    """Order count and value per order month (``YYYY-MM``), oldest first."""
    frame = pd.DataFrame.from_records(
        [
            {'Month': o.order_date.strftime('%Y-%m'), 'value': o.total_final_price}
            for o in _chart_orders(orders)
        ],
        columns=['Month', 'value'],
    )
    if frame.empty:
        return pd.DataFrame(columns=TREND_COLUMNS)

    summary = frame.groupby('Month').agg(**{
        'Orders': ('value', 'count'),
        'Total Value ($)': ('value', 'sum'),
    }).reset_index()
    summary['Total Value ($)'] = summary['Total Value ($)'].round(2)
    return summary[TREND_COLUMNS]


def product_popularity_frame(orders: Sequence[Order]) -> pd.DataFrame:
    """Units ordered per product type; types with no units are left out."""
    frame = pd.DataFrame.from_records(
        [
            {'Product Type': li.product_type.value, 'Total Quantity': li.quantity}
            for o in _chart_orders(orders)
            for li in o.line_items
        ],
        columns=PRODUCT_COLUMNS,
    )
    if frame.empty:
        return pd.DataFrame(columns=PRODUCT_COLUMNS)

    summary = _in_catalog_order(frame.groupby('Product Type')[['Total Quantity']].sum())
    summary = summary[summary['Total Quantity'] > 0]
    return summary.reset_index()[PRODUCT_COLUMNS]


def pricing_summary_frame(orders: Sequence[Order]) -> pd.DataFrame:
    """
    Quoted vs negotiated client pricing and supplier cost per product type.

    A line item without a negotiated price counts at its quoted price.
    ``Orders`` is the number of orders with at least one item of the type.
    """
    records = []
    for order in _chart_orders(orders):
        for li in order.line_items:
            negotiated = li.negotiated_price_per_unit or li.quoted_price_per_unit
            records.append({
                'Product Type': li.product_type.value,
                'order_id': order.id,
                'quoted': li.quoted_price_per_unit * li.quantity,
                'negotiated': negotiated * li.quantity,
                'cost': li.supplier_cost,
            })
    frame = pd.DataFrame.from_records(
        records, columns=['Product Type', 'order_id', 'quoted', 'negotiated', 'cost'],
    )
    if frame.empty:
        return pd.DataFrame(columns=PRICING_COLUMNS)

    summary = frame.groupby('Product Type').agg(**{
        'Orders': ('order_id', 'nunique'),
        'Total Quoted ($)': ('quoted', 'sum'),
        'Total Negotiated ($)': ('negotiated', 'sum'),
        'Total Supplier Cost ($)': ('cost', 'sum'),
    })
    summary = _in_catalog_order(summary).round(2)
    return summary.reset_index()[PRICING_COLUMNS]


def payment_status_frame(orders: Sequence[Order]) -> pd.DataFrame:
    """Order count per client payment status; empty statuses are left out."""
    counts = pd.Series(
        [o.payment_status.value for o in _chart_orders(orders)], dtype=object,
    ).value_counts()
    rows = [
        {'Payment Status': status.value, 'Orders': int(counts[status.value])}
        for status in PaymentStatus
        if status.value in counts.index
    ]
    return pd.DataFrame.from_records(rows, columns=PAYMENT_STATUS_COLUMNS)


def build_reports(
    orders: Sequence[Order],
    suppliers: Sequence[Supplier],
) -> Dict[str, pd.DataFrame]:
    """All reports keyed by file stem."""
    return {
        'orders': orders_frame(orders),
        'client_payments': payment_tracker_frame(orders),
        'supplier_performance': supplier_performance_frame(suppliers, orders),
        'country_distribution': country_distribution_frame(orders),
        'order_trends': order_trends_frame(orders),
        'product_popularity': product_popularity_frame(orders),
        'pricing_summary': pricing_summary_frame(orders),
        'payment_status': payment_status_frame(orders),
    }


def write_reports(
    orders: Sequence[Order],
    suppliers: Sequence[Supplier],
    output_dir: Union[str, Path],
) -> Dict[str, Path]:
    """
    Write all reports as CSV files.

    Returns:
        Report name -> written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = {}
    for name, frame in build_reports(orders, suppliers).items():
        path = output_dir / f"{name}.csv"
        frame.to_csv(path, index=False, date_format='%Y-%m-%d')
        written[name] = path
        logger.info(f"Wrote {len(frame)} rows to {path}")
    return written
