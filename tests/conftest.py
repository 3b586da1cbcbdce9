"""
Shared fixtures: a fixed reference time, CSV builders for both sheets and
an order factory for pipeline tests.
"""

import csv
import io
from datetime import datetime, timedelta

import pytest

from scm_dashboard.constants import OrderStatus, PaymentStatus, ProductType
from scm_dashboard.ingest.templates import (
    ORDER_SHEET_HEADERS,
    SUPPLIER_SHEET_HEADERS,
    SUPPLIER_SHEET_OPTIONAL_HEADERS,
)
from scm_dashboard.models import Order, OrderLineItem, StageHistoryItem


def _to_csv(headers, rows):
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([row.get(h, '') for h in headers])
    return buffer.getvalue()


@pytest.fixture
def now():
    """Reference time used by every time-dependent call."""
    return datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def order_csv():
    """Build Order sheet CSV text from dict rows."""
    def build(*rows, headers=None):
        return _to_csv(headers or ORDER_SHEET_HEADERS, rows)
    return build


@pytest.fixture
def supplier_csv():
    """Build Supplier sheet CSV text from dict rows."""
    def build(*rows, headers=None):
        return _to_csv(headers or SUPPLIER_SHEET_HEADERS + SUPPLIER_SHEET_OPTIONAL_HEADERS, rows)
    return build


@pytest.fixture
def make_order(now):
    """Build an Order directly, bypassing the sheet parsers."""
    def build(order_id='BM-1', stage=OrderStatus.PRODUCTION, stage_started_days_ago=5,
              history=None, line_items=None, **kwargs):
        order_date = kwargs.pop('order_date', now - timedelta(days=30))
        if history is None:
            history = [StageHistoryItem(stage=stage, start_date=now - timedelta(days=stage_started_days_ago))]
        if line_items is None:
            line_items = [OrderLineItem(
                id=f"{order_id}-li-1",
                order_id=order_id,
                product_id='prod-0001',
                product_name='Heavy Duty Lawn Mower',
                product_type=ProductType.GRASS_CUTTER,
                quantity=2,
                supplier_id='SUP-101',
                final_price_per_unit=100.0,
            )]
        defaults = dict(
            client_name='Acme Farms',
            client_country='USA',
            total_quantity=sum(li.quantity for li in line_items),
            total_final_price=500.0,
            total_supplier_cost=sum(li.supplier_cost for li in line_items),
            payment_status=PaymentStatus.PENDING,
        )
        defaults.update(kwargs)
        return Order(
            id=order_id,
            order_date=order_date,
            current_stage=stage,
            stage_history=history,
            line_items=line_items,
            **defaults,
        )
    return build
