"""
SCM Dashboard data engine.

Reconciles an Order sheet and a Supplier/Line-Item sheet into a unified order
model, then derives pipeline stage metrics, KPIs and reports from it.

Example Usage:
    from scm_dashboard import reconcile, calculate_kpis

    result = reconcile(order_csv_text, supplier_csv_text)
    print(result)
    kpis = calculate_kpis(result.orders, result.orders)
"""

from .config import DashboardConfig
from .constants import OrderStatus, PaymentStatus, ProductType
from .ingest import SheetFetcher, SheetFetchError, SheetReconciler, reconcile
from .mock_data import MockDataGenerator
from .models import (
    ClientPayment,
    Order,
    OrderLineItem,
    ReconcileResult,
    StageHistoryItem,
    Supplier,
)
from .pipeline import FilterOptions, apply_filters, calculate_kpis, pipeline_summary
from .session import DashboardSession, DataMode, RefreshController

__version__ = '0.1.0'

__all__ = [
    'OrderStatus',
    'ProductType',
    'PaymentStatus',
    'Supplier',
    'OrderLineItem',
    'StageHistoryItem',
    'ClientPayment',
    'Order',
    'ReconcileResult',
    'reconcile',
    'SheetReconciler',
    'SheetFetcher',
    'SheetFetchError',
    'FilterOptions',
    'apply_filters',
    'calculate_kpis',
    'pipeline_summary',
    'MockDataGenerator',
    'DashboardConfig',
    'DashboardSession',
    'DataMode',
    'RefreshController',
]
