"""
Pipeline, KPI, filter and report layers built on reconciled orders.
"""

from .filters import (
    FilterOptions,
    apply_filters,
    unique_client_countries,
    unique_product_types,
    unique_years,
)
from .kpis import Kpi, KpiSnapshot, calculate_kpis
from .reports import (
    build_reports,
    country_distribution_frame,
    order_trends_frame,
    orders_frame,
    payment_status_frame,
    payment_tracker_frame,
    pricing_summary_frame,
    product_popularity_frame,
    supplier_performance_frame,
    write_reports,
)
from .stage_metrics import (
    StageHealth,
    StageMetrics,
    calculate_stage_metrics,
    orders_in_stage,
    pipeline_summary,
)

__all__ = [
    # Stage metrics
    'StageHealth',
    'StageMetrics',
    'calculate_stage_metrics',
    'orders_in_stage',
    'pipeline_summary',
    # KPIs
    'Kpi',
    'KpiSnapshot',
    'calculate_kpis',
    # Filters
    'FilterOptions',
    'apply_filters',
    'unique_client_countries',
    'unique_product_types',
    'unique_years',
    # Reports
    'build_reports',
    'country_distribution_frame',
    'order_trends_frame',
    'orders_frame',
    'payment_status_frame',
    'payment_tracker_frame',
    'pricing_summary_frame',
    'product_popularity_frame',
    'supplier_performance_frame',
    'write_reports',
]
