"""
Order search and filtering.

``apply_filters`` applies the free-text search first, then each filter in
turn. Empty list filters mean "no restriction". Date bounds compare calendar
days and are inclusive.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Union

from ..constants import ProductType
from ..ingest.dates import parse_date
from ..models import Order


@dataclass
class FilterOptions:
    """Dashboard filter bar state."""

    date_start: Optional[Any] = None
    date_end: Optional[Any] = None
    supplier_ids: List[str] = field(default_factory=list)
    client_countries: List[str] = field(default_factory=list)
    product_types: List[ProductType] = field(default_factory=list)
    show_cancelled_orders: bool = False
    year: Optional[Union[int, str]] = None


def matches_search(order: Order, search_term: str) -> bool:
    """Case-insensitive match on order ID, client, product name or type."""
    term = search_term.strip().lower()
    if not term:
        return True
    if term in order.id.lower() or term in (order.client_name or '').lower():
        return True
    return any(
        term in (li.product_name or '').lower() or term in li.product_type.value.lower()
        for li in order.line_items
    )


def apply_filters(
    orders: Sequence[Order],
    filters: Optional[FilterOptions] = None,
    search_term: str = '',
) -> List[Order]:
    """
    Filter orders for the current view.

    Args:
        orders: Active dataset
        filters: Filter options (default: hide cancelled only)
        search_term: Free-text search

    Returns:
        Orders in their original order
    """
    filters = filters or FilterOptions()
    result = list(orders)

    if search_term and search_term.strip():
        result = [o for o in result if matches_search(o, search_term)]

    if not filters.show_cancelled_orders:
        result = [o for o in result if not o.is_cancelled]

    if filters.year:
        year = int(filters.year)
        result = [o for o in result if o.order_date.year == year]

    start = parse_date(filters.date_start)
    if start is not None:
        result = [o for o in result if o.order_date.date() >= start.date()]

    end = parse_date(filters.date_end)
    if end is not None:
        result = [o for o in result if o.order_date.date() <= end.date()]

    if filters.supplier_ids:
        wanted = set(filters.supplier_ids)
        result = [o for o in result if any(li.supplier_id in wanted for li in o.line_items)]

    if filters.client_countries:
        wanted = set(filters.client_countries)
        result = [o for o in result if o.client_country in wanted]

    if filters.product_types:
        wanted = {ProductType(p) for p in filters.product_types}
        result = [o for o in result if any(li.product_type in wanted for li in o.line_items)]

    return result


def unique_client_countries(orders: Sequence[Order]) -> List[str]:
    return sorted({o.client_country for o in orders if o.client_country})


def unique_product_types(orders: Sequence[Order]) -> List[ProductType]:
    present = {li.product_type for o in orders for li in o.line_items}
    return [p for p in ProductType if p in present]


def unique_years(orders: Sequence[Order]) -> List[int]:
    """Order years, most recent first."""
    return sorted({o.order_date.year for o in orders}, reverse=True)
