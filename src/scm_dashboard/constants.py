"""
Shared enumerations and lookup tables for the SCM dashboard.

Stage values double as display labels and as the source of the per-stage
column names in the Order sheet (``Stage_<Value without spaces>_StartDate``).
"""

from enum import Enum
from typing import Dict, List


class OrderStatus(str, Enum):
    """Pipeline stages of a purchase order."""

    FRESH_ORDER = "Fresh Order"
    PRODUCTION = "Production"
    READY_FOR_DISPATCH = "Ready for Dispatch"
    DELIVERED = "Delivered to Client"
    PAID = "Payment Received"
    CANCELLED = "Cancelled"

    def __str__(self) -> str:
        return self.value

    @property
    def column_key(self) -> str:
        """Stage name as it appears inside Order sheet column headers."""
        return ''.join(self.value.split())


class ProductType(str, Enum):
    """Closed product catalog."""

    GRASS_CUTTER = "Grass Cutter"
    WATER_PUMP = "Water Pump"
    POWER_TILLER = "Power Tiller"
    SPRAYER = "Agricultural Sprayer"
    HARVESTER = "Mini Harvester"

    def __str__(self) -> str:
        return self.value


class PaymentStatus(str, Enum):
    """Client payment status of an order."""

    PENDING = "Pending"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    OVERDUE = "Overdue"

    def __str__(self) -> str:
        return self.value


ORDER_STATUS_LIST: List[OrderStatus] = [
    OrderStatus.FRESH_ORDER,
    OrderStatus.PRODUCTION,
    OrderStatus.READY_FOR_DISPATCH,
    OrderStatus.DELIVERED,
    OrderStatus.PAID,
    OrderStatus.CANCELLED,
]

# Stages that form the linear pipeline (Cancelled is a side branch)
PIPELINE_STAGES: List[OrderStatus] = [
    s for s in ORDER_STATUS_LIST if s is not OrderStatus.CANCELLED
]

DEFAULT_SLA_DAYS_PER_STAGE: Dict[OrderStatus, int] = {
    OrderStatus.FRESH_ORDER: 2,
    OrderStatus.PRODUCTION: 20,
    OrderStatus.READY_FOR_DISPATCH: 2,
    OrderStatus.DELIVERED: 10,
    OrderStatus.PAID: 30,
    OrderStatus.CANCELLED: 0,
}

PRODUCT_TYPE_LIST: List[ProductType] = list(ProductType)

CLIENT_COUNTRIES = [
    'USA', 'Germany', 'UK', 'France', 'Canada',
    'Australia', 'Japan', 'Brazil', 'South Africa', 'UAE',
]

SUPPLIER_NAMES = [
    'AgroEquip India',
    'FarmMech Solutions',
    'HarvestTech Ltd.',
    'KrishiYantra Corp',
    'GreenField Machines',
]

DEFAULT_SUPPLIER_COUNTRY = 'India'

DEFAULT_ORDER_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/"
    "1BYyNlSrCrXpxVDphyIzO3xtjcJkPjABD8QsnH_yqtT0/edit?gid=624509827#gid=624509827"
)
DEFAULT_SUPPLIER_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/"
    "1BYyNlSrCrXpxVDphyIzO3xtjcJkPjABD8QsnH_yqtT0/edit?gid=1281142439#gid=1281142439"
)


def stage_start_column(stage: OrderStatus) -> str:
    return f"Stage_{stage.column_key}_StartDate"


def stage_end_column(stage: OrderStatus) -> str:
    return f"Stage_{stage.column_key}_EndDate"


def match_order_status(raw: str):
    """
    Resolve a free-text stage label to an OrderStatus.

    Matches the enum value case-insensitively with whitespace collapsed,
    so "ready for  dispatch" resolves but "Bogus" does not.

    Returns:
        OrderStatus or None
    """
    if raw is None:
        return None
    wanted = ' '.join(str(raw).split()).lower()
    if not wanted:
        return None
    for status in ORDER_STATUS_LIST:
        if status.value.lower() == wanted:
            return status
    return None


def match_product_type(raw: str):
    """Resolve a product type label (case-insensitive) or return None."""
    if raw is None:
        return None
    wanted = ' '.join(str(raw).split()).lower()
    for product_type in PRODUCT_TYPE_LIST:
        if product_type.value.lower() == wanted:
            return product_type
    return None
