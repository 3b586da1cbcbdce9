"""
Session-level owner of the active dataset.

A session holds two datasets, mock and live, and a data mode that selects
between them. The persisted data mode lives in a KeyValueStore so the next
session starts where the last one left off:

- no persisted mode: try the configured sheets; fall back to mock data
- ``live``: try the configured sheets
- ``mock``: load mock data

A failed initial load falls back to mock data. A failed refresh keeps the
last good live dataset and only reports the error.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from ..config import DashboardConfig
from ..constants import OrderStatus, PaymentStatus
from ..ingest.google_sheets import SheetFetcher, SheetFetchError
from ..ingest.reconciler import SheetReconciler
from ..mock_data import MockDataGenerator
from ..models import Order, ReconcileResult, StageHistoryItem, Supplier
from ..pipeline.filters import FilterOptions, apply_filters
from ..pipeline.kpis import KpiSnapshot, calculate_kpis
from ..pipeline.stage_metrics import StageMetrics, pipeline_summary
from .store import PERSISTED_DATA_MODE_KEY, KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


class DataMode(str, Enum):
    """Which dataset the dashboard shows."""

    MOCK = "mock"
    LIVE = "live"


class DashboardSession:
    """
    Owns the mock and live datasets and the current view.

    Args:
        config: Dashboard configuration
        store: Store for the persisted data mode (default: in memory)
        fetcher: Sheet fetcher (default: built from config)
        clock: Returns the current time; injectable for tests
    """

    def __init__(
        self,
        config: Optional[DashboardConfig] = None,
        store: Optional[KeyValueStore] = None,
        fetcher: Optional[SheetFetcher] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or DashboardConfig()
        self.store = store or MemoryStore()
        self.fetcher = fetcher or SheetFetcher(timeout=self.config.request_timeout)
        self.clock = clock

        self.data_mode = DataMode.MOCK
        self.filters = FilterOptions()
        self.search_term = ''
        self.processing_errors: List[str] = []
        self.data_stats: Optional[Dict[str, int]] = None
        self.is_loading = False

        self._mock_orders: List[Order] = []
        self._mock_suppliers: List[Supplier] = []
        self._live_orders: List[Order] = []
        self._live_suppliers: List[Supplier] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Dataset views
    # ------------------------------------------------------------------

    @property
    def all_orders(self) -> List[Order]:
        """Active dataset, unaffected by search and filters."""
        with self._lock:
            if self.data_mode == DataMode.LIVE:
                return list(self._live_orders)
            return list(self._mock_orders)

    @property
    def suppliers(self) -> List[Supplier]:
        with self._lock:
            if self.data_mode == DataMode.LIVE:
                return list(self._live_suppliers)
            return list(self._mock_suppliers)

    @property
    def orders(self) -> List[Order]:
        """Active dataset after search and filters."""
        return apply_filters(self.all_orders, self.filters, self.search_term)

    def kpis(self) -> KpiSnapshot:
        return calculate_kpis(self.orders, self.all_orders)

    def pipeline(self) -> List[StageMetrics]:
        return pipeline_summary(self.orders, self.all_orders, now=self.clock())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Restore the persisted data mode and load the matching dataset."""
        persisted = self.store.get(PERSISTED_DATA_MODE_KEY)

        if persisted is None:
            logger.info("No persisted data mode found, attempting to load live data by default")
            self.load_from_sheets(initial=True)
        elif persisted == DataMode.LIVE.value:
            logger.info("Persisted data mode is 'live', loading live data")
            self.load_from_sheets(initial=not self._live_orders)
        else:
            logger.info("Persisted data mode is 'mock', loading mock data")
            with self._lock:
                self.data_mode = DataMode.MOCK
            if not self._mock_orders:
                self.load_mock_data()

    def load_mock_data(self) -> None:
        """Generate a fresh mock dataset from the configured seed."""
        generator = MockDataGenerator(random_seed=self.config.random_seed)
        suppliers, orders = generator.generate(
            order_count=self.config.mock_order_count,
            supplier_count=self.config.mock_supplier_count,
            now=self.clock(),
        )
        with self._lock:
            self._mock_suppliers = suppliers
            self._mock_orders = orders
            self.processing_errors = []

    def switch_to_mock_data(self) -> None:
        """Show mock data and persist the choice."""
        self.store.set(PERSISTED_DATA_MODE_KEY, DataMode.MOCK.value)
        with self._lock:
            self.data_mode = DataMode.MOCK
            self.data_stats = None
            self.processing_errors = []
        if not self._mock_orders or not self._mock_suppliers:
            self.load_mock_data()

    def load_live_data(self, result: ReconcileResult) -> bool:
        """
        Install a reconcile result as the live dataset.

        The result is applied when it carries any data or no errors at all;
        otherwise only its errors are recorded.

        Returns:
            True if the result became the live dataset
        """
        with self._lock:
            self.processing_errors = list(result.errors)
            if result.orders or result.suppliers or not result.errors:
                self._live_orders = list(result.orders)
                self._live_suppliers = list(result.suppliers)
                self.data_mode = DataMode.LIVE
                self.data_stats = {
                    'orders_count': len(result.orders),
                    'suppliers_count': len(result.suppliers),
                }
                applied = True
            else:
                self.data_stats = None
                applied = False

        if applied:
            self.store.set(PERSISTED_DATA_MODE_KEY, DataMode.LIVE.value)
        return applied

    def load_from_sheets(
        self,
        initial: bool = False,
        background: bool = False,
        order_url: Optional[str] = None,
        supplier_url: Optional[str] = None,
    ) -> bool:
        """
        Fetch and reconcile both sheets.

        Args:
            initial: First load of the session; failure falls back to mock data
            background: Timer-driven refresh; failure keeps current live data
            order_url: Order sheet URL (default: config)
            supplier_url: Supplier sheet URL (default: config)

        Returns:
            True if live data was loaded without any processing errors
        """
        order_url = order_url or self.config.order_sheet_url
        supplier_url = supplier_url or self.config.supplier_sheet_url

        with self._lock:
            self.is_loading = not background or not self._live_orders or initial
        try:
            try:
                order_csv, supplier_csv = self.fetcher.fetch_pair(order_url, supplier_url)
            except SheetFetchError as e:
                message = f"Error loading from Google Sheets: {e}"
                logger.warning(message)
                with self._lock:
                    self.processing_errors = [message]
                self._fall_back(initial)
                return False

            result = SheetReconciler(now=self.clock()).reconcile(order_csv, supplier_csv)
            if result.orders or result.suppliers:
                self.load_live_data(result)
                return result.success

            with self._lock:
                self.processing_errors = list(result.errors) or ["No data found in the Google Sheets."]
            self._fall_back(initial)
            return False
        finally:
            with self._lock:
                self.is_loading = False

    def _fall_back(self, initial: bool) -> None:
        if not initial:
            return
        logger.warning("Initial live load failed, showing mock data")
        self.store.set(PERSISTED_DATA_MODE_KEY, DataMode.LIVE.value)
        with self._lock:
            self.data_mode = DataMode.MOCK
            if not self._mock_orders:
                errors = self.processing_errors
                self.load_mock_data()
                self.processing_errors = errors

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_order(self, updated: Order) -> bool:
        """
        Replace the order with the same ID in the active dataset.

        Returns:
            True if an order was replaced
        """
        with self._lock:
            orders = self._live_orders if self.data_mode == DataMode.LIVE else self._mock_orders
            for index, order in enumerate(orders):
                if order.id == updated.id:
                    orders[index] = updated
                    return True
        logger.warning(f"update_order: order {updated.id} not found in {self.data_mode.value} data")
        return False

    def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Optional[Order]:
        """
        Cancel an order in the active dataset.

        Any earlier CANCELLED entry is replaced. Payment and delivery fields
        are cleared and the expected delivery date is reset to the order date.

        Returns:
            The cancelled order, or None if the ID is unknown
        """
        with self._lock:
            orders = self._live_orders if self.data_mode == DataMode.LIVE else self._mock_orders
            for index, order in enumerate(orders):
                if order.id != order_id:
                    continue
                history = [h for h in order.stage_history if h.stage != OrderStatus.CANCELLED]
                history.append(StageHistoryItem(
                    stage=OrderStatus.CANCELLED,
                    start_date=self.clock(),
                    notes=reason or "Order Cancelled",
                ))
                cancelled = replace(
                    order,
                    current_stage=OrderStatus.CANCELLED,
                    reason_for_cancellation=reason,
                    stage_history=history,
                    payment_status=PaymentStatus.PENDING,
                    expected_delivery_date=order.order_date,
                    actual_delivery_date=None,
                    expected_payment_date=None,
                    actual_payment_date=None,
                    dispatch_date=None,
                    client_payments=[],
                )
                orders[index] = cancelled
                logger.info(f"Cancelled order {order_id}")
                return cancelled
        return None
