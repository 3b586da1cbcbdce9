"""
Dashboard configuration.

Values come from keyword arguments or, through ``DashboardConfig.from_env``,
from environment variables:

    SCM_ORDER_SHEET_URL      Order sheet share or export URL
    SCM_SUPPLIER_SHEET_URL   Supplier/Line-Item sheet share or export URL
    SCM_REFRESH_INTERVAL     Auto-refresh interval in seconds (default 60)
    SCM_REQUEST_TIMEOUT      HTTP timeout in seconds (default 30)
    SCM_STATE_PATH           JSON file holding the persisted data mode
    SCM_RANDOM_SEED          Seed for mock data (default 42)
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import DEFAULT_ORDER_SHEET_URL, DEFAULT_SUPPLIER_SHEET_URL

logger = logging.getLogger(__name__)


@dataclass
class DashboardConfig:
    """
    Configuration for a dashboard session.

    Attributes:
        order_sheet_url: Order sheet URL used for live loads and refreshes
        supplier_sheet_url: Supplier/Line-Item sheet URL
        auto_refresh_interval: Seconds between background refreshes
        request_timeout: Per-request HTTP timeout in seconds
        state_path: JSON file for the persisted data mode (None: in memory)
        mock_order_count: Orders in the mock dataset
        mock_supplier_count: Suppliers in the mock dataset
        random_seed: Seed for mock data generation
    """
    order_sheet_url: str = DEFAULT_ORDER_SHEET_URL
    supplier_sheet_url: str = DEFAULT_SUPPLIER_SHEET_URL
    auto_refresh_interval: float = 60.0
    request_timeout: float = 30.0
    state_path: Optional[str] = None
    mock_order_count: int = 50
    mock_supplier_count: int = 7
    random_seed: int = 42

    def __post_init__(self):
        if self.auto_refresh_interval <= 0:
            raise ValueError(f"auto_refresh_interval must be positive, got {self.auto_refresh_interval}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.mock_order_count < 0 or self.mock_supplier_count < 1:
            raise ValueError("mock_order_count must be >= 0 and mock_supplier_count >= 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "DashboardConfig":
        """
        Build a config from ``SCM_*`` environment variables.

        Keyword overrides win over the environment.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        values = {}

        if env.get('SCM_ORDER_SHEET_URL'):
            values['order_sheet_url'] = env['SCM_ORDER_SHEET_URL']
        if env.get('SCM_SUPPLIER_SHEET_URL'):
            values['supplier_sheet_url'] = env['SCM_SUPPLIER_SHEET_URL']
        if env.get('SCM_STATE_PATH'):
            values['state_path'] = env['SCM_STATE_PATH']

        numeric = [
            ('SCM_REFRESH_INTERVAL', 'auto_refresh_interval', float),
            ('SCM_REQUEST_TIMEOUT', 'request_timeout', float),
            ('SCM_RANDOM_SEED', 'random_seed', int),
        ]
        for var, attr, convert in numeric:
            raw = env.get(var)
            if not raw:
                continue
            try:
                values[attr] = convert(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {var}: {raw!r}") from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        config = cls(**values)
        logger.debug(f"Loaded config: {config}")
        return config
