"""
Dashboard session: active dataset, data mode persistence and refresh.
"""

from .data_session import DashboardSession, DataMode
from .refresh import RefreshController
from .store import PERSISTED_DATA_MODE_KEY, JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    'DashboardSession',
    'DataMode',
    'RefreshController',
    'KeyValueStore',
    'MemoryStore',
    'JsonFileStore',
    'PERSISTED_DATA_MODE_KEY',
]
