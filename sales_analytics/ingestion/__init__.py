"""
Data Ingestion Module
"""
from .errors import ConfigurationError, DashboardError, UpstreamError
from .refresher import Batch, DashboardRefresher, RefreshState
from .upstream import RawPayload, UpstreamClient, split_payload

__all__ = [
    "ConfigurationError",
    "DashboardError",
    "UpstreamError",
    "Batch",
    "DashboardRefresher",
    "RefreshState",
    "RawPayload",
    "UpstreamClient",
    "split_payload",
]
