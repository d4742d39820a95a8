"""
Ingestion errors.

Only whole-batch failures raise. Malformed rows and unknown lookup values
are absorbed by the cleaners and never surface here.
"""

from typing import Optional


class DashboardError(Exception):
    """Base error for a failed dashboard refresh"""

    summary = "Dashboard refresh failed"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(DashboardError):
    """Required configuration is missing; retrying will not help"""

    summary = "Configuration error"


class UpstreamError(DashboardError):
    """
    The order feed could not be read.

    ``status_code`` is the upstream HTTP status when one was received.
    """

    summary = "Upstream fetch failed"
