"""HTTP client for the admissions portal API."""

from .session import PortalAPIError, PortalClient, PortalSession

__all__ = ["PortalAPIError", "PortalClient", "PortalSession"]
