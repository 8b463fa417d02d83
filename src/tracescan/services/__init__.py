"""Services for TraceScan."""

from .scan_service import ScanService

__all__ = ["ScanService"]
