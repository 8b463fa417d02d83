"""Shared FastAPI dependencies."""

from ..services import ScanService

# Set by the application lifespan
scan_service: ScanService | None = None


def get_scan_service() -> ScanService:
    """Return the scan service created at startup."""
    if scan_service is None:
        raise RuntimeError("Scan service is not running")
    return scan_service
