"""API routes."""

from . import reports, risk, scans, volumes, wipe

__all__ = ["reports", "risk", "scans", "volumes", "wipe"]
