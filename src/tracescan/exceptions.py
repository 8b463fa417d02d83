"""Exception hierarchy for TraceScan.

Probes recover from their own failures; these exceptions are raised by the
components that sit behind the boundary and are converted into result-shaped
values by ``ScanService``.
"""


class TraceScanError(Exception):
    """Base class for all TraceScan errors."""


class UnsupportedPlatformError(TraceScanError):
    """The requested probe has no implementation on this operating system."""

    def __init__(self, feature: str, os_type: str):
        super().__init__(f"{feature} is not supported on {os_type}")
        self.feature = feature
        self.os_type = os_type


class SigningServiceError(TraceScanError):
    """The signing service is not initialized or its key cannot be loaded."""


class ReportError(TraceScanError):
    """A report could not be written or read."""
