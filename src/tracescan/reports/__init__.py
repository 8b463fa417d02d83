"""Signed report pipeline: canonicalization, signing, rendering, verification."""

from .canonical import canonical_bytes, normalize, strip_signature
from .rendering import PdfReportRenderer, QrCodeEncoder
from .service import ReportService, verification_token
from .signing import SigningService, verify_signature

__all__ = [
    "PdfReportRenderer",
    "QrCodeEncoder",
    "ReportService",
    "SigningService",
    "canonical_bytes",
    "normalize",
    "strip_signature",
    "verification_token",
    "verify_signature",
]
