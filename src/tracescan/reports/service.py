"""
Signed report generation and verification.

A report moves through ``Unsigned -> Signed -> Verified | Invalid``. The
signed bytes are the canonical form of the report without its ``signature``
and ``public_key`` fields; verification rebuilds exactly those bytes.
"""

import json
import logging
import os
import stat
import uuid
from pathlib import Path
from typing import Any, Optional

from ..exceptions import ReportError, SigningServiceError
from ..models import utc_now
from .canonical import canonical_bytes, normalize, strip_signature
from .rendering import CodeEncoder, DocumentRenderer, PdfReportRenderer, QrCodeEncoder
from .signing import SigningService, verify_signature

logger = logging.getLogger(__name__)

REPORT_PREFIX = "scan-report-"
DEFAULT_MAX_REPORT_BYTES = 16 * 1024 * 1024


def verification_token(report_id: str, signature: str) -> str:
    """Short string encoded in the report's QR code."""
    return f"tracescan:{report_id}:{signature[:16]}"


class ReportService:
    """Builds, signs, persists and verifies scan reports."""

    def __init__(
        self,
        signer: SigningService,
        reports_dir: Path,
        version: str = "1.0.0",
        renderer: Optional[DocumentRenderer] = None,
        encoder: Optional[CodeEncoder] = None,
        max_report_bytes: int = DEFAULT_MAX_REPORT_BYTES,
    ):
        self.signer = signer
        self.max_report_bytes = max_report_bytes
        self.reports_dir = Path(reports_dir)
        self.version = version
        self.renderer = renderer or PdfReportRenderer()
        self.encoder = encoder or QrCodeEncoder()

    def build_payload(self, scan_data: dict) -> dict:
        """Unsigned payload with a fresh report ID and timestamp."""
        return normalize({
            "report_id": str(uuid.uuid4()),
            "timestamp": utc_now().isoformat(),
            "version": self.version,
            "scan_data": scan_data or {},
        })

    def sign_payload(self, payload: dict) -> dict:
        """Return the signed report: payload plus signature and public key."""
        unsigned = strip_signature(payload)
        signature = self.signer.sign(canonical_bytes(unsigned))
        return {**unsigned, "signature": signature, "public_key": self.signer.public_key_b64}

    def generate_report(self, scan_data: dict) -> dict[str, Any]:
        """
        Sign ``scan_data`` and write the JSON/PDF report pair.

        Returns:
            dict: ``success`` plus ``report_id``, ``document_path``,
            ``data_path`` and ``signature`` on success, or ``error``
        """
        try:
            report = self.sign_payload(self.build_payload(scan_data))
            report_id = report["report_id"]
            qr_png = self.encoder.encode(verification_token(report_id, report["signature"]))
            data_path, document_path = self._write_pair(report, qr_png)
        except (SigningServiceError, ReportError, ValueError) as e:
            logger.error("Report generation failed: %s", e)
            return {"success": False, "error": str(e)}

        logger.info("Report %s written to %s", report_id, self.reports_dir)
        return {
            "success": True,
            "report_id": report_id,
            "document_path": str(document_path),
            "data_path": str(data_path),
            "signature": report["signature"],
        }

    def _write_pair(self, report: dict, qr_png: bytes) -> tuple[Path, Path]:
        """Write JSON and PDF so that either both exist or neither does."""
        report_id = report["report_id"]
        data_path = self.reports_dir / f"{REPORT_PREFIX}{report_id}.json"
        document_path = self.reports_dir / f"{REPORT_PREFIX}{report_id}.pdf"
        tmp_data = data_path.with_name(data_path.name + ".tmp")
        tmp_document = document_path.with_name(document_path.name + ".tmp")

        try:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
            tmp_data.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
            self.renderer.render(report, qr_png, tmp_document)
            os.replace(tmp_data, data_path)
            os.replace(tmp_document, document_path)
        except Exception as e:
            for path in (tmp_data, tmp_document, data_path, document_path):
                try:
                    path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as cleanup_error:
                    logger.warning("Could not remove %s: %s", path, cleanup_error)
            raise ReportError(f"Could not write report {report_id}: {e}") from e

        return data_path, document_path

    def verify_report(self, path: str | Path) -> dict[str, Any]:
        """
        Verify a persisted report's signature.

        Returns:
            dict: ``valid`` plus ``report_id``, ``timestamp`` and
            ``public_key_match`` when the report could be read, or ``error``
        """
        try:
            raw = self._read_bounded(Path(path))
            report = json.loads(raw.decode("utf-8"))
        except ReportError as e:
            return {"valid": False, "error": str(e)}
        except (OSError, UnicodeDecodeError) as e:
            return {"valid": False, "error": f"Cannot read report: {e}"}
        except json.JSONDecodeError as e:
            return {"valid": False, "error": f"Report is not valid JSON: {e}"}

        return self.verify_document(report)

    def _read_bounded(self, path: Path) -> bytes:
        """Read a regular file of at most ``max_report_bytes``."""
        fd = os.open(path, os.O_RDONLY | getattr(os, "O_NONBLOCK", 0) | getattr(os, "O_BINARY", 0))
        with os.fdopen(fd, "rb") as f:
            if not stat.S_ISREG(os.fstat(f.fileno()).st_mode):
                raise ReportError(f"Report is not a regular file: {path}")
            data = f.read(self.max_report_bytes + 1)
        if len(data) > self.max_report_bytes:
            raise ReportError(f"Report exceeds {self.max_report_bytes} bytes: {path}")
        return data

    def verify_document(self, report: Any) -> dict[str, Any]:
        if not isinstance(report, dict):
            return {"valid": False, "error": "Report must be a JSON object"}

        signature = report.get("signature")
        public_key = report.get("public_key")
        if not isinstance(signature, str) or not isinstance(public_key, str):
            return {"valid": False, "error": "Report has no signature or public key"}

        result: dict[str, Any] = {
            "report_id": report.get("report_id"),
            "timestamp": report.get("timestamp"),
            "public_key_match": self._is_active_key(public_key),
        }
        try:
            result["valid"] = verify_signature(public_key, signature, canonical_bytes(strip_signature(report)))
        except ValueError as e:
            result["valid"] = False
            result["error"] = str(e)
        return result

    def _is_active_key(self, public_key: str) -> bool:
        if not self.signer.is_initialized:
            return False
        return public_key == self.signer.public_key_b64
