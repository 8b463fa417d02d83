"""
Document rendering and QR encoding collaborators for signed reports.

``ReportService`` only depends on the two protocols below; the reportlab and
qrcode implementations are the defaults.
"""

from io import BytesIO
from pathlib import Path
from typing import Iterable, Protocol

import qrcode
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas


class CodeEncoder(Protocol):
    def encode(self, text: str) -> bytes: ...


class DocumentRenderer(Protocol):
    def render(self, report: dict, qr_png: bytes, destination: Path) -> None: ...


class QrCodeEncoder:
    """Encodes a string as a PNG QR code."""

    def __init__(self, box_size: int = 4, border: int = 2):
        self.box_size = box_size
        self.border = border

    def encode(self, text: str) -> bytes:
        qr = qrcode.QRCode(version=None, box_size=self.box_size, border=self.border)
        qr.add_data(text)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")
        buf = BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()


def _section_lines(scan_data: dict) -> Iterable[str]:
    """Human-readable summary lines for each scan section present."""
    volumes = scan_data.get("volumes")
    if isinstance(volumes, list):
        yield f"Volumes ({len(volumes)})"
        for v in volumes:
            if isinstance(v, dict):
                yield (
                    f"  {v.get('identifier', '?')}  {v.get('mount_path', '')}  "
                    f"{v.get('used_gb', '?')}/{v.get('total_gb', '?')} GB  "
                    f"({v.get('usage_percent', '?')}% used)  "
                    f"encryption: {v.get('encryption_mechanism', 'Unknown')}"
                )

    risk = scan_data.get("risk")
    if isinstance(risk, dict):
        yield f"Recoverability risk: {risk.get('risk', 'UNKNOWN')} (score {risk.get('score', 0)})"

    hidden = scan_data.get("hidden_files")
    if isinstance(hidden, dict):
        artifacts = hidden.get("artifacts") or []
        yield (
            f"Hidden artifacts: {len(artifacts)} listed, "
            f"{hidden.get('total_discovered', len(artifacts))} discovered under {hidden.get('scan_root', '?')}"
        )
        for a in artifacts[:15]:
            if isinstance(a, dict):
                yield f"  [{a.get('category', '?')}] {a.get('path', '?')} ({a.get('size_bytes', 0)} bytes)"

    browsers = scan_data.get("browser_profiles")
    if isinstance(browsers, dict):
        yield f"Browser profiles: {browsers.get('total_found', 0)}"
        for p in browsers.get("profiles") or []:
            if isinstance(p, dict):
                yield (
                    f"  {p.get('browser_family', '?')} / {p.get('profile_name', '?')}: "
                    f"{len(p.get('artifacts') or [])} artifacts"
                )

    events = scan_data.get("event_logs")
    if isinstance(events, dict):
        summary = events.get("scan_summary") or {}
        yield (
            f"Event log entries: {events.get('total_entries', 0)} "
            f"(high {summary.get('high_risk', 0)}, medium {summary.get('medium_risk', 0)}, "
            f"low {summary.get('low_risk', 0)})"
        )
        if events.get("error"):
            yield f"  {events['error']}"


class PdfReportRenderer:
    """Renders a signed report summary to PDF with reportlab."""

    MARGIN = 60
    LINE_HEIGHT = 14
    QR_SIZE = 130

    def render(self, report: dict, qr_png: bytes, destination: Path) -> None:
        width, height = letter
        c = canvas.Canvas(str(destination), pagesize=letter)
        c.setTitle(f"TraceScan report {report.get('report_id', '')}")

        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.MARGIN, height - self.MARGIN, "TraceScan Privacy & Recoverability Report")

        header = [
            f"Report ID: {report.get('report_id', '')}",
            f"Timestamp: {report.get('timestamp', '')}",
            f"Version: {report.get('version', '')}",
            f"Signature: {str(report.get('signature', ''))[:44]}...",
            f"Public key: {report.get('public_key', '')}",
        ]
        c.setFont("Helvetica", 9)
        y = height - self.MARGIN - 28
        for line in header:
            c.drawString(self.MARGIN, y, line)
            y -= self.LINE_HEIGHT

        if qr_png:
            qr_img = ImageReader(BytesIO(qr_png))
            c.drawImage(
                qr_img,
                width - self.MARGIN - self.QR_SIZE,
                height - self.MARGIN - self.QR_SIZE - 10,
                width=self.QR_SIZE,
                height=self.QR_SIZE,
                preserveAspectRatio=True,
                mask="auto",
            )
            c.setFont("Helvetica", 7)
            c.drawString(width - self.MARGIN - self.QR_SIZE, height - self.MARGIN - self.QR_SIZE - 20,
                         "Scan to verify report ID and signature")

        y = min(y, height - self.MARGIN - self.QR_SIZE - 40)
        c.setFont("Helvetica", 9)
        for line in _section_lines(report.get("scan_data") or {}):
            if y < self.MARGIN:
                c.showPage()
                c.setFont("Helvetica", 9)
                y = height - self.MARGIN
            c.drawString(self.MARGIN, y, line[:130])
            y -= self.LINE_HEIGHT

        c.save()


def summarize(report: dict) -> list[str]:
    """Plain-text summary used by the CLI scripts."""
    return list(_section_lines(report.get("scan_data") or {}))

