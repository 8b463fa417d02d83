#!/usr/bin/env python3
"""Run a full scan of this machine and write a signed report."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tracescan.config import settings
from tracescan.reports.rendering import summarize
from tracescan.services import ScanService


async def main(path: str | None) -> int:
    """Scan, sign, and print where the report landed."""
    service = ScanService(settings)
    service.start()
    try:
        print(f"🔍 Scanning ({service.os_type})...")
        scan_data = await service.full_scan(path)
        for line in summarize({"scan_data": scan_data}):
            print(f"   {line}")

        result = await service.generate_report(scan_data)
    finally:
        service.stop()

    if not result["success"]:
        print(f"❌ Failed to generate report: {result['error']}")
        return 1

    print(f"✅ Report {result['report_id']}")
    print(f"📄 PDF:  {result['document_path']}")
    print(f"📍 JSON: {result['data_path']}")
    if settings.signing_key_path is None:
        print("⚠️  Signed with an ephemeral key; set SIGNING_KEY_PATH to verify in a later run")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--path", help="Directory for the hidden artifact scan (default: home)")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level)
    sys.exit(asyncio.run(main(args.path)))
