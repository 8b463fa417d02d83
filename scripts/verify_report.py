#!/usr/bin/env python3
"""Verify the signature of a report JSON file."""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tracescan.config import settings
from tracescan.reports import ReportService, SigningService


def main(path: str) -> int:
    signer = SigningService(key_path=settings.signing_key_path)
    if settings.signing_key_path is not None and settings.signing_key_path.exists():
        signer.init()

    service = ReportService(
        signer=signer,
        reports_dir=settings.reports_dir,
        version=settings.report_version,
        max_report_bytes=settings.report_max_bytes,
    )
    result = service.verify_report(path)

    if result.get("error"):
        print(f"❌ {result['error']}")
    if not result["valid"]:
        print("❌ Signature is NOT valid")
        return 1

    print(f"✅ Valid signature for report {result['report_id']} ({result['timestamp']})")
    if result["public_key_match"]:
        print("🔑 Signed by this machine's configured key")
    else:
        print("⚠️  Signed by a different key than the one configured here")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", help="Path to a scan-report-<id>.json file")
    args = parser.parse_args()
    sys.exit(main(args.path))
