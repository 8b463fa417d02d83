#!/usr/bin/env python3
"""Convenience script to run the TraceScan API."""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

from tracescan.config import settings

if __name__ == "__main__":
    print("🔍 Starting TraceScan...")
    print(f"📂 Reports: {settings.reports_dir}")
    print(f"🔑 Signing key: {settings.signing_key_path or 'ephemeral (per process)'}")
    print(f"🌐 API: http://{settings.api_host}:{settings.api_port}")
    print()

    uvicorn.run(
        "tracescan.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
