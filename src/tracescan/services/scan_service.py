"""Scan service - the boundary operations exposed to the UI layer.

Every operation is independently callable and returns a result-shaped dict.
Unexpected exceptions are logged and turned into an ``error`` field; they
never propagate to the caller.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from ..config import Settings, settings as default_settings
from ..models import RiskAssessment
from ..probes import (
    BrowserProfileDetector,
    HiddenArtifactScanner,
    LogMiner,
    ResidueProbe,
    VolumeProber,
    preview_artifact,
)
from ..probes.platforms import detect_os
from ..reports import ReportService, SigningService
from ..scoring import assess_risk
from ..wipe import WipeSimulation

logger = logging.getLogger(__name__)


class ScanService:
    """Composes the probes, the risk scorer and the report pipeline."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        os_type: Optional[str] = None,
        home_directory: Optional[Path] = None,
        volume_prober: Optional[VolumeProber] = None,
        hidden_scanner: Optional[HiddenArtifactScanner] = None,
        browser_detector: Optional[BrowserProfileDetector] = None,
        log_miner: Optional[LogMiner] = None,
        residue_probe: Optional[ResidueProbe] = None,
        signer: Optional[SigningService] = None,
        report_service: Optional[ReportService] = None,
    ):
        self.settings = settings or default_settings
        self.os_type = os_type or detect_os()
        s = self.settings

        self.volume_prober = volume_prober or VolumeProber(os_type=self.os_type, settings=s)
        self.hidden_scanner = hidden_scanner or HiddenArtifactScanner(
            os_type=self.os_type, settings=s, home_directory=home_directory
        )
        self.browser_detector = browser_detector or BrowserProfileDetector(
            os_type=self.os_type, home_directory=home_directory
        )
        self.log_miner = log_miner or LogMiner(os_type=self.os_type, settings=s)
        self.residue_probe = residue_probe or ResidueProbe(os_type=self.os_type, settings=s)
        self.signer = signer or SigningService(key_path=s.signing_key_path)
        self.report_service = report_service or ReportService(
            signer=self.signer,
            reports_dir=s.reports_dir,
            version=s.report_version,
            max_report_bytes=s.report_max_bytes,
        )

    # ========== Lifecycle ==========

    def start(self) -> None:
        self.signer.init()

    def stop(self) -> None:
        self.signer.shutdown()

    # ========== Boundary operations ==========

    async def list_volumes(self) -> dict[str, Any]:
        try:
            volumes = await self.volume_prober.probe_volumes()
        except Exception as e:
            logger.exception("list_volumes failed")
            return {"volumes": [], "error": str(e)}
        return {"volumes": [v.to_dict() for v in volumes], "error": None}

    async def scan_hidden(self, path: Optional[str] = None) -> dict[str, Any]:
        try:
            result = await self.hidden_scanner.scan_hidden(path)
        except Exception as e:
            logger.exception("scan_hidden failed")
            return {
                "artifacts": [],
                "total_discovered": 0,
                "scan_root": path or "",
                "timestamp": None,
                "techniques": {},
                "error": str(e),
            }
        return result.to_dict()

    async def preview_artifact(self, path: str) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(preview_artifact, path, self.settings.preview_max_bytes)
        except Exception as e:
            logger.exception("preview_artifact failed")
            return {"content": "", "bytes_read": 0, "is_binary": False, "error": str(e)}

    async def scan_browser_profiles(self) -> dict[str, Any]:
        try:
            result = await self.browser_detector.scan_browser_profiles()
        except Exception as e:
            logger.exception("scan_browser_profiles failed")
            return {"profiles": [], "total_found": 0, "error": str(e)}
        return {**result, "error": None}

    async def scan_event_logs(self) -> dict[str, Any]:
        try:
            result = await self.log_miner.scan_event_logs()
        except Exception as e:
            logger.exception("scan_event_logs failed")
            return {
                "success": False,
                "logs": [],
                "total_entries": 0,
                "log_sources": [],
                "scan_summary": {},
                "error": str(e),
            }
        return {"error": None, **result}

    async def compute_risk(self) -> dict[str, Any]:
        try:
            volumes, snapshots = await asyncio.gather(
                self.volume_prober.probe_volumes(),
                self.residue_probe.snapshot_status(),
            )
            swap = await asyncio.to_thread(self.residue_probe.swap_status)
            assessment = assess_risk(volumes, swap, snapshots)
        except Exception as e:
            logger.exception("compute_risk failed")
            assessment = RiskAssessment.unknown(str(e))
        return assessment.to_dict()

    async def generate_report(self, scan_data: dict) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(self.report_service.generate_report, scan_data)
        except Exception as e:
            logger.exception("generate_report failed")
            return {"success": False, "error": str(e)}

    async def verify_report(self, path: str) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(self.report_service.verify_report, path)
        except Exception as e:
            logger.exception("verify_report failed")
            return {"valid": False, "error": str(e)}

    async def full_scan(self, path: Optional[str] = None) -> dict[str, Any]:
        """Run every probe concurrently and return the combined scan data."""
        volumes, hidden, browsers, events, risk = await asyncio.gather(
            self.list_volumes(),
            self.scan_hidden(path),
            self.scan_browser_profiles(),
            self.scan_event_logs(),
            self.compute_risk(),
        )
        return {
            "volumes": volumes["volumes"],
            "hidden_files": hidden,
            "browser_profiles": browsers,
            "event_logs": events,
            "risk": risk,
        }

    def wipe_simulation(self, target: str = "") -> WipeSimulation:
        return WipeSimulation(
            target=target,
            total_steps=self.settings.wipe_step_count,
            step_delay=self.settings.wipe_step_delay_seconds,
        )
