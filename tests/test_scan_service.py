"""Tests for the ScanService boundary: every call returns a result-shaped value."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from tracescan.probes.platforms import LINUX, MACOS
from tracescan.probes.volumes import VolumeProber
from tracescan.services import ScanService

from fakes import FakeRunner, StubResidueProbe


class BrokenProber:
    async def probe_volumes(self):
        raise RuntimeError("mount table exploded")

    async def list_volumes(self):
        raise RuntimeError("mount table exploded")


class BrokenScanner:
    async def scan_hidden(self, path=None):
        raise RuntimeError("walk exploded")


def test_list_volumes(scan_service):
    result = asyncio.run(scan_service.list_volumes())

    assert result["error"] is None
    [volume] = result["volumes"]
    assert volume["identifier"] == "nvme0n1p2"
    assert volume["usage_percent"] == "75.0"
    assert volume["encryption_mechanism"] == "LUKS"


def test_volume_failure_becomes_error(test_settings):
    service = ScanService(settings=test_settings, os_type=LINUX, volume_prober=BrokenProber())

    result = asyncio.run(service.list_volumes())

    assert result == {"volumes": [], "error": "mount table exploded"}


def test_hidden_scan_failure_becomes_error(test_settings):
    service = ScanService(settings=test_settings, os_type=LINUX, hidden_scanner=BrokenScanner())

    result = asyncio.run(service.scan_hidden("/somewhere"))

    assert result["artifacts"] == []
    assert result["total_discovered"] == 0
    assert result["error"] == "walk exploded"


def test_compute_risk(scan_service):
    result = asyncio.run(scan_service.compute_risk())

    # swap +20, snapshots +25, LUKS -30, 25% free +15
    assert result["score"] == 80
    assert result["risk"] == "HIGH"
    assert result["error"] is None


def test_compute_risk_failure_is_unknown(test_settings):
    service = ScanService(
        settings=test_settings,
        os_type=LINUX,
        volume_prober=BrokenProber(),
        residue_probe=StubResidueProbe(),
    )

    result = asyncio.run(service.compute_risk())

    assert result["risk"] == "UNKNOWN"
    assert result["score"] == 0
    assert "exploded" in result["error"]


def test_compute_risk_unreadable_root_is_unknown(test_settings, monkeypatch):
    def unreadable(self, path):
        raise RuntimeError("statfs failed")

    monkeypatch.setattr(VolumeProber, "_capacity", unreadable)
    service = ScanService(
        settings=test_settings,
        os_type=MACOS,
        volume_prober=VolumeProber(os_type=MACOS, settings=test_settings, runner=FakeRunner()),
        residue_probe=StubResidueProbe(swap=True),
    )

    result = asyncio.run(service.compute_risk())

    assert result["risk"] == "UNKNOWN"
    assert result["score"] == 0
    assert result["error"] == "statfs failed"
    assert asyncio.run(service.list_volumes()) == {"volumes": [], "error": "statfs failed"}


def test_event_logs_on_linux(scan_service):
    result = asyncio.run(scan_service.scan_event_logs())
    assert result["success"] is False
    assert "not supported on Linux" in result["error"]


def test_full_scan_report_roundtrip(scan_service, home):
    scan_data = asyncio.run(scan_service.full_scan(str(home)))
    assert set(scan_data) == {"volumes", "hidden_files", "browser_profiles", "event_logs", "risk"}

    generated = asyncio.run(scan_service.generate_report(scan_data))
    assert generated["success"] is True

    verdict = asyncio.run(scan_service.verify_report(generated["data_path"]))
    assert verdict["valid"] is True
    assert verdict["public_key_match"] is True

    stored = json.loads(Path(generated["data_path"]).read_text(encoding="utf-8"))
    assert stored["scan_data"]["risk"]["score"] == 80


def test_preview_through_service(scan_service, home):
    result = asyncio.run(scan_service.preview_artifact(str(home / ".ssh" / "known_hosts")))
    assert result["content"] == "host key"


def test_wipe_simulation_uses_settings(scan_service):
    simulation = scan_service.wipe_simulation("D:")
    assert simulation.total_steps == 10
    assert simulation.step_delay == 0
