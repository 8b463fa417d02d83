"""Shared test fixtures for TraceScan tests."""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from tracescan.config import Settings
from tracescan.models import LinuxEncryptionInfo, Volume, VolumeKind
from tracescan.probes.platforms import LINUX
from tracescan.services import ScanService

from fakes import GIB, StubResidueProbe, StubVolumeProber


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        reports_dir=tmp_path / "reports",
        signing_key_path=None,
        wipe_step_delay_seconds=0,
        hidden_scan_timeout_seconds=30,
    )


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A small home directory with dotfiles, a nested tree and an ssh dir."""
    root = tmp_path / "home"
    root.mkdir()
    (root / ".bashrc").write_bytes(b"x" * 100)
    (root / ".big").write_bytes(b"x" * 5000)
    (root / "visible.txt").write_text("hello")
    (root / ".ssh").mkdir()
    (root / ".ssh" / "known_hosts").write_text("host key")
    (root / "a" / "b" / "c").mkdir(parents=True)
    (root / "a" / ".inner").write_bytes(b"x" * 10)
    (root / "a" / "b" / ".deeper").write_bytes(b"x" * 20)
    (root / "a" / "b" / "c" / ".too_deep").write_bytes(b"x" * 30)
    (root / "node_modules").mkdir()
    (root / "node_modules" / ".hidden_in_nm").write_text("skip")
    return root


@pytest.fixture
def sample_volumes() -> list[Volume]:
    return [
        Volume(
            identifier="nvme0n1p2",
            mount_path="/",
            kind=VolumeKind.MOUNT,
            total_bytes=100 * GIB,
            free_bytes=25 * GIB,
            encryption=LinuxEncryptionInfo(device="/dev/nvme0n1p2", crypt_type="LUKS"),
            device_node="/dev/nvme0n1p2",
        ),
    ]


@pytest.fixture
def scan_service(
    test_settings: Settings, home: Path, sample_volumes: list[Volume]
) -> Generator[ScanService, None, None]:
    """A Linux scan service with deterministic volume and residue probes."""
    service = ScanService(
        settings=test_settings,
        os_type=LINUX,
        home_directory=home,
        volume_prober=StubVolumeProber(sample_volumes),
        residue_probe=StubResidueProbe(swap=True, snapshots=True),
    )
    service.start()
    yield service
    service.stop()
