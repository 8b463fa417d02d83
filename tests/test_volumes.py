"""Tests for volume enumeration, capacity formatting and encryption status."""

from __future__ import annotations

import asyncio
from collections import namedtuple

import pytest

from tracescan.models import (
    MacEncryptionInfo,
    UnknownEncryptionInfo,
    Volume,
    VolumeKind,
    WindowsEncryptionInfo,
)
from tracescan.probes import volumes as volumes_module
from tracescan.probes.platforms import LINUX, MACOS, WINDOWS
from tracescan.probes.volumes import VolumeProber

from fakes import FakeRunner, ok

Usage = namedtuple("Usage", "total used free percent")

GIB = 1024 ** 3


def _usage(total: int, free: int) -> Usage:
    return Usage(total, total - free, free, 0.0)


def test_capacity_formatting():
    volume = Volume(
        identifier="Root",
        mount_path="/",
        kind=VolumeKind.MOUNT,
        total_bytes=537109504000,
        free_bytes=161406156800,
    )
    d = volume.to_dict()
    assert d["used_bytes"] == 375703347200
    assert d["total_gb"] == "500.22"
    assert d["free_gb"] == "150.32"
    assert d["used_gb"] == "349.90"
    assert d["usage_percent"] == "69.9"
    assert d["encrypted"] is False
    assert d["encryption_mechanism"] == "Unknown"


def test_zero_capacity_volume():
    volume = Volume(identifier="X:", mount_path="X:\\", kind=VolumeKind.DRIVE, total_bytes=0, free_bytes=0)
    assert volume.usage_percent == 0.0
    assert volume.to_dict()["usage_percent"] == "0.0"


def test_linux_volumes_from_mount_table(tmp_path, monkeypatch, test_settings):
    mounts = tmp_path / "mounts"
    mounts.write_text(
        "/dev/nvme0n1p2 / ext4 rw,relatime 0 0\n"
        "proc /proc proc rw 0 0\n"
        "/dev/loop0 /snap/core/1 squashfs ro 0 0\n"
        "/dev/mapper/luks-home /home ext4 rw 0 0\n"
        "/dev/nvme0n1p2 / ext4 rw,relatime 0 0\n"
    )
    monkeypatch.setattr(volumes_module, "_is_block_device", lambda path: True)
    monkeypatch.setattr(volumes_module.psutil, "disk_usage", lambda path: _usage(100 * GIB, 40 * GIB))

    runner = FakeRunner([
        ("/dev/mapper/luks-home", ok(
            'NAME="luks-home" TYPE="crypt" FSTYPE="ext4"\n'
            'NAME="nvme0n1p3" TYPE="part" FSTYPE="crypto_LUKS"\n'
        )),
        ("/dev/nvme0n1p2", ok('NAME="nvme0n1p2" TYPE="part" FSTYPE="ext4"\n')),
    ])
    prober = VolumeProber(os_type=LINUX, settings=test_settings, runner=runner, mounts_path=mounts)

    result = asyncio.run(prober.list_volumes())

    assert [v.identifier for v in result] == ["nvme0n1p2", "luks-home"]
    root, home = result
    assert root.mount_path == "/"
    assert not root.encrypted
    assert root.encryption_mechanism == "None"
    assert home.encrypted
    assert home.encryption_mechanism == "LUKS"
    assert home.usage_percent == 60.0
    # one lsblk call per distinct volume
    assert len(runner.calls) == 2


def test_linux_unreadable_mount_table_falls_back_to_root(tmp_path, monkeypatch, test_settings):
    monkeypatch.setattr(volumes_module.psutil, "disk_usage", lambda path: _usage(10 * GIB, 5 * GIB))
    prober = VolumeProber(
        os_type=LINUX,
        settings=test_settings,
        runner=FakeRunner(),
        mounts_path=tmp_path / "missing",
    )

    [root] = asyncio.run(prober.list_volumes())

    assert root.identifier == "Root"
    assert root.mount_path == "/"
    assert isinstance(root.encryption, UnknownEncryptionInfo)


def test_macos_root_with_filevault(monkeypatch, test_settings):
    monkeypatch.setattr(volumes_module.psutil, "disk_usage", lambda path: _usage(500 * GIB, 100 * GIB))
    runner = FakeRunner([("fdesetup status", ok("FileVault is On.\n"))])
    prober = VolumeProber(os_type=MACOS, settings=test_settings, runner=runner)

    [root] = asyncio.run(prober.list_volumes())

    assert isinstance(root.encryption, MacEncryptionInfo)
    assert root.encrypted
    assert root.encryption_mechanism == "FileVault"


def test_windows_drive_letters_with_bitlocker(monkeypatch, test_settings):
    monkeypatch.setattr(volumes_module, "_drive_exists", lambda root: root in ("C:\\", "D:\\"))
    monkeypatch.setattr(volumes_module.psutil, "disk_usage", lambda path: _usage(200 * GIB, 50 * GIB))
    runner = FakeRunner([
        ("manage-bde -status C:", ok(
            "Volume C: [OS]\n"
            "    Encryption Method:    XTS-AES 256\n"
            "    Protection Status:    Protection On\n"
        )),
        # D: times out
        ("manage-bde -status D:", None),
    ])
    prober = VolumeProber(os_type=WINDOWS, settings=test_settings, runner=runner)

    c_drive, d_drive = asyncio.run(prober.list_volumes())

    assert c_drive.identifier == "C:"
    assert c_drive.kind is VolumeKind.DRIVE
    assert isinstance(c_drive.encryption, WindowsEncryptionInfo)
    assert c_drive.encryption_mechanism == "BitLocker (XTS-AES 256)"
    assert d_drive.identifier == "D:"
    assert not d_drive.encrypted
    assert d_drive.encryption_mechanism == "Unknown"


def test_unreadable_drive_is_dropped(monkeypatch, test_settings):
    def disk_usage(path):
        if path.startswith("D:"):
            raise PermissionError("device not ready")
        return _usage(200 * GIB, 50 * GIB)

    monkeypatch.setattr(volumes_module, "_drive_exists", lambda root: root in ("C:\\", "D:\\"))
    monkeypatch.setattr(volumes_module.psutil, "disk_usage", disk_usage)
    prober = VolumeProber(os_type=WINDOWS, settings=test_settings, runner=FakeRunner())

    result = asyncio.run(prober.list_volumes())

    assert [v.identifier for v in result] == ["C:"]


def test_probe_failure_returns_empty_list(monkeypatch, test_settings):
    def boom(self, path):
        raise RuntimeError("statfs exploded")

    monkeypatch.setattr(VolumeProber, "_capacity", boom)
    prober = VolumeProber(os_type=MACOS, settings=test_settings, runner=FakeRunner())

    assert asyncio.run(prober.list_volumes()) == []


@pytest.mark.parametrize("status,expected", [
    ("Protection On", True),
    ("Protection Off", False),
    ("Protection Unknown", False),
])
def test_bitlocker_encrypted_flag(status, expected):
    assert WindowsEncryptionInfo(protection_status=status).encrypted is expected
