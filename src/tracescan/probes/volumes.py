"""
Volume Prober: mounted volumes, capacity and encryption status.
"""
import asyncio
import logging
import os
import stat
import string
from pathlib import Path
from typing import List, Optional

import psutil

from ..config import Settings, settings as default_settings
from ..models import (
    AnyEncryptionInfo,
    LinuxEncryptionInfo,
    UnknownEncryptionInfo,
    Volume,
    VolumeKind,
)
from ..parsers import (
    detect_crypt_type,
    parse_fdesetup_status,
    parse_lsblk_pairs,
    parse_manage_bde,
    parse_mounts,
)
from .commands import CommandRunner, run_command
from .platforms import LINUX, WINDOWS, detect_os

logger = logging.getLogger(__name__)

PROC_MOUNTS = Path("/proc/mounts")


def _is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def _drive_exists(root: str) -> bool:
    return os.path.isdir(root)


class VolumeProber:
    """
    Enumerates volumes on the local machine.

    Every call probes afresh; nothing is cached between calls. Per-volume
    failures drop that volume, and a failure of the whole probe returns an
    empty list.
    """

    def __init__(
        self,
        os_type: Optional[str] = None,
        settings: Optional[Settings] = None,
        runner: Optional[CommandRunner] = None,
        mounts_path: Path = PROC_MOUNTS,
    ):
        self.os_type = os_type or detect_os()
        self.settings = settings or default_settings
        self._run = runner or run_command
        self.mounts_path = mounts_path

    async def probe_volumes(self) -> List[Volume]:
        """
        Return all readable volumes for the detected OS.

        Unlike :meth:`list_volumes`, a failure of the whole probe propagates,
        so callers that derive a verdict from the list can tell "no volumes"
        from "probe failed".
        """
        if self.os_type == WINDOWS:
            return await self._list_windows()
        if self.os_type == LINUX:
            return await self._list_linux()
        return await self._list_root_only()

    async def list_volumes(self) -> List[Volume]:
        """Return all readable volumes, or an empty list if the probe fails."""
        try:
            return await self.probe_volumes()
        except Exception:
            logger.exception("Volume probe failed")
            return []

    # ========== Capacity ==========

    def _capacity(self, path: str) -> Optional[tuple[int, int]]:
        """Return (total, free) in bytes, or None if the path cannot be read."""
        try:
            usage = psutil.disk_usage(path)
        except (OSError, SystemError) as e:
            logger.debug("Cannot stat filesystem at %s: %s", path, e)
            return None
        total = int(usage.total)
        free = min(int(usage.free), total)
        return total, free

    # ========== Windows ==========

    async def _list_windows(self) -> List[Volume]:
        candidates = []
        for letter in string.ascii_uppercase:
            root = f"{letter}:\\"
            if not _drive_exists(root):
                continue
            capacity = self._capacity(root)
            if capacity is None:
                continue
            candidates.append((f"{letter}:", root, capacity))

        infos = await asyncio.gather(
            *(self._bitlocker_status(ident) for ident, _, _ in candidates)
        )
        return [
            Volume(
                identifier=ident,
                mount_path=root,
                kind=VolumeKind.DRIVE,
                total_bytes=total,
                free_bytes=free,
                encryption=info,
            )
            for (ident, root, (total, free)), info in zip(candidates, infos)
        ]

    async def _bitlocker_status(self, drive: str) -> AnyEncryptionInfo:
        result = await self._run(
            ["manage-bde", "-status", drive],
            timeout=self.settings.encryption_timeout_seconds,
            output_limit=self.settings.command_output_limit,
        )
        if result is None:
            return UnknownEncryptionInfo("manage-bde unavailable or timed out")
        info = parse_manage_bde(result.stdout)
        if info is None:
            return UnknownEncryptionInfo("manage-bde reported no protection status")
        return info

    # ========== Linux ==========

    async def _list_linux(self) -> List[Volume]:
        try:
            mounts = parse_mounts(self.mounts_path.read_text(encoding="utf-8", errors="replace"))
        except OSError as e:
            logger.warning("Cannot read mount table %s: %s; falling back to root", self.mounts_path, e)
            return await self._list_root_only()

        candidates = []
        seen_mount_points = set()
        for entry in mounts:
            if entry.mount_point in seen_mount_points:
                continue
            if not entry.is_dev_backed or not _is_block_device(entry.device):
                continue
            capacity = self._capacity(entry.mount_point)
            if capacity is None:
                continue
            seen_mount_points.add(entry.mount_point)
            candidates.append((entry, capacity))

        infos = await asyncio.gather(
            *(self._luks_status(entry.device) for entry, _ in candidates)
        )
        return [
            Volume(
                identifier=os.path.basename(entry.device),
                mount_path=entry.mount_point,
                device_node=entry.device,
                kind=VolumeKind.MOUNT,
                total_bytes=total,
                free_bytes=free,
                encryption=info,
            )
            for (entry, (total, free)), info in zip(candidates, infos)
        ]

    async def _luks_status(self, device: str) -> AnyEncryptionInfo:
        result = await self._run(
            ["lsblk", "--pairs", "--inverse", "--output", "NAME,TYPE,FSTYPE", device],
            timeout=self.settings.encryption_timeout_seconds,
            output_limit=self.settings.command_output_limit,
        )
        if result is None or not result.ok:
            return UnknownEncryptionInfo("lsblk unavailable or failed")
        return LinuxEncryptionInfo(
            device=device,
            crypt_type=detect_crypt_type(parse_lsblk_pairs(result.stdout)),
        )

    # ========== macOS / fallback ==========

    async def _list_root_only(self) -> List[Volume]:
        capacity = self._capacity("/")
        if capacity is None:
            return []
        total, free = capacity
        return [
            Volume(
                identifier="Root",
                mount_path="/",
                kind=VolumeKind.MOUNT,
                total_bytes=total,
                free_bytes=free,
                encryption=await self._filevault_status(),
            )
        ]

    async def _filevault_status(self) -> AnyEncryptionInfo:
        result = await self._run(
            ["fdesetup", "status"],
            timeout=self.settings.encryption_timeout_seconds,
            output_limit=self.settings.command_output_limit,
        )
        if result is None:
            return UnknownEncryptionInfo("fdesetup unavailable or timed out")
        info = parse_fdesetup_status(result.stdout)
        if info is None:
            return UnknownEncryptionInfo("fdesetup output not recognized")
        return info
