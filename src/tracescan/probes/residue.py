"""
Residue probe: swap/pagefile and filesystem snapshot presence.

Both keep copies of data after the original is deleted, so they feed the
recoverability risk score.
"""
import glob
import logging
import os
from typing import Callable, List, Optional

import psutil

from ..config import Settings, settings as default_settings
from ..models import SnapshotStatus, SwapStatus
from ..parsers import parse_local_snapshots, parse_vssadmin_shadows
from .commands import CommandRunner, run_command
from .platforms import LINUX, MACOS, WINDOWS, detect_os

logger = logging.getLogger(__name__)

SWAP_FILE_PATTERNS = {
    WINDOWS: ["C:\\pagefile.sys", "C:\\swapfile.sys", "C:\\hiberfil.sys"],
    MACOS: ["/private/var/vm/swapfile*", "/private/var/vm/sleepimage"],
    LINUX: ["/swapfile", "/swap.img"],
}

LINUX_SNAPSHOT_DIRS = ["/.snapshots", "/timeshift/snapshots", "/run/timeshift/backup/timeshift/snapshots"]


class ResidueProbe:
    """Detects swap files and snapshots on the local machine."""

    def __init__(
        self,
        os_type: Optional[str] = None,
        settings: Optional[Settings] = None,
        runner: Optional[CommandRunner] = None,
        glob_func: Callable[[str], List[str]] = glob.glob,
    ):
        self.os_type = os_type or detect_os()
        self.settings = settings or default_settings
        self._run = runner or run_command
        self._glob = glob_func

    def swap_status(self) -> SwapStatus:
        try:
            swap_total = int(psutil.swap_memory().total)
        except (OSError, RuntimeError) as e:
            logger.debug("swap_memory unavailable: %s", e)
            swap_total = 0

        locations = []
        for pattern in SWAP_FILE_PATTERNS.get(self.os_type, []):
            locations.extend(sorted(self._glob(pattern)))

        return SwapStatus(
            present=swap_total > 0 or bool(locations),
            total_bytes=swap_total,
            locations=tuple(locations),
        )

    async def snapshot_status(self) -> SnapshotStatus:
        if self.os_type == WINDOWS:
            return await self._volume_shadow_copies()
        if self.os_type == MACOS:
            return await self._time_machine_snapshots()
        return self._linux_snapshot_dirs()

    async def _volume_shadow_copies(self) -> SnapshotStatus:
        result = await self._run(
            ["vssadmin", "list", "shadows"],
            timeout=self.settings.command_timeout_seconds,
            output_limit=self.settings.command_output_limit,
        )
        if result is None:
            return SnapshotStatus(present=False, mechanism="Volume Shadow Copy (query failed)")
        copies = parse_vssadmin_shadows(result.stdout)
        return SnapshotStatus(present=bool(copies), count=len(copies), mechanism="Volume Shadow Copy")

    async def _time_machine_snapshots(self) -> SnapshotStatus:
        result = await self._run(
            ["tmutil", "listlocalsnapshots", "/"],
            timeout=self.settings.command_timeout_seconds,
            output_limit=self.settings.command_output_limit,
        )
        if result is None:
            return SnapshotStatus(present=False, mechanism="Time Machine (query failed)")
        snapshots = parse_local_snapshots(result.stdout)
        return SnapshotStatus(present=bool(snapshots), count=len(snapshots), mechanism="Time Machine")

    def _linux_snapshot_dirs(self) -> SnapshotStatus:
        count = 0
        for directory in LINUX_SNAPSHOT_DIRS:
            try:
                with os.scandir(directory) as it:
                    count += sum(1 for entry in it if entry.is_dir(follow_symlinks=False))
            except OSError:
                continue
        return SnapshotStatus(present=count > 0, count=count, mechanism="btrfs/timeshift")
