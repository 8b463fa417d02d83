"""
Log Miner: privacy-relevant entries from the Windows event log.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from ..config import Settings, settings as default_settings
from ..exceptions import UnsupportedPlatformError
from ..models import EventLogEntry, PrivacyRisk, utc_now
from ..parsers import parse_channel_list, parse_event_entries
from .commands import CommandRunner, run_command, run_powershell
from .platforms import WINDOWS, detect_os

logger = logging.getLogger(__name__)

# Channels queried on every scan, with the event IDs requested from each.
PRIORITY_CHANNELS: Dict[str, List[str]] = {
    "Security": ["4624", "4625", "4648", "4720", "4726", "4798", "4799", "1102"],
    "System": ["104", "1074", "6005", "6006"],
    # Application crashes and MSI install/uninstall history
    "Application": ["1000", "1001", "11707", "11724"],
    "Microsoft-Windows-PowerShell/Operational": ["4103", "4104"],
}


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_channel_query(channel: str, event_ids: List[str], max_events: int) -> str:
    """PowerShell pipeline returning matching events as Format-List text."""
    xpath = " or ".join(f"EventID={event_id}" for event_id in event_ids)
    return (
        f"Get-WinEvent -LogName {_ps_quote(channel)} "
        f"-FilterXPath \"*[System[({xpath})]]\" -MaxEvents {max_events} "
        "-ErrorAction SilentlyContinue | "
        "Format-List @{N='TimeCreated';E={$_.TimeCreated.ToUniversalTime().ToString('o')}},"
        "Id,LevelDisplayName,ProviderName,Message | Out-String -Width 4096"
    )


class LogMiner:
    """Queries the OS event log and classifies entries by privacy risk."""

    def __init__(
        self,
        os_type: Optional[str] = None,
        settings: Optional[Settings] = None,
        runner: Optional[CommandRunner] = None,
    ):
        self.os_type = os_type or detect_os()
        self.settings = settings or default_settings
        self._run = runner or run_command

    async def scan_event_logs(self) -> dict:
        """
        Returns:
            dict: ``logs``, ``total_entries``, ``log_sources``, ``scan_summary``,
            ``success`` and, on unsupported platforms, ``error``
        """
        if self.os_type != WINDOWS:
            error = UnsupportedPlatformError("Event log scanning", self.os_type)
            return {
                "success": False,
                "logs": [],
                "total_entries": 0,
                "log_sources": [],
                "scan_summary": {},
                "error": str(error),
            }

        log_sources = await self._list_channels()
        channels = list(PRIORITY_CHANNELS)
        outcomes = await asyncio.gather(*(self._query_channel(ch) for ch in channels))

        entries: List[EventLogEntry] = []
        failed = []
        for channel, outcome in zip(channels, outcomes):
            if outcome is None:
                failed.append(channel)
            else:
                entries.extend(outcome)

        counts = {risk: 0 for risk in PrivacyRisk}
        for entry in entries:
            counts[entry.privacy_risk] += 1

        return {
            "success": True,
            "logs": [e.to_dict() for e in entries],
            "total_entries": len(entries),
            "log_sources": log_sources,
            "scan_summary": {
                "channels_queried": channels,
                "failed_channels": failed,
                "high_risk": counts[PrivacyRisk.HIGH],
                "medium_risk": counts[PrivacyRisk.MEDIUM],
                "low_risk": counts[PrivacyRisk.LOW],
                "scanned_at": utc_now().isoformat(),
            },
        }

    async def _list_channels(self) -> List[str]:
        result = await self._run(
            ["wevtutil", "el"],
            timeout=self.settings.command_timeout_seconds,
            output_limit=self.settings.command_output_limit,
        )
        if result is None or not result.ok:
            logger.warning("Could not enumerate event log channels")
            return []
        return parse_channel_list(result.stdout, limit=self.settings.event_channel_limit)

    async def _query_channel(self, channel: str) -> Optional[List[EventLogEntry]]:
        """Parsed entries for one channel, or None if the query failed."""
        script = build_channel_query(channel, PRIORITY_CHANNELS[channel], self.settings.event_raw_limit)
        result = await run_powershell(
            script,
            timeout=self.settings.event_log_timeout_seconds,
            output_limit=self.settings.command_output_limit,
            runner=self._run,
        )
        if result is None or not result.ok:
            logger.warning("Event log query failed for channel %s", channel)
            return None
        return parse_event_entries(result.stdout, channel=channel)[: self.settings.event_parsed_limit]
