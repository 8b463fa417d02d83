"""
Parser for ``Get-WinEvent | Format-List`` text output.

The event log query renders each event as a block of ``Key : value`` lines::

    TimeCreated      : 2024-03-01T09:15:02.1234567Z
    Id               : 4624
    LevelDisplayName : Information
    ProviderName     : Microsoft-Windows-Security-Auditing
    Message          : An account was successfully logged on.

                       Subject:
                       	Security ID:		S-1-5-18

``Message`` spans several lines and may itself contain blank lines, so a new
record starts when a key repeats rather than at a blank line.
"""

import re
from typing import Optional

from ..models import EventLogEntry, Severity

KNOWN_KEYS = ("TimeCreated", "Id", "LevelDisplayName", "ProviderName", "Message")
DESCRIPTION_LIMIT = 200

_KEY_LINE = re.compile(r"^(%s)\s*:\s?(.*)$" % "|".join(KNOWN_KEYS))

_SEVERITIES = {s.value.lower(): s for s in Severity}


def parse_event_blocks(text: str) -> list[dict[str, str]]:
    """Split Format-List output into one ``{key: value}`` dict per event."""
    records: list[dict[str, str]] = []
    current: dict[str, list[str]] = {}
    last_key: Optional[str] = None

    def flush() -> None:
        if current:
            records.append({k: "\n".join(v).strip() for k, v in current.items()})

    for raw_line in text.splitlines():
        line = raw_line.rstrip("\r")
        match = _KEY_LINE.match(line)
        if match:
            key, value = match.group(1), match.group(2)
            if key in current:
                flush()
                current = {}
            current[key] = [value]
            last_key = key
        elif last_key is not None and current:
            current[last_key].append(line.strip())

    flush()
    return records


def _severity(level: Optional[str]) -> Severity:
    if not level:
        return Severity.UNKNOWN
    return _SEVERITIES.get(level.strip().lower(), Severity.UNKNOWN)


def _description(message: Optional[str]) -> str:
    if not message:
        return ""
    return " ".join(message.split())[:DESCRIPTION_LIMIT]


def parse_event_entries(text: str, channel: str = "") -> list[EventLogEntry]:
    """
    Parse events from Format-List output.

    An event with neither an ``Id`` nor a ``TimeCreated`` value is discarded.
    """
    entries = []
    for record in parse_event_blocks(text):
        event_id = record.get("Id") or None
        time_created = record.get("TimeCreated") or None
        if event_id is None and time_created is None:
            continue
        entries.append(
            EventLogEntry(
                event_id=event_id,
                time_created=time_created,
                severity=_severity(record.get("LevelDisplayName")),
                source=record.get("ProviderName") or "Unknown",
                description=_description(record.get("Message")),
                channel=channel,
            )
        )
    return entries
