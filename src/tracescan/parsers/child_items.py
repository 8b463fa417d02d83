"""Parser for ``Get-ChildItem | Select-Object ... | ConvertTo-Json`` output."""

import json
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ChildItem:
    full_name: str
    length: int
    last_write_utc: Optional[str]
    attributes: str
    is_container: bool

    @property
    def is_system(self) -> bool:
        return "system" in self.attributes.lower()


def parse_child_items(text: str) -> list[ChildItem]:
    """
    Parse the JSON emitted for hidden items.

    ConvertTo-Json prints a bare object for a single result and an array
    otherwise; empty output means no results. Entries without a path are
    skipped.
    """
    text = text.strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return []
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []

    items = []
    for raw in data:
        if not isinstance(raw, dict) or not raw.get("FullName"):
            continue
        is_container = bool(raw.get("PSIsContainer"))
        try:
            length = 0 if is_container else int(raw.get("Length") or 0)
        except (TypeError, ValueError):
            length = 0
        items.append(
            ChildItem(
                full_name=str(raw["FullName"]),
                length=length,
                last_write_utc=raw.get("LastWriteTimeUtc"),
                attributes=str(raw.get("Attributes") or ""),
                is_container=is_container,
            )
        )
    return items
