"""Parser for ``vssadmin list shadows`` output."""

import re
from dataclasses import dataclass
from typing import Optional

_SHADOW_ID = re.compile(r"Shadow Copy ID:\s*(\{[0-9A-Fa-f-]+\})")
_ORIGINAL_VOLUME = re.compile(r"Original Volume:\s*(.+)")
_SHADOW_VOLUME = re.compile(r"Shadow Copy Volume:\s*(\S+)")
_CREATION_TIME = re.compile(r"creation time:\s*(.+)", re.IGNORECASE)


@dataclass(frozen=True)
class ShadowCopy:
    shadow_id: str
    original_volume: Optional[str] = None
    shadow_volume: Optional[str] = None
    creation_time: Optional[str] = None


def parse_vssadmin_shadows(text: str) -> list[ShadowCopy]:
    """
    Parse every shadow copy listed by vssadmin.

    ``No items found that satisfy the query.`` yields an empty list.
    """
    copies: list[ShadowCopy] = []
    current: Optional[dict] = None
    creation_time: Optional[str] = None

    for line in text.splitlines():
        match = _CREATION_TIME.search(line)
        if match:
            creation_time = match.group(1).strip()
            continue

        match = _SHADOW_ID.search(line)
        if match:
            if current:
                copies.append(ShadowCopy(**current))
            current = {"shadow_id": match.group(1), "creation_time": creation_time}
            continue

        if current is None:
            continue

        match = _ORIGINAL_VOLUME.search(line)
        if match:
            current["original_volume"] = match.group(1).strip()
            continue

        match = _SHADOW_VOLUME.search(line)
        if match:
            current["shadow_volume"] = match.group(1).strip()

    if current:
        copies.append(ShadowCopy(**current))
    return copies
