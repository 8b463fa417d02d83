"""Parser for ``manage-bde -status <drive>`` output."""

import re
from typing import Optional

from ..models import WindowsEncryptionInfo

_FIELD = re.compile(r"^\s*([A-Za-z][A-Za-z ]+?):\s+(.+?)\s*$")


def parse_manage_bde(text: str) -> Optional[WindowsEncryptionInfo]:
    """
    Extract BitLocker status for a single volume.

    Returns None when the output carries no ``Protection Status`` line, which
    is what manage-bde prints when it is denied or the volume is unsupported.
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        match = _FIELD.match(line)
        if match:
            fields.setdefault(match.group(1).strip().lower(), match.group(2))

    protection = fields.get("protection status")
    if protection is None:
        return None

    percentage = None
    raw_pct = fields.get("percentage encrypted")
    if raw_pct:
        try:
            percentage = float(raw_pct.rstrip("%").replace(",", ".").strip())
        except ValueError:
            percentage = None

    return WindowsEncryptionInfo(
        protection_status=protection,
        encryption_method=fields.get("encryption method"),
        percentage_encrypted=percentage,
    )
