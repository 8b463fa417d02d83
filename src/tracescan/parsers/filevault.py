"""Parser for ``fdesetup status`` output."""

from typing import Optional

from ..models import MacEncryptionInfo


def parse_fdesetup_status(text: str) -> Optional[MacEncryptionInfo]:
    """Return the FileVault status line, or None when output is not recognized."""
    for line in text.splitlines():
        line = line.strip()
        if line.lower().startswith("filevault is") or "encryption in progress" in line.lower():
            return MacEncryptionInfo(filevault_status=line)
    return None
