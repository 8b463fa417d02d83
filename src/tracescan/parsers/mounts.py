"""Parser for the Linux mount table (/proc/mounts)."""

import re
from dataclasses import dataclass

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

# Device nodes that never back persistent user data.
VIRTUAL_DEVICE_PREFIXES = ("loop", "ram", "zram", "nbd")


@dataclass(frozen=True)
class MountEntry:
    device: str
    mount_point: str
    fstype: str
    options: str = ""

    @property
    def is_dev_backed(self) -> bool:
        """True for /dev/ devices that are not loop, ram or zram devices."""
        if not self.device.startswith("/dev/"):
            return False
        name = self.device.rsplit("/", 1)[-1]
        return not name.startswith(VIRTUAL_DEVICE_PREFIXES)


def _unescape(field: str) -> str:
    """Decode the octal escapes the kernel uses for spaces, tabs and newlines."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_mounts(text: str) -> list[MountEntry]:
    """Parse /proc/mounts content, skipping malformed lines."""
    entries = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        entries.append(
            MountEntry(
                device=_unescape(parts[0]),
                mount_point=_unescape(parts[1]),
                fstype=parts[2],
                options=parts[3] if len(parts) > 3 else "",
            )
        )
    return entries
