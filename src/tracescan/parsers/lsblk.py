"""Parser for ``lsblk --pairs --inverse`` output."""

import re
from dataclasses import dataclass
from typing import Optional

_PAIR = re.compile(r'([A-Z0-9:_-]+)="((?:[^"\\]|\\.)*)"')


@dataclass(frozen=True)
class BlockLayer:
    name: str
    type: str
    fstype: str = ""


def parse_lsblk_pairs(text: str) -> list[BlockLayer]:
    """
    Parse ``lsblk --pairs --output NAME,TYPE,FSTYPE`` output.

    Each line looks like ``NAME="luks-1" TYPE="crypt" FSTYPE="ext4"``.
    """
    layers = []
    for line in text.splitlines():
        fields = dict(_PAIR.findall(line))
        if "NAME" not in fields:
            continue
        layers.append(
            BlockLayer(
                name=fields["NAME"],
                type=fields.get("TYPE", "").lower(),
                fstype=fields.get("FSTYPE", ""),
            )
        )
    return layers


def detect_crypt_type(layers: list[BlockLayer]) -> Optional[str]:
    """
    Return the encryption mechanism found in a device's dependency chain.

    With ``--inverse`` the chain runs from the mounted device down to the
    physical disk, so a LUKS container shows up as a ``crypto_LUKS`` parent
    below a ``crypt`` mapping.
    """
    if any(layer.fstype == "crypto_LUKS" for layer in layers):
        return "LUKS"
    if any(layer.type == "crypt" for layer in layers):
        return "dm-crypt"
    return None
