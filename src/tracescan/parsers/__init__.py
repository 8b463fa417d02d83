"""Parsers for the text output of OS command-line tools."""

from .bitlocker import parse_manage_bde
from .child_items import ChildItem, parse_child_items
from .event_text import parse_event_blocks, parse_event_entries
from .filevault import parse_fdesetup_status
from .lsblk import BlockLayer, detect_crypt_type, parse_lsblk_pairs
from .mounts import MountEntry, parse_mounts
from .shadow_copies import ShadowCopy, parse_vssadmin_shadows
from .tmutil import parse_local_snapshots
from .wevtutil import parse_channel_list

__all__ = [
    "BlockLayer",
    "ChildItem",
    "MountEntry",
    "ShadowCopy",
    "detect_crypt_type",
    "parse_channel_list",
    "parse_child_items",
    "parse_event_blocks",
    "parse_event_entries",
    "parse_fdesetup_status",
    "parse_local_snapshots",
    "parse_lsblk_pairs",
    "parse_manage_bde",
    "parse_mounts",
    "parse_vssadmin_shadows",
]
