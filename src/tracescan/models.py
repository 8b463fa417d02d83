"""
Data models for TraceScan.

Every entity is a value object produced by a single probe call. Nothing here
holds a reference back to the scanner that produced it.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Protocol, Union

GIB = 1024 ** 3


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def iso_timestamp(epoch_seconds: float) -> str:
    """Format a POSIX timestamp as ISO-8601 UTC."""
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat()


class VolumeKind(str, Enum):
    DRIVE = "drive"
    MOUNT = "mount"


class Severity(str, Enum):
    CRITICAL = "Critical"
    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"
    UNKNOWN = "Unknown"


class PrivacyRisk(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RiskTier(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"


# ========== Encryption info (one variant per platform) ==========

class EncryptionInfo(Protocol):
    """Capability shared by every platform's encryption status."""

    @property
    def encrypted(self) -> bool: ...

    @property
    def mechanism(self) -> str: ...

    def to_dict(self) -> dict: ...


@dataclass(frozen=True)
class WindowsEncryptionInfo:
    """BitLocker status as reported by manage-bde."""
    protection_status: str
    encryption_method: Optional[str] = None
    percentage_encrypted: Optional[float] = None

    @property
    def encrypted(self) -> bool:
        return self.protection_status.lower().startswith("protection on")

    @property
    def mechanism(self) -> str:
        if not self.encrypted:
            return "None"
        if self.encryption_method and self.encryption_method.lower() != "none":
            return f"BitLocker ({self.encryption_method})"
        return "BitLocker"

    def to_dict(self) -> dict:
        return {
            "platform": "Windows",
            "protection_status": self.protection_status,
            "encryption_method": self.encryption_method,
            "percentage_encrypted": self.percentage_encrypted,
        }


@dataclass(frozen=True)
class LinuxEncryptionInfo:
    """Crypt layer found in a block device's dependency chain."""
    device: str
    crypt_type: Optional[str] = None

    @property
    def encrypted(self) -> bool:
        return self.crypt_type is not None

    @property
    def mechanism(self) -> str:
        return self.crypt_type or "None"

    def to_dict(self) -> dict:
        return {"platform": "Linux", "device": self.device, "crypt_type": self.crypt_type}


@dataclass(frozen=True)
class MacEncryptionInfo:
    """FileVault status line from fdesetup."""
    filevault_status: str

    @property
    def encrypted(self) -> bool:
        status = self.filevault_status.lower()
        return "filevault is on" in status or "encryption in progress" in status

    @property
    def mechanism(self) -> str:
        return "FileVault" if self.encrypted else "None"

    def to_dict(self) -> dict:
        return {"platform": "macOS", "filevault_status": self.filevault_status}


@dataclass(frozen=True)
class UnknownEncryptionInfo:
    """The encryption query failed or timed out."""
    reason: str = "query failed"

    @property
    def encrypted(self) -> bool:
        return False

    @property
    def mechanism(self) -> str:
        return "Unknown"

    def to_dict(self) -> dict:
        return {"platform": "Unknown", "reason": self.reason}


AnyEncryptionInfo = Union[
    WindowsEncryptionInfo, LinuxEncryptionInfo, MacEncryptionInfo, UnknownEncryptionInfo
]


# ========== Volumes ==========

@dataclass(frozen=True)
class Volume:
    """
    A mounted volume or drive letter with capacity and encryption status.

    Attributes:
        identifier: Drive letter (``C:``), device basename or ``Root``
        mount_path: Where the volume is mounted
        kind: ``drive`` for drive letters, ``mount`` for mount points
        total_bytes: Filesystem capacity in bytes
        free_bytes: Bytes available to the current user
        encryption: Platform-specific encryption status
        device_node: Backing block device, when known
    """
    identifier: str
    mount_path: str
    kind: VolumeKind
    total_bytes: int
    free_bytes: int
    encryption: EncryptionInfo = field(default_factory=UnknownEncryptionInfo)
    device_node: Optional[str] = None

    @property
    def used_bytes(self) -> int:
        return self.total_bytes - self.free_bytes

    @property
    def encrypted(self) -> bool:
        return self.encryption.encrypted

    @property
    def encryption_mechanism(self) -> str:
        return self.encryption.mechanism

    @property
    def usage_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return round(self.used_bytes / self.total_bytes * 100, 1)

    def to_dict(self) -> dict:
        """Convert Volume to dictionary representation."""
        return {
            "identifier": self.identifier,
            "mount_path": self.mount_path,
            "device_node": self.device_node,
            "kind": self.kind.value,
            "total_bytes": self.total_bytes,
            "free_bytes": self.free_bytes,
            "used_bytes": self.used_bytes,
            "total_gb": f"{self.total_bytes / GIB:.2f}",
            "free_gb": f"{self.free_bytes / GIB:.2f}",
            "used_gb": f"{self.used_bytes / GIB:.2f}",
            "usage_percent": f"{self.usage_percent:.1f}",
            "encrypted": self.encrypted,
            "encryption_mechanism": self.encryption_mechanism,
            "encryption_details": self.encryption.to_dict(),
        }


# ========== Hidden artifacts ==========

@dataclass(frozen=True)
class HiddenArtifact:
    """A hidden, dot-prefixed or well-known sensitive file or directory."""
    path: str
    size_bytes: int
    last_modified: str
    attribute_tag: str
    category: str
    origin_platform: str
    is_directory: bool
    display_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "display_name": self.display_name,
            "size_bytes": self.size_bytes,
            "last_modified": self.last_modified,
            "attribute_tag": self.attribute_tag,
            "category": self.category,
            "origin_platform": self.origin_platform,
            "is_directory": self.is_directory,
        }


@dataclass
class HiddenScanResult:
    artifacts: List[HiddenArtifact]
    total_discovered: int
    scan_root: str
    timestamp: str
    techniques: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "artifacts": [a.to_dict() for a in self.artifacts],
            "total_discovered": self.total_discovered,
            "scan_root": self.scan_root,
            "timestamp": self.timestamp,
            "techniques": dict(self.techniques),
            "error": self.error,
        }


# ========== Browser profiles ==========

@dataclass(frozen=True)
class BrowserArtifact:
    name: str
    path: str
    size_bytes: int
    last_modified: str
    semantic_type: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "size_bytes": self.size_bytes,
            "last_modified": self.last_modified,
            "semantic_type": self.semantic_type,
        }


@dataclass(frozen=True)
class BrowserProfile:
    browser_family: str
    profile_name: str
    profile_path: str
    artifacts: tuple = ()

    def to_dict(self) -> dict:
        return {
            "browser_family": self.browser_family,
            "profile_name": self.profile_name,
            "profile_path": self.profile_path,
            "artifacts": [a.to_dict() for a in self.artifacts],
        }


# ========== Event logs ==========

# Logon success/failure, explicit-credential logon, account creation/deletion, log cleared.
HIGH_RISK_EVENT_IDS = frozenset({"4624", "4625", "4648", "4720", "4726", "1102", "104"})
# Group membership enumeration, shutdown, event log service start/stop.
MEDIUM_RISK_EVENT_IDS = frozenset({"4798", "4799", "1074", "6005", "6006"})


def classify_event(event_id: Optional[str]) -> PrivacyRisk:
    """Map an event ID onto its privacy risk."""
    key = (event_id or "").strip()
    if key in HIGH_RISK_EVENT_IDS:
        return PrivacyRisk.HIGH
    if key in MEDIUM_RISK_EVENT_IDS:
        return PrivacyRisk.MEDIUM
    return PrivacyRisk.LOW


@dataclass(frozen=True)
class EventLogEntry:
    event_id: Optional[str]
    time_created: Optional[str]
    severity: Severity
    source: str
    description: str
    channel: str = ""

    @property
    def privacy_risk(self) -> PrivacyRisk:
        return classify_event(self.event_id)

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "time_created": self.time_created,
            "severity": self.severity.value,
            "source": self.source,
            "channel": self.channel,
            "description": self.description,
            "privacy_risk": self.privacy_risk.value,
        }


# ========== Risk ==========

@dataclass(frozen=True)
class SwapStatus:
    present: bool
    total_bytes: int = 0
    locations: tuple = ()

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "total_bytes": self.total_bytes,
            "locations": list(self.locations),
        }


@dataclass(frozen=True)
class SnapshotStatus:
    present: bool
    count: int = 0
    mechanism: Optional[str] = None

    def to_dict(self) -> dict:
        return {"present": self.present, "count": self.count, "mechanism": self.mechanism}


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    risk: RiskTier
    factors: dict = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def unknown(cls, error: str) -> "RiskAssessment":
        return cls(score=0, risk=RiskTier.UNKNOWN, factors={}, error=error)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "risk": self.risk.value,
            "factors": self.factors,
            "error": self.error,
        }
