"""
Risk Scorer: data recoverability risk from volume and residue signals.

Pure functions only; the caller gathers the inputs.
"""
from typing import Optional, Sequence

from .models import RiskAssessment, RiskTier, SnapshotStatus, SwapStatus, Volume

BASE_SCORE = 50
SWAP_WEIGHT = 20
SNAPSHOT_WEIGHT = 25
ENCRYPTION_WEIGHT = -30
FREE_SPACE_WEIGHT = 15
FREE_SPACE_THRESHOLD = 20.0


def compute_score(
    swap_present: bool,
    snapshots_present: bool,
    encryption_enabled: bool,
    free_space_percent: float,
) -> int:
    score = BASE_SCORE
    if swap_present:
        score += SWAP_WEIGHT
    if snapshots_present:
        score += SNAPSHOT_WEIGHT
    if encryption_enabled:
        score += ENCRYPTION_WEIGHT
    if free_space_percent > FREE_SPACE_THRESHOLD:
        score += FREE_SPACE_WEIGHT
    return max(0, min(100, score))


def risk_tier(score: int) -> RiskTier:
    if score > 70:
        return RiskTier.HIGH
    if score > 40:
        return RiskTier.MEDIUM
    return RiskTier.LOW


def encryption_coverage(volumes: Sequence[Volume]) -> float:
    """Percentage of volumes that are encrypted (0 with no volumes)."""
    if not volumes:
        return 0.0
    encrypted = sum(1 for v in volumes if v.encrypted)
    return encrypted / len(volumes) * 100


def free_space_percent(volumes: Sequence[Volume]) -> float:
    """Free bytes over total capacity across all volumes (0 with no capacity)."""
    total = sum(v.total_bytes for v in volumes)
    if total <= 0:
        return 0.0
    return sum(v.free_bytes for v in volumes) / total * 100


def assess_risk(
    volumes: Sequence[Volume],
    swap: SwapStatus,
    snapshots: SnapshotStatus,
    free_space: Optional[float] = None,
) -> RiskAssessment:
    """
    Combine volume, swap and snapshot signals into a RiskAssessment.

    Args:
        volumes: Output of the volume prober
        swap: Swap/pagefile presence
        snapshots: Snapshot presence
        free_space: Free-space percentage; derived from ``volumes`` when omitted
    """
    encrypted_count = sum(1 for v in volumes if v.encrypted)
    coverage = encryption_coverage(volumes)
    free_pct = free_space_percent(volumes) if free_space is None else free_space

    score = compute_score(
        swap_present=swap.present,
        snapshots_present=snapshots.present,
        encryption_enabled=encrypted_count > 0,
        free_space_percent=free_pct,
    )
    return RiskAssessment(
        score=score,
        risk=risk_tier(score),
        factors={
            "swap_file": swap.to_dict(),
            "snapshots": snapshots.to_dict(),
            "encryption": {
                "enabled": encrypted_count > 0,
                "coverage": round(coverage, 1),
                "encrypted_volumes": encrypted_count,
                "total_volumes": len(volumes),
            },
            "free_space": {
                "percent": round(free_pct, 1),
                "above_threshold": free_pct > FREE_SPACE_THRESHOLD,
            },
        },
    )
