"""Probes - read-only evidence gathering from the local machine."""

from .browsers import BrowserProfileDetector
from .event_logs import LogMiner
from .hidden import HiddenArtifactScanner
from .preview import preview_artifact
from .residue import ResidueProbe
from .volumes import VolumeProber

__all__ = [
    "BrowserProfileDetector",
    "HiddenArtifactScanner",
    "LogMiner",
    "ResidueProbe",
    "VolumeProber",
    "preview_artifact",
]
