"""
Browser Profile Detector.

Looks for browser profiles in fixed per-OS locations and records which
privacy-bearing files they contain. Only existence, size and modification
time are collected; file contents are never opened.
"""
import asyncio
import logging
import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..models import BrowserArtifact, BrowserProfile, iso_timestamp
from .platforms import LINUX, MACOS, WINDOWS, detect_os

logger = logging.getLogger(__name__)

CHROMIUM = "chromium"
CHROMIUM_SINGLE = "chromium-single"
FIREFOX = "firefox"
SAFARI = "safari"

CHROMIUM_PROFILE_NAME = re.compile(r"^(Default|Profile \d+|Guest Profile|System Profile)$")
FIREFOX_PROFILE_NAME = re.compile(r"^[A-Za-z0-9]+\.[^/\\]+$")

CHROMIUM_FILES = [
    ("Cookies", "cookies"),
    ("Network/Cookies", "cookies"),
    ("History", "history"),
    ("Visited Links", "history"),
    ("Top Sites", "history"),
    ("Shortcuts", "history"),
    ("Favicons", "history"),
    ("Login Data", "credentials"),
    ("Login Data For Account", "credentials"),
    ("Web Data", "autofill"),
    ("Bookmarks", "bookmarks"),
    ("Preferences", "preferences"),
    ("Secure Preferences", "preferences"),
    ("Current Session", "session"),
    ("Last Session", "session"),
]

FIREFOX_FILES = [
    ("cookies.sqlite", "cookies"),
    ("places.sqlite", "history"),
    ("favicons.sqlite", "history"),
    ("formhistory.sqlite", "autofill"),
    ("logins.json", "credentials"),
    ("key4.db", "keys"),
    ("cert9.db", "certificates"),
    ("permissions.sqlite", "permissions"),
    ("sessionstore.jsonlz4", "session"),
    ("prefs.js", "preferences"),
]

SAFARI_FILES = [
    ("Safari/History.db", "history"),
    ("Safari/TopSites.plist", "history"),
    ("Safari/Bookmarks.plist", "bookmarks"),
    ("Safari/LastSession.plist", "session"),
    ("Safari/Form Values", "autofill"),
    ("Cookies/Cookies.binarycookies", "cookies"),
    ("Containers/com.apple.Safari/Data/Library/Cookies/Cookies.binarycookies", "cookies"),
]

LAYOUT_FILES = {
    CHROMIUM: CHROMIUM_FILES,
    CHROMIUM_SINGLE: CHROMIUM_FILES,
    FIREFOX: FIREFOX_FILES,
    SAFARI: SAFARI_FILES,
}


@dataclass(frozen=True)
class BrowserLocation:
    family: str
    layout: str
    relative_root: str


BROWSER_LOCATIONS = {
    WINDOWS: [
        BrowserLocation("Chrome", CHROMIUM, "AppData/Local/Google/Chrome/User Data"),
        BrowserLocation("Chromium", CHROMIUM, "AppData/Local/Chromium/User Data"),
        BrowserLocation("Edge", CHROMIUM, "AppData/Local/Microsoft/Edge/User Data"),
        BrowserLocation("Brave", CHROMIUM, "AppData/Local/BraveSoftware/Brave-Browser/User Data"),
        BrowserLocation("Vivaldi", CHROMIUM, "AppData/Local/Vivaldi/User Data"),
        BrowserLocation("Opera", CHROMIUM_SINGLE, "AppData/Roaming/Opera Software/Opera Stable"),
        BrowserLocation("Firefox", FIREFOX, "AppData/Roaming/Mozilla/Firefox/Profiles"),
    ],
    MACOS: [
        BrowserLocation("Chrome", CHROMIUM, "Library/Application Support/Google/Chrome"),
        BrowserLocation("Chromium", CHROMIUM, "Library/Application Support/Chromium"),
        BrowserLocation("Edge", CHROMIUM, "Library/Application Support/Microsoft Edge"),
        BrowserLocation("Brave", CHROMIUM, "Library/Application Support/BraveSoftware/Brave-Browser"),
        BrowserLocation("Vivaldi", CHROMIUM, "Library/Application Support/Vivaldi"),
        BrowserLocation("Opera", CHROMIUM_SINGLE, "Library/Application Support/com.operasoftware.Opera"),
        BrowserLocation("Firefox", FIREFOX, "Library/Application Support/Firefox/Profiles"),
        BrowserLocation("Safari", SAFARI, "Library"),
    ],
    LINUX: [
        BrowserLocation("Chrome", CHROMIUM, ".config/google-chrome"),
        BrowserLocation("Chromium", CHROMIUM, ".config/chromium"),
        BrowserLocation("Edge", CHROMIUM, ".config/microsoft-edge"),
        BrowserLocation("Brave", CHROMIUM, ".config/BraveSoftware/Brave-Browser"),
        BrowserLocation("Vivaldi", CHROMIUM, ".config/vivaldi"),
        BrowserLocation("Opera", CHROMIUM_SINGLE, ".config/opera"),
        BrowserLocation("Firefox", FIREFOX, ".mozilla/firefox"),
    ],
}


class BrowserProfileDetector:
    """Finds browser profiles and their privacy-relevant files."""

    def __init__(self, os_type: Optional[str] = None, home_directory: Optional[Path] = None):
        self.os_type = os_type or detect_os()
        self.home_directory = home_directory or Path.home()

    async def scan_browser_profiles(self) -> dict:
        """
        Returns:
            dict: ``{"profiles": [...], "total_found": n}``
        """
        profiles = await asyncio.to_thread(self.find_profiles)
        return {
            "profiles": [p.to_dict() for p in profiles],
            "total_found": len(profiles),
        }

    def find_profiles(self) -> List[BrowserProfile]:
        profiles = []
        for location in BROWSER_LOCATIONS.get(self.os_type, []):
            root = self.home_directory / location.relative_root
            if not root.is_dir():
                continue
            for name, path in self._profile_dirs(location, root):
                artifacts = self._probe_files(path, LAYOUT_FILES[location.layout])
                if not artifacts:
                    continue
                profiles.append(
                    BrowserProfile(
                        browser_family=location.family,
                        profile_name=name,
                        profile_path=str(path),
                        artifacts=tuple(artifacts),
                    )
                )
        logger.debug("Found %d browser profiles", len(profiles))
        return profiles

    def _profile_dirs(self, location: BrowserLocation, root: Path) -> List[tuple[str, Path]]:
        if location.layout in (CHROMIUM_SINGLE, SAFARI):
            return [("Default", root)]

        pattern = CHROMIUM_PROFILE_NAME if location.layout == CHROMIUM else FIREFOX_PROFILE_NAME
        try:
            with os.scandir(root) as it:
                names = sorted(
                    entry.name for entry in it
                    if entry.is_dir(follow_symlinks=False) and pattern.match(entry.name)
                )
        except OSError as e:
            logger.debug("Cannot list profiles in %s: %s", root, e)
            return []
        return [(name, root / name) for name in names]

    def _probe_files(self, profile_path: Path, allowlist: List[tuple[str, str]]) -> List[BrowserArtifact]:
        artifacts = []
        for relative, semantic_type in allowlist:
            path = profile_path / relative
            try:
                st = os.stat(path)
            except OSError:
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            artifacts.append(
                BrowserArtifact(
                    name=relative,
                    path=str(path),
                    size_bytes=st.st_size,
                    last_modified=iso_timestamp(st.st_mtime),
                    semantic_type=semantic_type,
                )
            )
        return artifacts
