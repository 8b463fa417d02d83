"""
Hidden-Artifact Scanner.

Several independent discovery techniques run concurrently against the scan
root. Each one is capped at an equal share of the overall limit, and the
combined results are deduplicated, sorted by size and truncated only after
every technique has finished, so the outcome does not depend on which
technique completes first.
"""
import asyncio
import heapq
import logging
import os
import stat
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from ..config import Settings, settings as default_settings
from ..models import HiddenArtifact, HiddenScanResult, iso_timestamp, utc_now
from ..parsers import parse_child_items
from .commands import CommandRunner, run_command, run_powershell
from .platforms import LINUX, MACOS, WINDOWS, detect_os

logger = logging.getLogger(__name__)

# Directories the walk records but never descends into.
NO_DESCEND = {
    'node_modules',
    '.git',
    '.svn',
    '.hg',
    '__pycache__',
    '.pytest_cache',
    '.mypy_cache',
    '.tox',
    'venv',
    '.venv',
    '$Recycle.Bin',
    '$RECYCLE.BIN',
    'System Volume Information',
}

# Well-known sensitive locations, relative to the scan root.
SENSITIVE_PATHS = {
    WINDOWS: [
        ("NTUSER.DAT", "registry"),
        ("NTUSER.DAT.LOG1", "registry"),
        ("AppData/Local/Microsoft/Windows/UsrClass.dat", "registry"),
        ("AppData/Local/Temp", "cache"),
        ("AppData/Local/Microsoft/Windows/INetCache", "cache"),
        ("AppData/Roaming/Microsoft/Windows/Recent", "history"),
        ("AppData/Roaming/Microsoft/Windows/PowerShell/PSReadLine/ConsoleHost_history.txt", "history"),
        ("AppData/Roaming/Microsoft/Credentials", "credentials"),
        ("AppData/Local/Microsoft/Credentials", "credentials"),
        ("AppData/Roaming/Microsoft/Protect", "credentials"),
        (".ssh", "ssh"),
    ],
    MACOS: [
        (".ssh", "ssh"),
        (".gnupg", "credentials"),
        ("Library/Keychains", "keychain"),
        ("Library/Cookies", "credentials"),
        ("Library/Caches", "cache"),
        ("Library/Preferences", "config"),
        ("Library/Application Support/com.apple.sharedfilelist", "history"),
        (".Trash", "trash"),
        (".zsh_history", "history"),
        (".bash_history", "history"),
    ],
    LINUX: [
        (".ssh", "ssh"),
        (".gnupg", "credentials"),
        (".aws/credentials", "credentials"),
        (".netrc", "credentials"),
        (".local/share/keyrings", "keychain"),
        (".bash_history", "history"),
        (".zsh_history", "history"),
        (".python_history", "history"),
        (".local/share/recently-used.xbel", "history"),
        (".local/share/Trash", "trash"),
        (".cache", "cache"),
        (".config", "config"),
    ],
}

XDG_DIRECTORIES = [(".cache", "cache"), (".config", "config")]


@dataclass
class TechniqueResult:
    name: str
    artifacts: List[HiddenArtifact] = field(default_factory=list)
    discovered: int = 0


def _largest(artifacts: List[HiddenArtifact], quota: int) -> List[HiddenArtifact]:
    return heapq.nlargest(quota, artifacts, key=lambda a: (a.size_bytes, a.path))


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class HiddenArtifactScanner:
    """
    Discovers hidden files, dotfiles and sensitive OS artifacts under a root.

    All techniques tolerate inaccessible or vanishing paths and return partial
    results; a failing technique contributes nothing instead of failing the
    scan.
    """

    def __init__(
        self,
        os_type: Optional[str] = None,
        settings: Optional[Settings] = None,
        runner: Optional[CommandRunner] = None,
        home_directory: Optional[Path] = None,
    ):
        self.os_type = os_type or detect_os()
        self.settings = settings or default_settings
        self._run = runner or run_command
        self.home_directory = home_directory or Path.home()

    async def scan_hidden(self, root_path: Optional[str] = None) -> HiddenScanResult:
        """
        Scan ``root_path`` (default: the home directory) for hidden artifacts.

        Returns:
            HiddenScanResult with at most ``hidden_scan_limit`` artifacts,
            sorted by size descending
        """
        root = Path(root_path).expanduser() if root_path else self.home_directory
        timestamp = utc_now().isoformat()

        if not root.is_dir():
            return HiddenScanResult(
                artifacts=[],
                total_discovered=0,
                scan_root=str(root),
                timestamp=timestamp,
                error=f"Scan root is not an accessible directory: {root}",
            )

        techniques = self._techniques()
        quota = self.settings.hidden_scan_limit // len(techniques)
        deadline = time.monotonic() + self.settings.hidden_scan_timeout_seconds

        outcomes = await asyncio.gather(
            *(technique(root, quota, deadline) for _, technique in techniques),
            return_exceptions=True,
        )

        results: List[TechniqueResult] = []
        for (name, _), outcome in zip(techniques, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Hidden-file technique %s failed: %s", name, outcome)
                results.append(TechniqueResult(name=name))
            else:
                results.append(outcome)

        return self._merge(results, root, timestamp)

    def _merge(self, results: List[TechniqueResult], root: Path, timestamp: str) -> HiddenScanResult:
        seen = set()
        combined = []
        duplicates = 0
        for result in results:
            for artifact in result.artifacts:
                if artifact.path in seen:
                    duplicates += 1
                    continue
                seen.add(artifact.path)
                combined.append(artifact)

        combined.sort(key=lambda a: (-a.size_bytes, a.path))
        total = sum(r.discovered for r in results) - duplicates

        return HiddenScanResult(
            artifacts=combined[: self.settings.hidden_scan_limit],
            total_discovered=max(total, len(combined)),
            scan_root=str(root),
            timestamp=timestamp,
            techniques={r.name: r.discovered for r in results},
        )

    def _techniques(self) -> List[tuple[str, Callable[[Path, int, float], Awaitable[TechniqueResult]]]]:
        if self.os_type == WINDOWS:
            return [
                ("hidden-attribute", self._windows_hidden),
                ("system-hidden-attribute", self._windows_system_hidden),
                ("dot-prefix-walk", self._dot_walk),
                ("sensitive-paths", self._sensitive_paths),
            ]
        if self.os_type == MACOS:
            return [
                ("hidden-flag", self._mac_hidden_flag),
                ("dot-prefix-walk", self._dot_walk),
                ("sensitive-paths", self._sensitive_paths),
            ]
        return [
            ("dot-prefix-walk", self._dot_walk),
            ("sensitive-paths", self._sensitive_paths),
            ("xdg-directories", self._xdg_directories),
        ]

    # ========== Artifact construction ==========

    def _artifact(self, path: Path, attribute_tag: str, category: Optional[str] = None) -> Optional[HiddenArtifact]:
        """Build an artifact from lstat; None if the path vanished or is unreadable."""
        try:
            st = os.lstat(path)
        except OSError:
            return None
        is_dir = stat.S_ISDIR(st.st_mode)
        if category is None:
            category = "hidden-directory" if is_dir else "dotfile"
        return HiddenArtifact(
            path=str(path),
            display_name=path.name,
            size_bytes=0 if is_dir else st.st_size,
            last_modified=iso_timestamp(st.st_mtime),
            attribute_tag=attribute_tag,
            category=category,
            origin_platform=self.os_type,
            is_directory=is_dir,
        )

    # ========== Technique: dot-prefix walk ==========

    async def _dot_walk(self, root: Path, quota: int, deadline: float) -> TechniqueResult:
        return await asyncio.to_thread(self._walk_dot_entries, root, quota, deadline)

    def _walk_dot_entries(self, root: Path, quota: int, deadline: float) -> TechniqueResult:
        """
        Breadth-first walk recording dot-prefixed entries.

        Entries up to ``hidden_scan_depth`` levels below the root are visited;
        symlinks are recorded but never followed.
        """
        max_depth = self.settings.hidden_scan_depth
        max_nodes = self.settings.hidden_walk_max_nodes
        found: List[HiddenArtifact] = []
        visited_nodes = 0
        queue = deque([(root, 0)])

        while queue:
            if time.monotonic() > deadline:
                logger.info("Dot-prefix walk of %s stopped at deadline", root)
                break
            current, depth = queue.popleft()
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError:
                continue

            for entry in entries:
                visited_nodes += 1
                if visited_nodes > max_nodes:
                    logger.info("Dot-prefix walk of %s stopped after %d entries", root, max_nodes)
                    queue.clear()
                    break
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    continue
                if entry.name.startswith("."):
                    artifact = self._artifact(Path(entry.path), "dot-prefix")
                    if artifact is not None:
                        found.append(artifact)
                if is_dir and depth + 1 < max_depth and entry.name not in NO_DESCEND:
                    queue.append((Path(entry.path), depth + 1))

        return TechniqueResult("dot-prefix-walk", _largest(found, quota), len(found))

    # ========== Technique: well-known sensitive paths ==========

    async def _sensitive_paths(self, root: Path, quota: int, deadline: float) -> TechniqueResult:
        return await asyncio.to_thread(self._probe_sensitive_paths, root, quota)

    def _probe_sensitive_paths(self, root: Path, quota: int) -> TechniqueResult:
        found = []
        for relative, category in SENSITIVE_PATHS.get(self.os_type, SENSITIVE_PATHS[LINUX]):
            artifact = self._artifact(root / relative, "well-known-path", category)
            if artifact is not None:
                found.append(artifact)
        return TechniqueResult("sensitive-paths", _largest(found, quota), len(found))

    # ========== Technique: XDG cache/config listing (Linux) ==========

    async def _xdg_directories(self, root: Path, quota: int, deadline: float) -> TechniqueResult:
        return await asyncio.to_thread(self._list_xdg_directories, root, quota)

    def _list_xdg_directories(self, root: Path, quota: int) -> TechniqueResult:
        found = []
        for relative, category in XDG_DIRECTORIES:
            base = root / relative
            try:
                with os.scandir(base) as it:
                    children = [Path(entry.path) for entry in it]
            except OSError:
                continue
            for child in children:
                artifact = self._artifact(child, "xdg-directory", category)
                if artifact is not None:
                    found.append(artifact)
        return TechniqueResult("xdg-directories", _largest(found, quota), len(found))

    # ========== Technique: Windows attribute queries ==========

    async def _windows_hidden(self, root: Path, quota: int, deadline: float) -> TechniqueResult:
        return await self._windows_attribute_query("hidden-attribute", "Hidden+!System", root, quota)

    async def _windows_system_hidden(self, root: Path, quota: int, deadline: float) -> TechniqueResult:
        return await self._windows_attribute_query("system-hidden-attribute", "Hidden+System", root, quota)

    async def _windows_attribute_query(self, name: str, attributes: str, root: Path, quota: int) -> TechniqueResult:
        depth = max(self.settings.hidden_scan_depth - 1, 0)
        script = (
            f"Get-ChildItem -LiteralPath {_ps_quote(str(root))} -Force -Recurse -Depth {depth} "
            f"-Attributes {attributes} -ErrorAction SilentlyContinue | "
            f"Select-Object -First {self.settings.hidden_walk_max_nodes} FullName,Length,"
            "@{N='LastWriteTimeUtc';E={$_.LastWriteTimeUtc.ToString('o')}},"
            "@{N='Attributes';E={$_.Attributes.ToString()}},PSIsContainer | "
            "ConvertTo-Json -Compress"
        )
        result = await run_powershell(
            script,
            timeout=self.settings.hidden_scan_timeout_seconds,
            output_limit=self.settings.command_output_limit,
            runner=self._run,
        )
        if result is None:
            return TechniqueResult(name)

        found = [
            HiddenArtifact(
                path=item.full_name,
                display_name=Path(item.full_name).name,
                size_bytes=item.length,
                last_modified=item.last_write_utc or "",
                attribute_tag=item.attributes,
                category="system-hidden" if item.is_system else "hidden",
                origin_platform=self.os_type,
                is_directory=item.is_container,
            )
            for item in parse_child_items(result.stdout)
        ]
        return TechniqueResult(name, _largest(found, quota), len(found))

    # ========== Technique: macOS hidden flag ==========

    async def _mac_hidden_flag(self, root: Path, quota: int, deadline: float) -> TechniqueResult:
        result = await self._run(
            ["find", str(root), "-mindepth", "1", "-maxdepth", str(self.settings.hidden_scan_depth),
             "-flags", "+hidden"],
            timeout=self.settings.hidden_scan_timeout_seconds,
            output_limit=self.settings.command_output_limit,
        )
        if result is None:
            return TechniqueResult("hidden-flag")

        paths = [line for line in result.stdout.splitlines() if line.strip()]
        paths = paths[: self.settings.hidden_walk_max_nodes]

        def build() -> List[HiddenArtifact]:
            artifacts = (self._artifact(Path(p), "UF_HIDDEN", "hidden") for p in paths)
            return [a for a in artifacts if a is not None]

        found = await asyncio.to_thread(build)
        return TechniqueResult("hidden-flag", _largest(found, quota), len(found))
