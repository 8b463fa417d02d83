"""Bounded, read-only preview of a discovered artifact."""
import os
import stat
from pathlib import Path

REDACTION_MARKER = "[binary content redacted]"
DEFAULT_PREVIEW_BYTES = 2048

# Control bytes other than tab, newline and carriage return, plus DEL.
_BINARY_BYTES = frozenset(set(range(0x00, 0x20)) - {0x09, 0x0A, 0x0D}) | {0x7F}


def is_binary(data: bytes) -> bool:
    return any(b in _BINARY_BYTES for b in data)


def _failure(error: str) -> dict:
    return {"content": "", "bytes_read": 0, "is_binary": False, "error": error}


def preview_artifact(path: str, max_bytes: int = DEFAULT_PREVIEW_BYTES) -> dict:
    """
    Read the first ``max_bytes`` of a regular file.

    Pipes, sockets and device nodes are refused without being opened, since
    opening a FIFO blocks until a writer appears.

    Returns:
        dict: ``content``, ``bytes_read``, ``is_binary`` and ``error`` (None on
        success). Binary content is replaced by a redaction marker.
    """
    target = Path(path).expanduser()
    try:
        st = os.stat(target)
    except FileNotFoundError:
        return _failure(f"File not found: {path}")
    except OSError as e:
        return _failure(f"Cannot read {path}: {e.strerror or e}")

    if stat.S_ISDIR(st.st_mode):
        return _failure(f"Path is a directory: {path}")
    if not stat.S_ISREG(st.st_mode):
        return _failure(f"Not a regular file: {path}")

    try:
        fd = os.open(target, os.O_RDONLY | getattr(os, "O_NONBLOCK", 0) | getattr(os, "O_BINARY", 0))
        with os.fdopen(fd, "rb") as f:
            # the path may have been swapped since the stat above
            if not stat.S_ISREG(os.fstat(f.fileno()).st_mode):
                return _failure(f"Not a regular file: {path}")
            data = f.read(max_bytes)
    except OSError as e:
        return _failure(f"Cannot read {path}: {e.strerror or e}")

    binary = is_binary(data)
    return {
        "content": REDACTION_MARKER if binary else data.decode("utf-8", errors="replace"),
        "bytes_read": len(data),
        "is_binary": binary,
        "error": None,
    }
