"""Operating system detection shared by every probe."""
import platform

WINDOWS = "Windows"
MACOS = "macOS"
LINUX = "Linux"


def detect_os() -> str:
    """
    Detect the current operating system.

    Returns:
        str: 'Windows', 'macOS', 'Linux' or 'Unknown (<system>)'
    """
    system = platform.system()

    if system == "Windows":
        return WINDOWS
    elif system == "Darwin":
        return MACOS
    elif system == "Linux":
        return LINUX
    else:
        return f"Unknown ({system})"
