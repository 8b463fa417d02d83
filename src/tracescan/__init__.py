"""TraceScan - read-only privacy forensics for local volumes."""

__version__ = "0.1.0"
