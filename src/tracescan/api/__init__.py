"""HTTP API for TraceScan."""
