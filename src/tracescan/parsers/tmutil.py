"""Parser for ``tmutil listlocalsnapshots /`` output."""


def parse_local_snapshots(text: str) -> list[str]:
    """Return the local Time Machine snapshot names."""
    return [
        line.strip()
        for line in text.splitlines()
        if line.strip().startswith("com.apple.")
    ]
