"""Parser for ``wevtutil el`` (enumerate logs) output."""


def parse_channel_list(text: str, limit: int | None = None) -> list[str]:
    """Return channel names in listing order, optionally truncated to ``limit``."""
    channels = [line.strip() for line in text.splitlines() if line.strip()]
    if limit is not None:
        channels = channels[:limit]
    return channels
