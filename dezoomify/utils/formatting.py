"""
Small helpers turning raw values into text for the console, and back.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(num_bytes: int) -> str:
    """Human-readable byte count, e.g. '3.2 MB'."""
    value = float(max(num_bytes, 0))
    for unit in _SIZE_UNITS[:-1]:
        if value < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """e.g. '1m 05s', or '0.4s' below one second."""
    if seconds < 1:
        return f"{max(seconds, 0):.1f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def format_megapixels(width: int, height: int) -> str:
    return f"{width * height / 1_000_000:.1f} MP"


def parse_header(header: str) -> tuple[str, str]:
    """Splits a 'Name: value' string. Raises ValueError when there is no name."""
    name, sep, value = header.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"Invalid header '{header}', expected 'Name: value'")
    return name.strip(), value.strip()
