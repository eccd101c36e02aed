"""
Duration formatting utilities for human-readable output.
"""


def format_duration(us: float) -> str:
    """
    Format a duration in microseconds to a human-readable string.

    Args:
        us: Duration in microseconds

    Returns:
        Formatted duration string (e.g., "1.33 us", "2.50 ms", "1.20 s")
    """
    if us < 1000:
        return f"{us:.2f} us"
    elif us < 1_000_000:
        return f"{us/1000:.2f} ms"
    else:
        return f"{us/1_000_000:.2f} s"
