"""Byte-size helpers for encoded crop results."""

import math


def size_in_kb(byte_length: int) -> float:
    return byte_length / 1024


def format_size(size_kb: float) -> str:
    """Whole kilobytes below 1024 KB, otherwise megabytes with two decimals."""
    if size_kb < 1024:
        # Round half up, not to even
        return f"{math.floor(size_kb + 0.5)} KB"
    return f"{size_kb / 1024:.2f} MB"


def exceeds_limit(size_kb: float, max_mb: float) -> bool:
    return size_kb > max_mb * 1024
