"""Shared utility functions for Lectra."""

import re

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def count_words(text: str | None) -> int:
    """Count whitespace-delimited, non-empty tokens."""
    return len(text.split()) if text else 0


def sanitize_file_name(file_name: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9.-]`` with ``_``."""
    return _UNSAFE_KEY_CHARS.sub("_", file_name)


def format_duration(seconds: float | None) -> str:
    """Format seconds as ``M:SS`` or ``H:MM:SS``."""
    if not seconds or seconds < 0:
        return "0:00"
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_file_size(num_bytes: int | None) -> str:
    """Format a byte count as a human-readable size (``B``, ``KB``, ``MB``, ``GB``)."""
    if not num_bytes or num_bytes <= 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    value = float(num_bytes)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{value:.0f} {units[i]}" if i == 0 else f"{value:.1f} {units[i]}"
