"""
Duration formatting and parsing for whole-second values.

format_duration() renders MM:SS with unbounded minutes. parse_duration()
accepts "s", "m:ss" or "h:mm:ss" and returns None for anything it can't read,
so callers can tell "invalid" apart from 0.
"""

import re

_INT_RE = re.compile(r"[+-]?\d+")


def format_duration(sec: int) -> str:
    s = max(0, sec)
    return f"{s // 60:02d}:{s % 60:02d}"


def _to_int(text):
    text = text.strip()
    if not _INT_RE.fullmatch(text):
        return None
    return int(text)


def parse_duration(text: str) -> int | None:
    """Parse a duration in seconds. Blank input is 0, invalid input is None."""
    t = (text or "").strip()
    if not t:
        return 0

    parts = [_to_int(p) for p in t.split(":")]
    if None in parts:
        return None

    if len(parts) == 1:
        s = parts[0]
        return s if s >= 0 else None
    if len(parts) == 2:
        m, s = parts
        if m < 0 or not 0 <= s <= 59:
            return None
        return m * 60 + s
    if len(parts) == 3:
        h, m, s = parts
        if h < 0 or not 0 <= m <= 59 or not 0 <= s <= 59:
            return None
        return h * 3600 + m * 60 + s
    return None


def parse_count(text: str) -> int | None:
    """Parse a set/rep count. Must be a positive integer."""
    n = _to_int(text or "")
    if n is None or n <= 0:
        return None
    return n
