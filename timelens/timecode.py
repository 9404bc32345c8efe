"""
Timecode strings ("MM:SS" or "HH:MM:SS") <-> integer seconds.
"""
from __future__ import annotations

from .errors import FormatError


def parse_timecode(text: str) -> int:
    """
    Parse "MM:SS" or "HH:MM:SS" into seconds.

    Components must be plain non-negative integers; minutes and seconds are not
    range-checked, so "00:75" is 75 seconds.
    """
    if not isinstance(text, str):
        raise FormatError(f"Timecode must be a string, got {type(text).__name__}")
    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise FormatError(f"Timecode must be MM:SS or HH:MM:SS: {text!r}")
    # isdigit() rejects signs, decimals, blanks and whitespace
    if not all(p.isascii() and p.isdigit() for p in parts):
        raise FormatError(f"Timecode components must be non-negative integers: {text!r}")

    seconds = 0
    for p in parts:
        seconds = seconds * 60 + int(p)
    return seconds


def format_timecode(seconds: int) -> str:
    """Format seconds as "MM:SS" below one hour, "HH:MM:SS" from one hour on."""
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        if isinstance(seconds, float) and seconds.is_integer():
            seconds = int(seconds)
        else:
            raise FormatError(f"Seconds must be an integer: {seconds!r}")
    if seconds < 0:
        raise FormatError(f"Seconds must be non-negative: {seconds}")

    hh, rest = divmod(seconds, 3600)
    mm, ss = divmod(rest, 60)
    if hh:
        return f"{hh:02d}:{mm:02d}:{ss:02d}"
    return f"{mm:02d}:{ss:02d}"


def display_label(text: str) -> str:
    """Shorten "00:MM:SS" to "MM:SS" for axis labels; shorter labels pass through."""
    if len(text) > 5 and text.startswith("00:"):
        return text[3:]
    return text
