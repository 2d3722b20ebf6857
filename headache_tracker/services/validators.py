from __future__ import annotations
import math
from datetime import date, datetime
from typing import Optional


def today_key(today: Optional[date] = None) -> str:
    """Local calendar date as YYYY-MM-DD."""
    return (today or date.today()).isoformat()

def blank_to_none(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = s.strip()
    return s or None

def parse_float(s: Optional[str]) -> Optional[float]:
    """
    Parse a text field into a float.
    Returns None for blank, unparseable or non-finite input.
    """
    s = blank_to_none(s)
    if s is None:
        return None
    try:
        v = float(s)
    except ValueError:
        return None
    if not math.isfinite(v):
        return None
    return v

def format_number(v: Optional[float]) -> str:
    # Same text a browser shows for a JS number: 40.7 -> "40.7", -74.0 -> "-74".
    if v is None:
        return ""
    s = repr(float(v))
    if s.endswith(".0"):
        s = s[:-2]
    return s

def validate_date_key(d: Optional[str]) -> str:
    """
    Returns the date unchanged if it is a valid YYYY-MM-DD string.
    Raises ValueError with a friendly message otherwise.
    """
    try:
        datetime.strptime(d or "", "%Y-%m-%d")
    except ValueError:
        raise ValueError("Dates must be in YYYY-MM-DD format.")
    return d

def validate_time(t: Optional[str]) -> Optional[str]:
    """
    Returns None for a blank time, the HH:MM string if valid.
    Raises ValueError otherwise.
    """
    t = blank_to_none(t)
    if t is None:
        return None
    try:
        datetime.strptime(t, "%H:%M")
    except ValueError:
        raise ValueError("Times must be in HH:MM format.")
    return t
