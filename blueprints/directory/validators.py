from __future__ import annotations
import re

from models import DAYS, PERIODS

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

def ensure_day(day: str) -> str:
    if day not in DAYS:
        raise ValueError(f"day must be one of {', '.join(DAYS)}")
    return day

def ensure_period(period: str) -> str:
    if period not in PERIODS:
        raise ValueError(f"period must be one of {', '.join(PERIODS)}")
    return period

def ensure_hex_color(color: str) -> str:
    if not HEX_COLOR_RE.match(color):
        raise ValueError("color must be a hex colour like #3b82f6")
    return color.lower()
