"""
Display formatting for distances and durations.

Used by the CLI and API so dashboards get ready-to-render strings alongside the raw
numbers.
"""

from __future__ import annotations

from datetime import datetime
from math import floor


def _round_half_up(x: float) -> int:
    return int(floor(x + 0.5))


def format_minutes(minutes: int) -> str:
    return f"{int(minutes)} min"


def format_clock(dt: datetime) -> str:
    """Render a timestamp as 24h `HH:MM` in its own timezone."""
    return dt.strftime("%H:%M")


def format_distance(distance_km: float | None) -> str:
    """Render meters below 1 km, otherwise kilometers with one decimal."""
    if distance_km is None:
        return "N/A"
    if distance_km < 1:
        return f"{_round_half_up(distance_km * 1000)} m"
    return f"{distance_km:.1f} km"


def format_duration_minutes(minutes: float | None) -> str:
    """Render a duration like `< 1 min`, `25 min`, `2 hours` or `1h 30m`."""
    if minutes is None:
        return "N/A"
    if minutes < 1:
        return "< 1 min"

    total = _round_half_up(minutes)
    if total < 60:
        return f"{total} min"
    hours, mins = divmod(total, 60)
    if mins == 0:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    return f"{hours}h {mins}m"
