"""
knc.commands.human_readable — Short strings for conditions and ages.

Used by the table handlers and the describe output:

    conditions_value(conds)          "3 OK / 4"
    ready_condition(conds)           "True" / "False" / "<unknown>"
    non_ready_condition_reason(...)  "RevisionMissing : no such revision"
    translate_timestamp_since(ts)    "5m" / "3d" / "<unknown>"
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from knc.serving.model import Condition

READY = "Ready"
UNKNOWN = "<unknown>"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def conditions_value(conditions: list[Condition]) -> str:
    ok = sum(1 for c in conditions if c.status == "True")
    return f"{ok} OK / {len(conditions)}"


def ready_condition(conditions: list[Condition]) -> str:
    for c in conditions:
        if c.type == READY:
            return c.status
    return UNKNOWN


def non_ready_condition_reason(conditions: list[Condition]) -> str:
    """Reason (and message) of a Ready condition that is not True."""
    for c in conditions:
        if c.type == READY:
            if c.status == "True":
                return ""
            if c.message:
                return f"{c.reason} : {c.message}"
            return c.reason
    return UNKNOWN


def human_duration(d: timedelta) -> str:
    """Two-unit approximation for table ages ("2m5s", "3h10m", "5d")."""
    seconds = int(d.total_seconds())
    if seconds < -1:
        return "<invalid>"
    if seconds < 0:
        return "0s"
    if seconds < 60 * 2:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 10:
        s = seconds % 60
        return f"{minutes}m{s}s" if s else f"{minutes}m"
    if minutes < 60 * 3:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 8:
        m = minutes % 60
        return f"{hours}h{m}m" if m else f"{hours}h"
    if hours < 48:
        return f"{hours}h"
    if hours < 24 * 8:
        h = hours % 24
        return f"{hours // 24}d{h}h" if h else f"{hours // 24}d"
    if hours < 24 * 365 * 2:
        return f"{hours // 24}d"
    if hours < 24 * 365 * 8:
        dy = (hours // 24) % 365
        return f"{hours // 24 // 365}y{dy}d" if dy else f"{hours // 24 // 365}y"
    return f"{hours // 24 // 365}y"


def short_human_duration(d: timedelta) -> str:
    """Single-unit approximation for describe ages ("45s", "3h", "2y")."""
    seconds = int(d.total_seconds())
    if seconds < -1:
        return "<invalid>"
    if seconds < 0:
        return "0s"
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    if hours < 24 * 365:
        return f"{hours // 24}d"
    return f"{hours // 24 // 365}y"


def translate_timestamp_since(timestamp: datetime | None) -> str:
    if timestamp is None:
        return UNKNOWN
    return human_duration(_now() - timestamp)


def age(timestamp: datetime | None) -> str:
    if timestamp is None:
        return ""
    return short_human_duration(_now() - timestamp)
