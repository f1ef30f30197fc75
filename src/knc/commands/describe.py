"""
knc.commands.describe — Building blocks of every describe output.

Metadata, label/annotation maps, value lists and the conditions table,
written through a PrefixWriter. Without details, maps and lists are
joined on one line and cut at TRUNCATE_AT characters, and keys from the
platform's own domains are hidden.
"""

from __future__ import annotations

from knc.commands.human_readable import READY, age
from knc.printers.prefixwriter import PrefixWriter, label
from knc.serving.model import Condition, ObjectMeta

TRUNCATE_AT = 100

_BORING_DOMAINS = {
    "serving.knative.dev",
    "client.knative.dev",
    "kubectl.kubernetes.io",
}

_SEVERITY_ORDER = {"Error": 0, "Warning": 1, "Info": 2}


def write_metadata(dw: PrefixWriter, meta: ObjectMeta, details: bool) -> None:
    dw.write_attribute("Name", meta.name)
    dw.write_attribute("Namespace", meta.namespace)
    write_map_desc(dw, meta.labels, "Labels", details)
    write_map_desc(dw, meta.annotations, "Annotations", details)
    dw.write_attribute("Age", age(meta.creation_timestamp))


def _key_is_boring(key: str) -> bool:
    parts = key.split("/")
    return len(parts) > 1 and parts[0] in _BORING_DOMAINS


def _join_and_truncate(keys: list[str], m: dict[str, str], width: int) -> str:
    joined = ""
    for key in keys:
        joined += f"{key}={m[key]}, "
        if len(joined) > width:
            break
    joined = joined.rstrip(", ")
    if len(joined) <= width:
        return joined
    return joined[: width - 4] + " ..."


def write_map_desc(dw: PrefixWriter, m: dict[str, str], name: str, details: bool) -> None:
    """Write a map sorted by key, one line per entry when details is set."""
    keys = sorted(k for k in m if details or not _key_is_boring(k))
    if not keys:
        return

    if details:
        for i, key in enumerate(keys):
            dw.write_cols_ln(label(name) if i == 0 else "", f"{key}={m[key]}")
        return

    dw.write_cols_ln(label(name), _join_and_truncate(keys, m, TRUNCATE_AT - len(name) - 2))


def write_slice_desc(dw: PrefixWriter, values: list[str], name: str, details: bool) -> None:
    """Write a list, one line per value when details is set."""
    if not values:
        return

    if details:
        for i, value in enumerate(values):
            dw.write_cols_ln(label(name) if i == 0 else "", value)
        return

    joined = ", ".join(values)
    if len(joined) > TRUNCATE_AT:
        joined = joined[: TRUNCATE_AT - 4] + " ..."
    dw.write_attribute(name, joined)


def format_status(c: Condition) -> str:
    if c.status == "True":
        return "++"
    if c.status == "False":
        return {
            "Error": "!!",
            "Warning": " W",
            "Info": " I",
        }.get(c.severity, " !")
    return "??"


def sort_conditions(conditions: list[Condition]) -> list[Condition]:
    """Ready first, then Error, Warning, Info severities, each by type."""
    def key(c: Condition) -> tuple[int, int, str]:
        return (
            0 if c.type == READY else 1,
            _SEVERITY_ORDER.get(c.severity, 3),
            c.type,
        )
    return sorted(conditions, key=key)


def write_conditions(dw: PrefixWriter, conditions: list[Condition], details: bool) -> None:
    section = dw.write_attribute("Conditions", "")
    conditions = sort_conditions(conditions)
    type_width = max((len(c.type) for c in conditions), default=0)
    row = "%-2s %-" + str(type_width) + "s %6s %-s\n"

    section.writef(row, "OK", "TYPE", "AGE", "REASON")
    for c in conditions:
        reason = c.reason
        if details and reason:
            reason = f"{reason} ({c.message})"
        section.writef(row, format_status(c), c.type, age(c.last_transition_time), reason)
