"""
knc.traffic.compute — Merge tag/traffic/untag requests into a traffic block.

The user's intent arrives as three flag lists:

    --untag stale                 detach tag "stale" from its revision
    --tag echo-v1=old             tag a revision (@latest = latest ready)
    --traffic @latest=10,old=90   redeclare every percent

They are applied against the Service's current spec traffic block in
that order (untag, tag, traffic), then targets left with neither a tag
nor traffic are pruned. Everything is validated before the block is
touched, and the caller's list is never modified.
"""

from __future__ import annotations

import copy
import re

from knc.errors import ReferentialError, ValidationError
from knc.log import get_logger
from knc.serving.model import LatestTarget, RevisionTarget, TrafficTarget
from knc.utils import split_pair

LATEST = "@latest"

_INT_PATTERN = re.compile(r"^[+-]?\d+$")

logger = get_logger(__name__)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# VALIDATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def _repetition_error(flag: str, ref: str) -> ReferentialError | ValidationError:
    if ref == LATEST:
        return ValidationError(
            f"repetition of identifier {LATEST} is not allowed, "
            f"use only once with {flag} flag"
        )
    return ReferentialError(
        f"repetition of revision reference {ref} is not allowed, "
        f"use only once with {flag} flag"
    )


def _parse_percent(value: str) -> int:
    value = value[:-1] if value.endswith("%") else value
    if not _INT_PATTERN.match(value):
        raise ValidationError(
            f"error converting given {value} to integer value for traffic distribution"
        )
    percent = int(value)
    if percent < 0 or percent > 100:
        raise ValidationError(
            f"invalid value for traffic percent {percent}, expected 0 <= percent <= 100"
        )
    return percent


def parse_tags(tags: list[str]) -> list[tuple[str, str]]:
    """Validate --tag pairs into (revision_or_latest, tag) tuples."""
    result: list[tuple[str, str]] = []
    seen_latest = False
    for pair in tags:
        ref, tag = split_pair(pair)
        if ref == LATEST:
            if seen_latest:
                raise _repetition_error("--tag", LATEST)
            seen_latest = True
        result.append((ref, tag))
    return result


def parse_traffic(traffic: list[str]) -> list[tuple[str, int]]:
    """Validate --traffic pairs into (revision_or_tag, percent) tuples.

    References must be unique and a non-empty list must sum to 100.
    """
    result: list[tuple[str, int]] = []
    seen: set[str] = set()
    total = 0
    for pair in traffic:
        ref, value = split_pair(pair)
        if ref in seen:
            raise _repetition_error("--traffic", ref)
        seen.add(ref)
        percent = _parse_percent(value)
        total += percent
        result.append((ref, percent))

    if result and total != 100:
        raise ValidationError(f"given traffic percents sum to {total}, want 100")
    return result


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BLOCK OPERATIONS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def _find_tag(block: list[TrafficTarget], tag: str) -> TrafficTarget | None:
    for target in block:
        if target.tag == tag:
            return target
    return None


def _find_latest(block: list[TrafficTarget]) -> LatestTarget | None:
    for target in block:
        if isinstance(target, LatestTarget):
            return target
    return None


def _find_revision(block: list[TrafficTarget], revision: str) -> RevisionTarget | None:
    for target in block:
        if isinstance(target, RevisionTarget) and target.revision_name == revision:
            return target
    return None


def _tag_on_revision(block: list[TrafficTarget], tag: str, revision: str) -> bool:
    return any(
        isinstance(t, RevisionTarget) and t.tag == tag and t.revision_name == revision
        for t in block
    )


def _overwrite_error(tag: str) -> ReferentialError:
    return ReferentialError(
        f"refusing to overwrite existing tag in service, "
        f"add flag '--untag {tag}' in command to untag it"
    )


def _untag(block: list[TrafficTarget], untags: list[str], service_name: str) -> None:
    missing: list[str] = []
    for tag in untags:
        target = _find_tag(block, tag)
        if target is None:
            missing.append(tag)
        else:
            target.tag = ""
    if missing:
        raise ReferentialError(
            f"tag(s) {', '.join(missing)} not present for any revisions "
            f"of service {service_name}"
        )


def _tag_latest(block: list[TrafficTarget], tag: str) -> None:
    latest = _find_latest(block)
    existing = latest.tag if latest is not None else ""

    if existing == tag:
        return
    if _find_tag(block, tag) is not None:
        raise _overwrite_error(tag)
    if existing:
        raise ReferentialError(
            f"tag '{existing}' exists on latest ready revision of service, "
            f"refusing to overwrite existing tag with '{tag}', "
            f"add flag '--untag {existing}' in command to untag it"
        )

    if latest is not None:
        latest.tag = tag
    else:
        block.append(LatestTarget(tag=tag, percent=0))


def _tag_revision(block: list[TrafficTarget], revision: str, tag: str) -> None:
    if _tag_on_revision(block, tag, revision):
        return
    if _find_tag(block, tag) is not None:
        raise _overwrite_error(tag)

    target = _find_revision(block, revision)
    if target is not None and not target.tag:
        target.tag = tag
        return
    # Untracked revision, or a second tag for one that is already tagged
    block.append(RevisionTarget(revision_name=revision, tag=tag, percent=0))


def _distribute(block: list[TrafficTarget], traffic: list[tuple[str, int]]) -> None:
    for target in block:
        target.percent = 0

    for ref, percent in traffic:
        if ref == LATEST:
            latest = _find_latest(block)
            if latest is not None:
                latest.percent = percent
            else:
                block.append(LatestTarget(percent=percent))
            continue

        # Tags win over revision names
        target = _find_tag(block, ref) or _find_revision(block, ref)
        if target is not None:
            target.percent = percent
        else:
            block.append(RevisionTarget(revision_name=ref, percent=percent))


def _prune(block: list[TrafficTarget]) -> list[TrafficTarget]:
    return [t for t in block if t.tag or (t.percent or 0) != 0]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# COMPUTE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def compute(
    existing: list[TrafficTarget],
    tags: list[str] | None = None,
    traffic: list[str] | None = None,
    untags: list[str] | None = None,
    service_name: str = "",
    traffic_specified: bool | None = None,
) -> list[TrafficTarget]:
    """Compute a Service's new traffic block.

    Args:
        existing: Current spec traffic block (left untouched)
        tags: "revision=tag" pairs, "@latest=tag" for the latest ready revision
        traffic: "revision_or_tag=percent" pairs, percent may end with "%"
        untags: Tags to detach
        service_name: Used in error messages only
        traffic_specified: Whether percents are redeclared; defaults to
            whether any traffic pairs were given

    Returns:
        New traffic block

    Raises:
        ValidationError: Malformed pairs, bad percents, sum != 100
        ReferentialError: Missing untag, tag overwrite, repeated revision
    """
    tag_pairs = parse_tags(list(tags or []))
    traffic_pairs = parse_traffic(list(traffic or []))
    if traffic_specified is None:
        traffic_specified = bool(traffic_pairs)

    block = copy.deepcopy(list(existing))

    _untag(block, list(untags or []), service_name)

    for ref, tag in tag_pairs:
        if ref == LATEST:
            _tag_latest(block, tag)
        else:
            _tag_revision(block, ref, tag)

    if traffic_specified:
        _distribute(block, traffic_pairs)

    result = _prune(block)
    logger.debug(
        "computed traffic for service %s: %d target(s), %d pruned",
        service_name, len(result), len(block) - len(result),
    )
    return result
