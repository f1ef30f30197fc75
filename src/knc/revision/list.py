"""
knc.revision.list — Revision list enrichment and ordering.

Revisions are listed independently of their Services. Before they are
printed, each revision gets the traffic share and tags its owning
Service routes to it (from the Service's observed traffic block),
stored as in-memory annotations the table handlers read:

    client.knative.dev/traffic: "90%"
    client.knative.dev/tags:    "current,stable"

Then the list is ordered by namespace, service, generation (newest
first) and name. Revisions whose generation label is not a number
follow the numbered ones of their service, ordered by name.
"""

from __future__ import annotations

from typing import Callable

from knc.log import get_logger
from knc.serving.model import (
    REVISION_TAGS_ANNOTATION_KEY,
    REVISION_TRAFFIC_ANNOTATION_KEY,
    Revision,
    Service,
    TrafficTarget,
)

logger = get_logger(__name__)

# (namespace, service name) -> Service, raising NotFoundError when absent
ServiceGetter = Callable[[str, str], Service]


def traffic_and_tags_for_revision(
    name: str,
    traffic: list[TrafficTarget],
) -> tuple[int, list[str]]:
    """Sum of percents and ordered unique tags of the targets routing to name."""
    percent = 0
    tags: list[str] = []
    for target in traffic:
        if target.revision_name != name:
            continue
        percent += target.percent or 0
        if target.tag and target.tag not in tags:
            tags.append(target.tag)
    return percent, tags


def enrich(revisions: list[Revision], get_service: ServiceGetter) -> None:
    """Annotate revisions with traffic and tags from their owning Service.

    Services are looked up once per (namespace, name) for this call.
    A failed lookup is raised as is; revisions enriched so far keep
    their annotations, so callers discard the list on error.
    """
    cache: dict[tuple[str, str], Service] = {}

    for revision in revisions:
        service_name = revision.service_name
        if not service_name:
            logger.debug("revision %s has no service label, skipping", revision.name)
            continue

        key = (revision.namespace, service_name)
        service = cache.get(key)
        if service is None:
            logger.debug("looking up service %s/%s", *key)
            service = get_service(*key)
            cache[key] = service

        percent, tags = traffic_and_tags_for_revision(revision.name, service.status.traffic)
        if percent != 0:
            revision.annotations[REVISION_TRAFFIC_ANNOTATION_KEY] = f"{percent}%"
        if tags:
            revision.annotations[REVISION_TAGS_ANNOTATION_KEY] = ",".join(tags)


def _sort_key(revision: Revision) -> tuple:
    # Unparsable generations group after the numbered ones, by name
    try:
        generation = (0, -int(revision.configuration_generation))
    except ValueError:
        generation = (1, 0)
    return (revision.namespace, revision.service_name, generation, revision.name)


def sort_revisions(revisions: list[Revision]) -> list[Revision]:
    """Stable sort by namespace, service, generation (descending), name."""
    return sorted(revisions, key=_sort_key)
