"""
knc.revision.describe — Human-readable `knc revision describe` output.

    Name:         echo-00002
    Namespace:    default
    Age:          5m
    Image:        docker.io/acme/echo:v2 (pinned to 4f9e1c)
    Port:         8080
    Env:          TARGET=world, PASSWORD=[ref]
    Scale:        1 ... ∞
    Concurrency:
      Limit:      10
    Memory:       64Mi ... 128Mi
    Service:      echo

    Conditions:
      OK TYPE                  AGE REASON
      ++ Ready                  5m
"""

from __future__ import annotations

import re
from typing import TextIO

from knc.commands.describe import write_conditions, write_metadata, write_slice_desc
from knc.errors import ValidationError
from knc.log import get_logger
from knc.printers.prefixwriter import PrefixWriter
from knc.revision.list import traffic_and_tags_for_revision
from knc.serving import revision_template
from knc.serving.model import Revision, Service

logger = get_logger(__name__)

_IMAGE_DIGEST = re.compile(r"sha256:([0-9a-f]{64})", re.IGNORECASE)


def shorten_digest(digest: str) -> str:
    """First six hex characters of a sha256 digest, or the digest as is."""
    match = _IMAGE_DIGEST.search(digest)
    if match:
        return match.group(1)[:6]
    return digest


def format_scale(min_scale: int | None, max_scale: int | None) -> str:
    low = str(min_scale) if min_scale is not None else "0"
    high = str(max_scale) if max_scale is not None else "∞"
    return f"{low} ... {high}"


def write_image(dw: PrefixWriter, revision: Revision) -> None:
    container = revision_template.container_of(revision.spec)
    if container is None:
        dw.write_attribute("Image", "Unknown")
        return

    image = container.image
    pinned = "at"
    user_image = revision_template.user_image(revision.metadata)
    digest = revision.status.image_digest
    if user_image and digest:
        base = image.split("@")[0] if "@" in image else image.split(":")[0]
        if user_image.startswith(base):
            pinned = "pinned to"
            image = user_image
    if digest:
        image = f"{image} ({pinned} {shorten_digest(digest)})"
    dw.write_attribute("Image", image)


def write_port(dw: PrefixWriter, revision: Revision) -> None:
    port = revision_template.port(revision.spec)
    if port is not None:
        dw.write_attribute("Port", port)


def stringify_env(revision: Revision) -> list[str]:
    container = revision_template.container_of(revision.spec)
    if container is None:
        return []
    return [
        f"{env.name}={'[ref]' if env.value_from is not None else env.value}"
        for env in container.env
    ]


def stringify_env_from(revision: Revision) -> list[str]:
    container = revision_template.container_of(revision.spec)
    if container is None:
        return []
    prefixes = {"ConfigMap": "cm", "Secret": "secret"}
    return [f"{prefixes.get(e.kind, e.kind)}:{e.name}" for e in container.env_from]


def write_env(dw: PrefixWriter, revision: Revision, details: bool) -> None:
    write_slice_desc(dw, stringify_env(revision), "Env", details)
    write_slice_desc(dw, stringify_env_from(revision), "EnvFrom", details)


def write_scale(dw: PrefixWriter, revision: Revision) -> None:
    try:
        scale = revision_template.scaling_info(revision.metadata)
    except ValidationError as e:
        logger.debug("omitting scale of %s: %s", revision.name, e)
        return
    if scale.min is not None or scale.max is not None:
        dw.write_attribute("Scale", format_scale(scale.min, scale.max))


def write_concurrency(dw: PrefixWriter, revision: Revision) -> None:
    limit = revision.spec.container_concurrency or 0
    try:
        target = revision_template.concurrency_target(revision.metadata)
    except ValidationError as e:
        logger.debug("omitting concurrency target of %s: %s", revision.name, e)
        target = None
    window = revision_template.autoscale_window(revision.metadata)
    if not limit and target is None and not window:
        return

    section = dw.write_attribute("Concurrency", "")
    if limit:
        section.write_attribute("Limit", limit)
    if target is not None:
        section.write_attribute("Target", target)
    if window:
        section.write_attribute("Window", window)


def _request_limit(request: str, limit: str) -> str:
    if request and limit:
        return f"{request} ... {limit}"
    return request or limit


def write_resources(dw: PrefixWriter, revision: Revision) -> None:
    container = revision_template.container_of(revision.spec)
    if container is None:
        return
    requests = container.resources.requests
    limits = container.resources.limits
    for name, key in (("Memory", "memory"), ("CPU", "cpu")):
        value = _request_limit(requests.get(key, ""), limits.get(key, ""))
        if value:
            dw.write_attribute(name, value)


def write_service(
    dw: PrefixWriter,
    revision: Revision,
    service: Service | None,
    details: bool,
) -> None:
    service_name = revision.service_name
    if not service_name:
        return

    section = dw.write_attribute("Service", service_name)
    if not details or service is None:
        return

    section.write_attribute("Config Gen", revision.configuration_generation)
    section.write_attribute(
        "Latest Created",
        str(revision.name == service.status.latest_created_revision_name).lower(),
    )
    section.write_attribute(
        "Latest Ready",
        str(revision.name == service.status.latest_ready_revision_name).lower(),
    )
    percent, tags = traffic_and_tags_for_revision(revision.name, service.status.traffic)
    if percent:
        section.write_attribute("Traffic", f"{percent}%")
    write_slice_desc(section, tags, "Tags", details)


def describe(
    output: TextIO,
    revision: Revision,
    service: Service | None = None,
    details: bool = False,
) -> None:
    """Write the describe output of revision to output.

    service is the owning Service; it is only consulted with details.
    Scale and target annotations that are not integers are left out.

    Raises:
        OutputError: Output could not be written
    """
    dw = PrefixWriter(output)
    write_metadata(dw, revision.metadata, details)
    write_image(dw, revision)
    write_port(dw, revision)
    write_env(dw, revision, details)
    write_scale(dw, revision)
    write_concurrency(dw, revision)
    write_resources(dw, revision)
    write_service(dw, revision, service, details)
    dw.write_line()
    write_conditions(dw, revision.status.conditions, details)
    dw.flush()
