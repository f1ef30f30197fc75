"""knc.serving.revision_template — Accessors over revision specs and annotations."""

from __future__ import annotations

from dataclasses import dataclass

from knc.errors import ValidationError
from knc.serving.model import (
    Container,
    LEGACY_MAX_SCALE_ANNOTATION_KEY,
    LEGACY_MIN_SCALE_ANNOTATION_KEY,
    MAX_SCALE_ANNOTATION_KEY,
    MIN_SCALE_ANNOTATION_KEY,
    ObjectMeta,
    RevisionSpec,
    TARGET_ANNOTATION_KEY,
    USER_IMAGE_ANNOTATION_KEY,
    WINDOW_ANNOTATION_KEY,
)


@dataclass
class Scaling:
    min: int | None = None
    max: int | None = None


def container_of(spec: RevisionSpec) -> Container | None:
    """Primary (first) container of a revision spec."""
    if not spec.containers:
        return None
    return spec.containers[0]


def annotation_as_int(meta: ObjectMeta, *keys: str) -> int | None:
    """Integer value of the first annotation present among keys.

    Raises:
        ValidationError: The annotation is not an integer
    """
    for key in keys:
        if key in meta.annotations:
            value = meta.annotations[key]
            try:
                return int(value)
            except ValueError as e:
                raise ValidationError(
                    f"annotation {key} has non-integer value '{value}'"
                ) from e
    return None


def scaling_info(meta: ObjectMeta) -> Scaling:
    return Scaling(
        min=annotation_as_int(meta, MIN_SCALE_ANNOTATION_KEY, LEGACY_MIN_SCALE_ANNOTATION_KEY),
        max=annotation_as_int(meta, MAX_SCALE_ANNOTATION_KEY, LEGACY_MAX_SCALE_ANNOTATION_KEY),
    )


def user_image(meta: ObjectMeta) -> str:
    return meta.annotations.get(USER_IMAGE_ANNOTATION_KEY, "")


def concurrency_target(meta: ObjectMeta) -> int | None:
    return annotation_as_int(meta, TARGET_ANNOTATION_KEY)


def autoscale_window(meta: ObjectMeta) -> str:
    return meta.annotations.get(WINDOW_ANNOTATION_KEY, "")


def port(spec: RevisionSpec) -> int | None:
    container = container_of(spec)
    if container is None or not container.ports:
        return None
    return container.ports[0].number
