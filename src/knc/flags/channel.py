"""
knc.flags.channel — Channel type given by alias or Group:Version:Kind.

    --type imc
    --type messaging.knative.dev:v1alpha1:KafkaChannel
"""

from __future__ import annotations

from knc.errors import ValidationError
from knc.flags.reference import GroupVersionKind

BUILTIN_CHANNEL_TYPES: dict[str, GroupVersionKind] = {
    "imc": GroupVersionKind("messaging.knative.dev", "v1", "InMemoryChannel"),
    "imcv1beta1": GroupVersionKind("messaging.knative.dev", "v1beta1", "InMemoryChannel"),
}


def parse_channel_type(
    value: str,
    mappings: dict[str, GroupVersionKind] | None = None,
) -> GroupVersionKind:
    """Resolve a channel type alias or an explicit Group:Version:Kind.

    Raises:
        ValidationError: Unknown alias or malformed triple
    """
    mappings = BUILTIN_CHANNEL_TYPES if mappings is None else mappings
    parts = value.split(":")

    if len(parts) == 1:
        gvk = mappings.get(value)
        if gvk is None:
            raise ValidationError(f"unknown channel type alias: '{value}'")
        return gvk

    if len(parts) == 3 and all(parts):
        return GroupVersionKind(parts[0], parts[1], parts[2])

    raise ValidationError(
        f"incorrect value '{value}' for '--type', must be in the format "
        f"'Group:Version:Kind' or configure an alias in the config file"
    )
