"""
knc.flags.env — Environment values taken from config maps and secrets.

    --env-value-from PASSWORD=secret:db-creds:password
    --env-from cm:app-config
"""

from __future__ import annotations

from knc.errors import ValidationError
from knc.serving.model import EnvFromSource, EnvVarSource

_SOURCE_TYPES = {
    "config-map": "ConfigMap",
    "cm": "ConfigMap",
    "secret": "Secret",
    "sc": "Secret",
}


def _source_type(token: str) -> str:
    source_type = _SOURCE_TYPES.get(token.strip())
    if source_type is None:
        raise ValidationError(
            f'unsupported env source type "{token}"; supported source types are '
            f'"config-map" ("cm") and "secret" ("sc")'
        )
    return source_type


def parse_env_value_from(spec: str) -> EnvVarSource:
    """Parse "cm:NAME:KEY" or "secret:NAME:KEY".

    >>> parse_env_value_from("cm:app-config:level")
    EnvVarSource(kind='ConfigMap', name='app-config', key='level', raw=None)
    """
    parts = spec.split(":", 2)
    if len(parts) != 3:
        raise ValidationError(
            'argument requires a value in form "resourceType:name:key" where '
            '"resourceType" can be one of "config-map" ("cm") or "secret" ("sc"); '
            f'got "{spec}"'
        )

    source_type = _source_type(parts[0])
    name = parts[1].strip()
    key = parts[2].strip()
    if not name:
        raise ValidationError(f"the name of {source_type} cannot be an empty string")
    if not key:
        raise ValidationError(
            f'the key referenced by resource {source_type} "{name}" cannot be an empty string'
        )
    return EnvVarSource(kind=source_type, name=name, key=key)


def parse_env_from(spec: str) -> EnvFromSource:
    """Parse "cm:NAME" or "secret:NAME"."""
    parts = spec.split(":", 1)
    if len(parts) != 2:
        raise ValidationError(
            'argument requires a value in form "resourceType:name" where '
            '"resourceType" can be one of "config-map" ("cm") or "secret" ("sc"); '
            f'got "{spec}"'
        )
    source_type = _source_type(parts[0])
    name = parts[1].strip()
    if not name:
        raise ValidationError(f"the name of {source_type} cannot be an empty string")
    return EnvFromSource(kind=source_type, name=name)
