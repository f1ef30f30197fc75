"""
knc.errors — Error kinds shared by all knc modules.

    ValidationError   malformed flag value, bad percent, bad sum
    ReferentialError  tag/untag/revision reference conflicts
    NotFoundError     object lookup returned nothing
    ConflictError     object already exists
    OutputError       output sink could not be written/flushed
    ConfigError       config file could not be parsed
"""

from __future__ import annotations


class KncError(Exception):
    """Base class for all knc errors."""
    pass


class ValidationError(KncError):
    """Malformed user input."""
    pass


class ReferentialError(KncError):
    """Input refers to something that conflicts with existing state."""
    pass


class NotFoundError(KncError):
    """Requested object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        where = f" in namespace '{namespace}'" if namespace else ""
        super().__init__(f"{kind} '{name}' not found{where}")


class ConflictError(KncError):
    """Object with the same name already exists."""

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        where = f" in namespace '{namespace}'" if namespace else ""
        super().__init__(f"{kind} '{name}' already exists{where}")


class OutputError(KncError):
    """Output could not be written."""
    pass


class ConfigError(KncError):
    """Configuration file error."""
    pass
