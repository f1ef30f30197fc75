"""
knc — Serverless platform command-line client.

Traffic splitting for Services, revision listing and describe output,
and the resource-reference parsers the verbs share.
"""

from knc.errors import (
    KncError,
    ValidationError,
    ReferentialError,
    NotFoundError,
    ConflictError,
    OutputError,
    ConfigError,
)
from knc.traffic.compute import compute, LATEST
from knc.revision.list import enrich, sort_revisions

__version__ = "0.1.0"

__all__ = [
    # errors
    "KncError",
    "ValidationError",
    "ReferentialError",
    "NotFoundError",
    "ConflictError",
    "OutputError",
    "ConfigError",
    # traffic
    "compute",
    "LATEST",
    # revisions
    "enrich",
    "sort_revisions",
]
