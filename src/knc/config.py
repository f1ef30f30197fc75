"""
knc.config — User configuration.

$XDG_CONFIG_HOME/knc/config.yaml (default ~/.config/knc/config.yaml):

    eventing:
      sink-mappings:
        - prefix: svc
          group: core
          version: v1
          resource: services
      channel-type-mappings:
        - alias: kafka
          group: messaging.knative.dev
          version: v1alpha1
          kind: KafkaChannel

    aliases:
      - alias: deploy
        group: apps
        version: v1
        kind: Deployment
        resource: deployments

The old top-level `sink` key is read when `eventing.sink-mappings` is
absent. A group of "core" stands for the core API group.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from knc.errors import ConfigError
from knc.flags.channel import BUILTIN_CHANNEL_TYPES
from knc.flags.reference import BUILTIN_ALIASES, GroupVersionKind
from knc.flags.sink import DEFAULT_SINK_MAPPINGS, GroupVersionResource
from knc.log import get_logger

logger = get_logger(__name__)


def _config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "knc"
    return Path.home() / ".config" / "knc"


KNC_HOME = _config_home()


@dataclass
class SinkMapping:
    prefix: str
    resource: str
    group: str = ""
    version: str = "v1"


@dataclass
class ChannelTypeMapping:
    alias: str
    kind: str
    group: str
    version: str


@dataclass
class AliasMapping:
    alias: str
    kind: str
    group: str = ""
    version: str = "v1"
    resource: str = ""


@dataclass
class KncConfig:
    """Global knc config."""
    sink_mappings: list[SinkMapping] = field(default_factory=list)
    channel_type_mappings: list[ChannelTypeMapping] = field(default_factory=list)
    aliases: list[AliasMapping] = field(default_factory=list)

    def sink_table(self) -> dict[str, GroupVersionResource]:
        """Default sink prefixes overlaid with the configured ones."""
        table = dict(DEFAULT_SINK_MAPPINGS)
        for m in self.sink_mappings:
            table[m.prefix] = GroupVersionResource(m.group, m.version, m.resource)
        return table

    def channel_type_table(self) -> dict[str, GroupVersionKind]:
        table = dict(BUILTIN_CHANNEL_TYPES)
        for m in self.channel_type_mappings:
            table[m.alias] = GroupVersionKind(m.group, m.version, m.kind)
        return table

    def alias_table(self) -> dict[str, GroupVersionKind]:
        """Built-in reference aliases overlaid with the configured ones."""
        table = dict(BUILTIN_ALIASES)
        for m in self.aliases:
            table[m.alias] = GroupVersionKind(m.group, m.version, m.kind, m.resource)
        return table


def config_path() -> Path:
    return KNC_HOME / "config.yaml"


def _group(value: Any) -> str:
    group = str(value or "")
    return "" if group == "core" else group


def _entries(data: Any, key: str, required: tuple[str, ...], source: Path) -> list[dict]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigError(f"'{key}' in {source} must be a list")
    for entry in data:
        if not isinstance(entry, dict):
            raise ConfigError(f"'{key}' entries in {source} must be mappings")
        missing = [k for k in required if not entry.get(k)]
        if missing:
            raise ConfigError(
                f"'{key}' entry {entry} in {source} is missing {', '.join(missing)}"
            )
    return data


def load_config(path: str | Path | None = None) -> KncConfig:
    """Read the config file; a missing file gives the defaults.

    Raises:
        ConfigError: The file is not valid YAML or an entry is malformed
    """
    cp = Path(path) if path is not None else config_path()
    if not cp.exists():
        logger.debug("no config file at %s, using defaults", cp)
        return KncConfig()

    try:
        with open(cp) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cp}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {cp} must contain a mapping")

    eventing = data.get("eventing") or {}
    cfg = KncConfig()

    # Sink mappings
    sink_key = "eventing.sink-mappings"
    sink_data = eventing.get("sink-mappings")
    if sink_data is None and "sink" in data:
        sink_key, sink_data = "sink", data["sink"]
    for entry in _entries(sink_data, sink_key, ("prefix", "resource"), cp):
        cfg.sink_mappings.append(SinkMapping(
            prefix=entry["prefix"],
            resource=entry["resource"],
            group=_group(entry.get("group")),
            version=str(entry.get("version", "v1")),
        ))

    # Channel types
    key = "eventing.channel-type-mappings"
    for entry in _entries(eventing.get("channel-type-mappings"), key, ("alias", "kind", "version"), cp):
        cfg.channel_type_mappings.append(ChannelTypeMapping(
            alias=entry["alias"],
            kind=entry["kind"],
            group=_group(entry.get("group")),
            version=str(entry["version"]),
        ))

    # Reference aliases
    for entry in _entries(data.get("aliases"), "aliases", ("alias", "kind"), cp):
        cfg.aliases.append(AliasMapping(
            alias=entry["alias"],
            kind=entry["kind"],
            group=_group(entry.get("group")),
            version=str(entry.get("version", "v1")),
            resource=str(entry.get("resource", "")),
        ))

    logger.debug(
        "loaded %s: %d sink mapping(s), %d channel type(s), %d alias(es)",
        cp, len(cfg.sink_mappings), len(cfg.channel_type_mappings), len(cfg.aliases),
    )
    return cfg
