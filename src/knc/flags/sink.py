"""
knc.flags.sink — Event sink references.

    --sink https://event.receiver.uri    URL
    --sink receiver                      Knative service in the current namespace
    --sink broker:nest                   prefix from the sink mappings
    --sink ksvc:mysvc:other-ns           ... in another namespace
    --sink special.dev/v1alpha1/Pipe:p   group/version/kind, lower-cased plural

A parsed reference is resolved into a Destination through an injected
lookup, which is the only place an object store is consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urlparse

from knc.errors import KncError, ValidationError
from knc.flags.reference import parse_group_version


class SinkError(ValidationError):
    """Sink missing or unusable."""
    pass


SINK_REQUIRED = "sink is required"
SINK_INVALID = "sink has invalid format"


@dataclass(frozen=True)
class GroupVersionResource:
    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


DEFAULT_SINK_MAPPINGS: dict[str, GroupVersionResource] = {
    "kservice": GroupVersionResource("serving.knative.dev", "v1", "services"),
    "broker": GroupVersionResource("eventing.knative.dev", "v1", "brokers"),
    "channel": GroupVersionResource("messaging.knative.dev", "v1", "channels"),
    "service": GroupVersionResource("", "v1", "services"),
}

# Shorthands, preferred when printing a reference back
SINK_ALIASES = {"ksvc": "kservice", "svc": "service"}

for _alias, _target in SINK_ALIASES.items():
    DEFAULT_SINK_MAPPINGS[_alias] = DEFAULT_SINK_MAPPINGS[_target]

DEFAULT_PREFIX = "ksvc"


@dataclass
class KReference:
    kind: str
    api_version: str
    name: str
    namespace: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind,
            "apiVersion": self.api_version,
            "name": self.name,
        }
        if self.namespace:
            d["namespace"] = self.namespace
        return d


@dataclass
class Destination:
    uri: str | None = None
    ref: KReference | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.ref is not None:
            return {"ref": self.ref.to_dict()}
        return {"uri": self.uri}


# (resource, namespace, name) -> object dict with kind/apiVersion/metadata.name
ObjectLookup = Callable[[GroupVersionResource, str, str], dict]


@dataclass
class SinkReference:
    """Either a URL or an object reference (gvr, name, namespace)."""
    url: str | None = None
    gvr: GroupVersionResource | None = None
    name: str = ""
    namespace: str = ""

    @property
    def is_url(self) -> bool:
        return self.url is not None

    def resolve(self, lookup: ObjectLookup) -> Destination:
        """Turn the reference into a Destination, checking the object exists.

        Raises:
            SinkError: Neither a URL nor a resource is set, or the
                referenced object could not be looked up
        """
        if self.is_url:
            return Destination(uri=self.url)

        if self.gvr is None:
            raise SinkError(SINK_INVALID)
        try:
            obj = lookup(self.gvr, self.namespace, self.name)
        except KncError as e:
            raise SinkError(f"{SINK_INVALID}: {e}") from e

        meta = obj.get("metadata") or {}
        return Destination(ref=KReference(
            kind=obj.get("kind", ""),
            api_version=obj.get("apiVersion", self.gvr.api_version),
            name=meta.get("name", self.name),
            namespace=self.namespace,
        ))

    def gvr_as_text(self) -> str:
        if self.gvr is None:
            raise SinkError(SINK_INVALID)
        for alias, target in SINK_ALIASES.items():
            if DEFAULT_SINK_MAPPINGS[target] == self.gvr:
                return alias
        for prefix, gvr in DEFAULT_SINK_MAPPINGS.items():
            if gvr == self.gvr:
                return prefix
        return f"{self.gvr.resource}.{self.gvr.group}/{self.gvr.version}"

    def as_text(self, current_namespace: str) -> str:
        """Short form, with the namespace only when it is not the current one."""
        if self.is_url:
            return self.url or ""
        text = f"{self.gvr_as_text()}:{self.name}"
        if self.namespace != current_namespace:
            text += f":{self.namespace}"
        return text


def _split_sink(text: str) -> tuple[str, str, str]:
    parts = text.split(":", 2)
    if len(parts) == 1:
        return DEFAULT_PREFIX, parts[0], ""
    if parts[0] in ("http", "https"):
        return "", text, ""
    if len(parts) == 3:
        return parts[0], parts[1], parts[2]
    return parts[0], parts[1], ""


def _resource_from_prefix(prefix: str) -> GroupVersionResource:
    group_version, _, kind = prefix.rpartition("/")
    try:
        group, version = parse_group_version(group_version)
    except ValidationError as e:
        raise SinkError(f"{SINK_INVALID}: {e}") from e
    kind = kind.lower()
    if not kind.endswith("s"):
        kind += "s"
    return GroupVersionResource(group, version, kind)


def parse_sink(
    text: str,
    namespace: str,
    mappings: dict[str, GroupVersionResource] | None = None,
) -> SinkReference:
    """Parse a --sink value.

    Raises:
        SinkError: Empty or malformed sink
    """
    if not text:
        raise SinkError(SINK_REQUIRED)
    mappings = DEFAULT_SINK_MAPPINGS if mappings is None else mappings

    prefix, name, ns = _split_sink(text)
    if not prefix:
        parsed = urlparse(name)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise SinkError(f"{SINK_INVALID}: {name}")
        return SinkReference(url=name)

    if not name:
        raise SinkError(f"{SINK_INVALID}: {text}")

    gvr = mappings.get(prefix) or _resource_from_prefix(prefix)
    return SinkReference(gvr=gvr, name=name, namespace=ns or namespace)
