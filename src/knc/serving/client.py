"""
knc.serving.client — Object access for Services and Revisions.

ServingClient is the port the commands talk to. ManifestServingClient
implements it over objects read from multi-document YAML manifests
(for example the output of `kubectl get ksvc,rev -o yaml`, or files
kept in a repository):

    client = ManifestServingClient.from_files(["echo.yaml"], namespace="default")
    svc = client.get_service("echo")
    revs = client.list_revisions(with_service("echo"))

A namespace of None means all namespaces.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol

import yaml

from knc.errors import ConfigError, ConflictError, NotFoundError
from knc.log import get_logger
from knc.serving.model import (
    Revision,
    RevisionList,
    SERVICE_LABEL_KEY,
    Service,
)

logger = get_logger(__name__)

DEFAULT_NAMESPACE = "default"

RevisionFilter = Callable[[Revision], bool]


def with_service(name: str) -> RevisionFilter:
    """Only revisions owned by the service name."""
    def matches(revision: Revision) -> bool:
        return revision.labels.get(SERVICE_LABEL_KEY) == name
    return matches


def with_name(name: str) -> RevisionFilter:
    """Only the revision called name."""
    def matches(revision: Revision) -> bool:
        return revision.name == name
    return matches


class ServingClient(Protocol):
    namespace: str | None

    def get_service(self, name: str) -> Service: ...

    def list_revisions(self, *filters: RevisionFilter) -> RevisionList: ...

    def get_revision(self, name: str) -> Revision: ...


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MANIFEST LOADING
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def _documents(data: Any) -> Iterable[dict]:
    """Flatten a YAML document, unpacking `kind: List`-style item lists."""
    if not isinstance(data, dict):
        return
    if isinstance(data.get("items"), list):
        for item in data["items"]:
            yield from _documents(item)
        return
    yield data


def load_documents(paths: Iterable[str | Path]) -> list[dict]:
    """Read every object from multi-document YAML files.

    Raises:
        ConfigError: A file is missing or is not valid YAML
    """
    objects: list[dict] = []
    for path in paths:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Manifest file not found: {p}")
        try:
            with open(p) as f:
                docs = list(yaml.safe_load_all(f))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {p}: {e}") from e

        for doc in docs:
            objects.extend(_documents(doc))
    return objects


def _from_manifest(cls: Any, obj: dict) -> Any:
    try:
        return cls.from_dict(obj)
    except (ValueError, TypeError, AttributeError) as e:
        meta = obj.get("metadata")
        name = meta.get("name", "") if isinstance(meta, dict) else ""
        raise ConfigError(f"Invalid {obj.get('kind')} '{name}' in manifest: {e}") from e


def load_manifests(paths: Iterable[str | Path]) -> tuple[list[Service], list[Revision]]:
    """Read Services and Revisions from YAML files; other kinds are ignored.

    Raises:
        ConfigError: A file is missing or unreadable, or an object in it
            has malformed fields
    """
    services: list[Service] = []
    revisions: list[Revision] = []
    for obj in load_documents(paths):
        kind = obj.get("kind")
        api_version = str(obj.get("apiVersion", ""))
        if kind == "Service" and api_version.startswith("serving."):
            services.append(_from_manifest(Service, obj))
        elif kind == "Revision":
            revisions.append(_from_manifest(Revision, obj))
        else:
            logger.debug("ignoring %s %s object", api_version, kind)
    return services, revisions


def object_lookup(objects: list[dict]) -> Callable[[Any, str, str], dict]:
    """Lookup over raw manifest objects by resource, namespace and name.

    The resource's group/version must match the object's apiVersion and
    its plural name the lower-cased kind. Objects without a namespace
    live in DEFAULT_NAMESPACE.
    """
    def lookup(gvr: Any, namespace: str, name: str) -> dict:
        for obj in objects:
            meta = obj.get("metadata") or {}
            kind = str(obj.get("kind", "")).lower()
            if (
                obj.get("apiVersion") == gvr.api_version
                and gvr.resource in (kind, kind + "s")
                and meta.get("name") == name
                and (meta.get("namespace") or DEFAULT_NAMESPACE) == namespace
            ):
                return obj
        raise NotFoundError(gvr.resource, name, namespace)
    return lookup


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
class ManifestServingClient:
    """In-memory ServingClient over manifest objects.

    Objects without a namespace are placed in DEFAULT_NAMESPACE.
    """

    def __init__(
        self,
        services: list[Service] | None = None,
        revisions: list[Revision] | None = None,
        namespace: str | None = DEFAULT_NAMESPACE,
    ):
        self.namespace = namespace
        self._services: dict[tuple[str, str], Service] = {}
        self._revisions: list[Revision] = []
        for svc in services or []:
            svc.metadata.namespace = svc.metadata.namespace or DEFAULT_NAMESPACE
            self._services[(svc.namespace, svc.name)] = svc
        for rev in revisions or []:
            rev.metadata.namespace = rev.metadata.namespace or DEFAULT_NAMESPACE
            self._revisions.append(rev)

    @classmethod
    def from_files(
        cls,
        paths: Iterable[str | Path],
        namespace: str | None = DEFAULT_NAMESPACE,
    ) -> ManifestServingClient:
        services, revisions = load_manifests(paths)
        return cls(services, revisions, namespace)

    def for_namespace(self, namespace: str | None) -> ManifestServingClient:
        """Client over the same objects, scoped to another namespace."""
        scoped = ManifestServingClient(namespace=namespace)
        scoped._services = self._services
        scoped._revisions = self._revisions
        return scoped

    def _in_scope(self, namespace: str) -> bool:
        return self.namespace is None or self.namespace == namespace

    def get_service(self, name: str) -> Service:
        """Copy of the named Service.

        Raises:
            NotFoundError: No such service in this namespace
        """
        for (ns, svc_name), svc in self._services.items():
            if svc_name == name and self._in_scope(ns):
                return copy.deepcopy(svc)
        raise NotFoundError("service", name, self.namespace)

    def create_service(self, service: Service) -> None:
        """Raises ConflictError if the service already exists."""
        service.metadata.namespace = (
            service.metadata.namespace or self.namespace or DEFAULT_NAMESPACE
        )
        key = (service.namespace, service.name)
        if key in self._services:
            raise ConflictError("service", service.name, service.namespace)
        self._services[key] = copy.deepcopy(service)

    def update_service(self, service: Service) -> None:
        """Raises NotFoundError if the service does not exist."""
        namespace = service.metadata.namespace or self.namespace or DEFAULT_NAMESPACE
        key = (namespace, service.name)
        if key not in self._services:
            raise NotFoundError("service", service.name, namespace)
        self._services[key] = copy.deepcopy(service)

    def list_revisions(self, *filters: RevisionFilter) -> RevisionList:
        """Copies of all revisions in scope that pass every filter."""
        items = [
            copy.deepcopy(rev)
            for rev in self._revisions
            if self._in_scope(rev.namespace) and all(f(rev) for f in filters)
        ]
        return RevisionList(items=items)

    def get_revision(self, name: str) -> Revision:
        """Raises NotFoundError if there is no such revision."""
        for rev in self._revisions:
            if rev.name == name and self._in_scope(rev.namespace):
                return copy.deepcopy(rev)
        raise NotFoundError("revision", name, self.namespace)


def service_getter(
    factory: Callable[[str | None], ServingClient],
) -> Callable[[str, str], Service]:
    """Build a (namespace, name) -> Service lookup from a client factory.

    Clients are created once per namespace.
    """
    clients: dict[str, ServingClient] = {}

    def get(namespace: str, name: str) -> Service:
        client = clients.get(namespace)
        if client is None:
            client = factory(namespace)
            clients[namespace] = client
        return client.get_service(name)

    return get
