"""
knc.serving.model — Serving objects the client works with.

Services, Revisions and their traffic blocks, converted from and to
the platform's wire shape (plain dicts, as read from YAML/JSON):

    apiVersion: serving.knative.dev/v1
    kind: Service
    metadata:
      name: echo
      namespace: default
    spec:
      template: {...}
      traffic:
        - latestRevision: true
          percent: 100

Traffic targets are modelled as two variants: LatestTarget follows the
latest ready revision, RevisionTarget pins a named revision. Only the
wire form carries both `revisionName` and `latestRevision`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

API_VERSION = "serving.knative.dev/v1"

SERVICE_LABEL_KEY = "serving.knative.dev/service"
CONFIGURATION_GENERATION_LABEL_KEY = "serving.knative.dev/configurationGeneration"

USER_IMAGE_ANNOTATION_KEY = "client.knative.dev/user-image"
REVISION_TRAFFIC_ANNOTATION_KEY = "client.knative.dev/traffic"
REVISION_TAGS_ANNOTATION_KEY = "client.knative.dev/tags"

MIN_SCALE_ANNOTATION_KEY = "autoscaling.knative.dev/min-scale"
MAX_SCALE_ANNOTATION_KEY = "autoscaling.knative.dev/max-scale"
INITIAL_SCALE_ANNOTATION_KEY = "autoscaling.knative.dev/initial-scale"
TARGET_ANNOTATION_KEY = "autoscaling.knative.dev/target"
WINDOW_ANNOTATION_KEY = "autoscaling.knative.dev/window"

# Older releases wrote camelCase scale keys
LEGACY_MIN_SCALE_ANNOTATION_KEY = "autoscaling.knative.dev/minScale"
LEGACY_MAX_SCALE_ANNOTATION_KEY = "autoscaling.knative.dev/maxScale"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMESTAMPS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def parse_time(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp ("2020-01-02T03:04:05Z")."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# METADATA & CONDITIONS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    creation_timestamp: datetime | None = None
    generation: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ObjectMeta:
        data = data or {}
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace", ""),
            labels=dict(data.get("labels") or {}),
            annotations=dict(data.get("annotations") or {}),
            creation_timestamp=parse_time(data.get("creationTimestamp")),
            generation=int(data.get("generation", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name}
        if self.namespace:
            d["namespace"] = self.namespace
        if self.labels:
            d["labels"] = dict(self.labels)
        if self.annotations:
            d["annotations"] = dict(self.annotations)
        if self.creation_timestamp is not None:
            d["creationTimestamp"] = format_time(self.creation_timestamp)
        if self.generation:
            d["generation"] = self.generation
        return d


@dataclass
class Condition:
    type: str
    status: str = "Unknown"
    severity: str = ""
    reason: str = ""
    message: str = ""
    last_transition_time: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        return cls(
            type=data.get("type", ""),
            status=data.get("status", "Unknown"),
            severity=data.get("severity", ""),
            reason=data.get("reason", ""),
            message=data.get("message", ""),
            last_transition_time=parse_time(data.get("lastTransitionTime")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type, "status": self.status}
        if self.severity:
            d["severity"] = self.severity
        if self.reason:
            d["reason"] = self.reason
        if self.message:
            d["message"] = self.message
        if self.last_transition_time is not None:
            d["lastTransitionTime"] = format_time(self.last_transition_time)
        return d


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CONTAINER
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@dataclass
class EnvVarSource:
    """Where an env value comes from.

    kind is "ConfigMap" or "Secret" for key references; any other
    source (fieldRef, resourceFieldRef) is kept verbatim in raw.
    """
    kind: str
    name: str = ""
    key: str = ""
    raw: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnvVarSource:
        if "configMapKeyRef" in data:
            ref = data["configMapKeyRef"] or {}
            return cls("ConfigMap", ref.get("name", ""), ref.get("key", ""))
        if "secretKeyRef" in data:
            ref = data["secretKeyRef"] or {}
            return cls("Secret", ref.get("name", ""), ref.get("key", ""))
        kind = next(iter(data), "unknown")
        return cls(kind, raw=dict(data))

    def to_dict(self) -> dict[str, Any]:
        if self.kind == "ConfigMap":
            return {"configMapKeyRef": {"name": self.name, "key": self.key}}
        if self.kind == "Secret":
            return {"secretKeyRef": {"name": self.name, "key": self.key}}
        return dict(self.raw or {})


@dataclass
class EnvVar:
    name: str
    value: str = ""
    value_from: EnvVarSource | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnvVar:
        value_from = data.get("valueFrom")
        return cls(
            name=data.get("name", ""),
            value=str(data.get("value", "") or ""),
            value_from=EnvVarSource.from_dict(value_from) if value_from else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name}
        if self.value_from is not None:
            d["valueFrom"] = self.value_from.to_dict()
        else:
            d["value"] = self.value
        return d


@dataclass
class EnvFromSource:
    kind: str  # "ConfigMap" or "Secret"
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnvFromSource:
        if "configMapRef" in data:
            return cls("ConfigMap", (data["configMapRef"] or {}).get("name", ""))
        if "secretRef" in data:
            return cls("Secret", (data["secretRef"] or {}).get("name", ""))
        raise ValueError(f"envFrom entry has neither configMapRef nor secretRef: {data}")

    def to_dict(self) -> dict[str, Any]:
        key = "configMapRef" if self.kind == "ConfigMap" else "secretRef"
        return {key: {"name": self.name}}


@dataclass
class ContainerPort:
    number: int
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"containerPort": self.number}
        if self.name:
            d["name"] = self.name
        return d


@dataclass
class ResourceRequirements:
    requests: dict[str, str] = field(default_factory=dict)
    limits: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.requests:
            d["requests"] = dict(self.requests)
        if self.limits:
            d["limits"] = dict(self.limits)
        return d


@dataclass
class Container:
    image: str = ""
    name: str = ""
    ports: list[ContainerPort] = field(default_factory=list)
    command: list[str] = field(default_factory=list)
    args: list[str] = field(default_factory=list)
    env: list[EnvVar] = field(default_factory=list)
    env_from: list[EnvFromSource] = field(default_factory=list)
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)
    user: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Container:
        resources = data.get("resources") or {}
        security = data.get("securityContext") or {}
        user = security.get("runAsUser")
        return cls(
            image=data.get("image", ""),
            name=data.get("name", ""),
            ports=[
                ContainerPort(int(p.get("containerPort", 0)), p.get("name", ""))
                for p in data.get("ports") or []
            ],
            command=list(data.get("command") or []),
            args=list(data.get("args") or []),
            env=[EnvVar.from_dict(e) for e in data.get("env") or []],
            env_from=[EnvFromSource.from_dict(e) for e in data.get("envFrom") or []],
            resources=ResourceRequirements(
                requests={k: str(v) for k, v in (resources.get("requests") or {}).items()},
                limits={k: str(v) for k, v in (resources.get("limits") or {}).items()},
            ),
            user=int(user) if user is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.name:
            d["name"] = self.name
        d["image"] = self.image
        if self.command:
            d["command"] = list(self.command)
        if self.args:
            d["args"] = list(self.args)
        if self.ports:
            d["ports"] = [p.to_dict() for p in self.ports]
        if self.env:
            d["env"] = [e.to_dict() for e in self.env]
        if self.env_from:
            d["envFrom"] = [e.to_dict() for e in self.env_from]
        resources = self.resources.to_dict()
        if resources:
            d["resources"] = resources
        if self.user is not None:
            d["securityContext"] = {"runAsUser": self.user}
        return d


@dataclass
class RevisionSpec:
    containers: list[Container] = field(default_factory=list)
    container_concurrency: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RevisionSpec:
        data = data or {}
        cc = data.get("containerConcurrency")
        return cls(
            containers=[Container.from_dict(c) for c in data.get("containers") or []],
            container_concurrency=int(cc) if cc is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"containers": [c.to_dict() for c in self.containers]}
        if self.container_concurrency is not None:
            d["containerConcurrency"] = self.container_concurrency
        return d


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRAFFIC TARGETS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@dataclass
class LatestTarget:
    """Traffic target following the latest ready revision.

    revision_name is only ever filled from an observed (status) traffic
    block, where the platform resolves the latest ready revision.
    """
    tag: str = ""
    percent: int | None = None
    revision_name: str = ""

    @property
    def latest_revision(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.tag:
            d["tag"] = self.tag
        if self.revision_name:
            d["revisionName"] = self.revision_name
        d["latestRevision"] = True
        if self.percent is not None:
            d["percent"] = self.percent
        return d


@dataclass
class RevisionTarget:
    """Traffic target pinned to a named revision."""
    revision_name: str
    tag: str = ""
    percent: int | None = None

    @property
    def latest_revision(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.tag:
            d["tag"] = self.tag
        d["revisionName"] = self.revision_name
        d["latestRevision"] = False
        if self.percent is not None:
            d["percent"] = self.percent
        return d


TrafficTarget = Union[LatestTarget, RevisionTarget]


def target_from_dict(data: dict[str, Any]) -> TrafficTarget:
    """Build a traffic target from its wire form."""
    percent = data.get("percent")
    percent = int(percent) if percent is not None else None
    tag = data.get("tag", "") or ""
    revision_name = data.get("revisionName", "") or ""
    if data.get("latestRevision") or not revision_name:
        return LatestTarget(tag=tag, percent=percent, revision_name=revision_name)
    return RevisionTarget(revision_name=revision_name, tag=tag, percent=percent)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REVISION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@dataclass
class RevisionStatus:
    image_digest: str = ""
    conditions: list[Condition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RevisionStatus:
        data = data or {}
        digest = data.get("imageDigest", "")
        if not digest:
            statuses = data.get("containerStatuses") or []
            if statuses:
                digest = statuses[0].get("imageDigest", "")
        return cls(
            image_digest=digest or "",
            conditions=[Condition.from_dict(c) for c in data.get("conditions") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.image_digest:
            d["imageDigest"] = self.image_digest
        if self.conditions:
            d["conditions"] = [c.to_dict() for c in self.conditions]
        return d


@dataclass
class Revision:
    metadata: ObjectMeta
    spec: RevisionSpec = field(default_factory=RevisionSpec)
    status: RevisionStatus = field(default_factory=RevisionStatus)

    kind = "Revision"

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.labels

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations

    @property
    def service_name(self) -> str:
        return self.metadata.labels.get(SERVICE_LABEL_KEY, "")

    @property
    def configuration_generation(self) -> str:
        return self.metadata.labels.get(CONFIGURATION_GENERATION_LABEL_KEY, "")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Revision:
        return cls(
            metadata=ObjectMeta.from_dict(data.get("metadata")),
            spec=RevisionSpec.from_dict(data.get("spec")),
            status=RevisionStatus.from_dict(data.get("status")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "apiVersion": API_VERSION,
            "kind": self.kind,
            "metadata": self.metadata.to_dict(),
            "spec": self.spec.to_dict(),
        }
        status = self.status.to_dict()
        if status:
            d["status"] = status
        return d


@dataclass
class RevisionList:
    items: list[Revision] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": API_VERSION,
            "kind": "RevisionList",
            "items": [r.to_dict() for r in self.items],
        }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SERVICE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@dataclass
class RevisionTemplate:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: RevisionSpec = field(default_factory=RevisionSpec)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RevisionTemplate:
        data = data or {}
        return cls(
            metadata=ObjectMeta.from_dict(data.get("metadata")),
            spec=RevisionSpec.from_dict(data.get("spec")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        meta = self.metadata.to_dict()
        if not meta.get("name"):
            meta.pop("name", None)
        if meta:
            d["metadata"] = meta
        d["spec"] = self.spec.to_dict()
        return d


@dataclass
class ServiceStatus:
    traffic: list[TrafficTarget] = field(default_factory=list)
    latest_ready_revision_name: str = ""
    latest_created_revision_name: str = ""
    url: str = ""
    conditions: list[Condition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ServiceStatus:
        data = data or {}
        return cls(
            traffic=[target_from_dict(t) for t in data.get("traffic") or []],
            latest_ready_revision_name=data.get("latestReadyRevisionName", ""),
            latest_created_revision_name=data.get("latestCreatedRevisionName", ""),
            url=data.get("url", ""),
            conditions=[Condition.from_dict(c) for c in data.get("conditions") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.url:
            d["url"] = self.url
        if self.latest_created_revision_name:
            d["latestCreatedRevisionName"] = self.latest_created_revision_name
        if self.latest_ready_revision_name:
            d["latestReadyRevisionName"] = self.latest_ready_revision_name
        if self.traffic:
            d["traffic"] = [t.to_dict() for t in self.traffic]
        if self.conditions:
            d["conditions"] = [c.to_dict() for c in self.conditions]
        return d


@dataclass
class Service:
    metadata: ObjectMeta
    template: RevisionTemplate = field(default_factory=RevisionTemplate)
    traffic: list[TrafficTarget] = field(default_factory=list)
    status: ServiceStatus = field(default_factory=ServiceStatus)

    kind = "Service"

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Service:
        spec = data.get("spec") or {}
        return cls(
            metadata=ObjectMeta.from_dict(data.get("metadata")),
            template=RevisionTemplate.from_dict(spec.get("template")),
            traffic=[target_from_dict(t) for t in spec.get("traffic") or []],
            status=ServiceStatus.from_dict(data.get("status")),
        )

    def to_dict(self) -> dict[str, Any]:
        spec: dict[str, Any] = {"template": self.template.to_dict()}
        if self.traffic:
            spec["traffic"] = [t.to_dict() for t in self.traffic]
        d: dict[str, Any] = {
            "apiVersion": API_VERSION,
            "kind": self.kind,
            "metadata": self.metadata.to_dict(),
            "spec": spec,
        }
        status = self.status.to_dict()
        if status:
            d["status"] = status
        return d


@dataclass
class ServiceList:
    items: list[Service] = field(default_factory=list)
