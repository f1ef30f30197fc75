"""
knc.flags.reference — Resource references given on the command line.

Accepted forms:

    Deployment:apps/v1:web             kind, group/version, name
    Deployment:apps/v1:app=web,tier=fe kind, group/version, label selector
    ksvc:echo                          alias from the alias table, name
    ksvc:app=echo                      alias, label selector

A tail containing "=" is a label selector. Aliases are only consulted
for the two-part form, so the explicit form always wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from knc.errors import ValidationError


@dataclass(frozen=True)
class GroupVersionKind:
    group: str
    version: str
    kind: str
    resource: str = ""

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


# Short names every user gets; config entries are merged over these
BUILTIN_ALIASES: dict[str, GroupVersionKind] = {
    "kservice": GroupVersionKind("serving.knative.dev", "v1", "Service", "services"),
    "ksvc": GroupVersionKind("serving.knative.dev", "v1", "Service", "services"),
    "service": GroupVersionKind("", "v1", "Service", "services"),
    "svc": GroupVersionKind("", "v1", "Service", "services"),
    "broker": GroupVersionKind("eventing.knative.dev", "v1", "Broker", "brokers"),
    "channel": GroupVersionKind("messaging.knative.dev", "v1", "Channel", "channels"),
    "imc": GroupVersionKind("messaging.knative.dev", "v1", "InMemoryChannel", "inmemorychannels"),
}


@dataclass
class ResourceReference:
    """A parsed reference: exactly one of name and label_selector is set."""
    kind: str
    api_group: str
    api_version: str
    name: str = ""
    label_selector: dict[str, str] = field(default_factory=dict)
    namespace: str = ""

    @property
    def group_version(self) -> str:
        return f"{self.api_group}/{self.api_version}" if self.api_group else self.api_version

    def to_dict(self) -> dict:
        d: dict = {"apiVersion": self.group_version, "kind": self.kind}
        if self.namespace:
            d["namespace"] = self.namespace
        if self.label_selector:
            d["selector"] = {"matchLabels": dict(self.label_selector)}
        else:
            d["name"] = self.name
        return d


def parse_group_version(text: str) -> tuple[str, str]:
    """Split "group/version" ("v1" is the core group).

    >>> parse_group_version("apps/v1")
    ('apps', 'v1')
    >>> parse_group_version("v1")
    ('', 'v1')
    """
    if not text:
        return "", ""
    parts = text.split("/")
    if len(parts) == 1:
        return "", parts[0]
    if len(parts) == 2 and parts[0] and parts[1]:
        return parts[0], parts[1]
    raise ValidationError(f"unexpected GroupVersion string: {text}")


def parse_label_selector(text: str, reference: str) -> dict[str, str]:
    """Parse "k1=v1,k2=v2"; a bare token or empty key is rejected."""
    selector: dict[str, str] = {}
    for pair in text.split(","):
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValidationError(
                f"invalid label selector '{text}' for reference {reference}. "
                f"format: key1=value,key2=value"
            )
        selector[key] = value
    return selector


def _reference_for(
    gvk_kind: str,
    group: str,
    version: str,
    tail: str,
    reference: str,
    namespace: str,
) -> ResourceReference:
    ref = ResourceReference(kind=gvk_kind, api_group=group, api_version=version, namespace=namespace)
    if "=" in tail:
        ref.label_selector = parse_label_selector(tail, reference)
    elif tail:
        ref.name = tail
    else:
        raise ValidationError(f"invalid reference '{reference}': name or selector is empty")
    return ref


def parse_reference(
    text: str,
    namespace: str = "",
    aliases: dict[str, GroupVersionKind] | None = None,
) -> ResourceReference:
    """Parse a kind:group/version:nameOrSelector (or alias:nameOrSelector) reference.

    Args:
        text: The reference as given by the user
        namespace: Namespace to put on the reference ("" leaves it unset)
        aliases: Alias table, BUILTIN_ALIASES when omitted

    Raises:
        ValidationError: Malformed reference, selector or unknown alias
    """
    aliases = BUILTIN_ALIASES if aliases is None else aliases
    parts = text.split(":", 2)

    if len(parts) == 3:
        kind, group_version, tail = parts
        if not kind:
            raise ValidationError(
                f"invalid reference '{text}': not in format kind:api/version:nameOrSelector"
            )
        group, version = parse_group_version(group_version)
        if not version:
            raise ValidationError(
                f"invalid reference '{text}': not in format kind:api/version:nameOrSelector"
            )
        return _reference_for(kind, group, version, tail, text, namespace)

    if len(parts) == 2:
        alias, tail = parts
        gvk = aliases.get(alias)
        if gvk is None:
            raise ValidationError(f"unknown kind alias '{alias}' in reference '{text}'")
        return _reference_for(gvk.kind, gvk.group, gvk.version, tail, text, namespace)

    raise ValidationError(
        f"invalid reference '{text}': not in format kind:api/version:nameOrSelector"
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# API SERVER SOURCE RESOURCES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@dataclass
class ApiServerResource:
    kind: str
    api_version: str
    controller: bool = False


_TRUE = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE = {"0", "f", "F", "false", "FALSE", "False"}


def parse_apiserver_resource(text: str) -> ApiServerResource:
    """Parse "Kind:APIVersion[:isController]", e.g. "Event:v1:true"."""
    expected = "(expected: <Kind:ApiVersion[:controllerFlag]>)"
    parts = text.split(":", 2)
    if not parts[0]:
        raise ValidationError(f"cannot find 'Kind' part in resource specification {text} {expected}")
    if len(parts) < 2 or not parts[1]:
        raise ValidationError(
            f"cannot find 'APIVersion' part in resource specification {text} {expected}"
        )

    controller = False
    if len(parts) == 3 and parts[2]:
        if parts[2] in _TRUE:
            controller = True
        elif parts[2] not in _FALSE:
            raise ValidationError(
                f"controller flag is not a boolean in resource specification {text} {expected}"
            )
    return ApiServerResource(kind=parts[0], api_version=parts[1], controller=controller)
