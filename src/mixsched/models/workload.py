# src/mixsched/models/workload.py
"""
Normalized view of an admitted workload object.

Deployments, StatefulSets and bare Pods carry their placement constraints at
different depths of the document. WorkloadView flattens the fields the
engine needs and remembers where the pod spec lives so patches can target it.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.exceptions import DecodeError

# Labels controllers stamp on individual replicas. They differ between
# siblings, so they are left out of the selector derived from a pod.
POD_IDENTITY_LABEL_KEYS = frozenset(
    {
        "pod-template-hash",
        "controller-revision-hash",
        "statefulset.kubernetes.io/pod-name",
        "apps.kubernetes.io/pod-index",
    }
)


class WorkloadKind(str, Enum):
    """Object kinds the webhook knows how to mutate."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    POD = "Pod"

    @property
    def is_template(self) -> bool:
        return self is not WorkloadKind.POD

    @property
    def pod_spec_path(self) -> str:
        return "/spec" if self is WorkloadKind.POD else "/spec/template/spec"


class WorkloadView(BaseModel):
    """
    Projection of a Deployment, StatefulSet or Pod.

    Attributes:
        kind: Kind of the admitted object
        name: Object name (may be empty for pods created via generateName)
        namespace: Object namespace
        labels: Labels of the object itself
        selector: Label selector identifying the managed replicas
        node_selector: Node selector of the pod spec, None when absent
        affinity: Affinity of the pod spec, None when absent
        node_name: Node the pod is bound to (pods only)
    """

    model_config = ConfigDict(frozen=True)

    kind: WorkloadKind
    name: str = ""
    namespace: str
    labels: Dict[str, str] = Field(default_factory=dict)
    selector: Dict[str, Any] = Field(default_factory=dict)
    node_selector: Optional[Dict[str, str]] = None
    affinity: Optional[Dict[str, Any]] = None
    node_name: Optional[str] = None

    @property
    def pod_spec_path(self) -> str:
        return self.kind.pod_spec_path

    @property
    def match_labels(self) -> Dict[str, str]:
        """Equality part of the selector, used to look up sibling replicas."""
        return dict(self.selector.get("matchLabels") or {})

    @classmethod
    def from_object(cls, kind: WorkloadKind, obj: Any, namespace: str = "") -> "WorkloadView":
        """
        Builds a view from the decoded JSON of an admitted object.

        Args:
            kind: Kind declared by the admission request.
            obj: Decoded object document.
            namespace: Request namespace, used when the object omits it.

        Raises:
            DecodeError: If the document does not have the expected shape.
        """
        if not isinstance(obj, dict):
            raise DecodeError(f"{kind.value} object must be a JSON object")

        metadata = _mapping(obj, "metadata", kind)
        spec = _mapping(obj, "spec", kind)

        if kind.is_template:
            selector = spec.get("selector")
            if not isinstance(selector, dict):
                raise DecodeError(f"{kind.value} spec.selector is missing or invalid")
            pod_spec = _mapping(_mapping(spec, "template", kind), "spec", kind)
        else:
            selector = {"matchLabels": _replica_labels(metadata.get("labels"))}
            pod_spec = spec

        try:
            return cls(
                kind=kind,
                name=metadata.get("name") or "",
                namespace=metadata.get("namespace") or namespace,
                labels=metadata.get("labels") or {},
                selector=selector,
                node_selector=pod_spec.get("nodeSelector"),
                affinity=pod_spec.get("affinity"),
                node_name=pod_spec.get("nodeName") or None,
            )
        except ValidationError as e:
            raise DecodeError(f"decode {kind.value}: {e}") from e


def _replica_labels(labels: Any) -> Any:
    """Drops per-replica identity labels so the selector matches every sibling."""
    if not isinstance(labels, dict):
        return labels or {}
    return {k: v for k, v in labels.items() if k not in POD_IDENTITY_LABEL_KEYS}


def _mapping(document: Dict[str, Any], key: str, kind: WorkloadKind) -> Dict[str, Any]:
    """Returns document[key] as a dict, treating null as empty."""
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"{kind.value} field '{key}' must be an object")
    return value
