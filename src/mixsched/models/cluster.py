# src/mixsched/models/cluster.py
"""
Lightweight projections of the Kubernetes objects held by the cluster state
cache. Both cache modes (direct API reads and the in-memory snapshot) return
these models, so placement logic never handles raw client objects.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .capacity import CapacityClass

# Reason set on the Ready condition of a pod whose containers all succeeded.
POD_COMPLETED_REASON = "PodCompleted"


class NamespaceState(BaseModel):
    """A namespace and its labels."""

    model_config = ConfigDict(frozen=True)

    name: str
    labels: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_k8s(cls, namespace) -> "NamespaceState":
        return cls(name=namespace.metadata.name, labels=namespace.metadata.labels or {})


class NodeState(BaseModel):
    """A node and its labels."""

    model_config = ConfigDict(frozen=True)

    name: str
    labels: Dict[str, str] = Field(default_factory=dict)

    @property
    def capacity_class(self) -> Optional[CapacityClass]:
        return CapacityClass.of_labels(self.labels)

    @classmethod
    def from_k8s(cls, node) -> "NodeState":
        return cls(name=node.metadata.name, labels=node.metadata.labels or {})


class PodState(BaseModel):
    """
    A pod as seen by placement decisions.

    Attributes:
        name: Pod name
        namespace: Pod namespace
        labels: Pod labels
        node_name: Node the pod is bound to, None while unscheduled
        ready: True when the Ready condition is True or the pod completed
    """

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    labels: Dict[str, str] = Field(default_factory=dict)
    node_name: Optional[str] = None
    ready: bool = False

    @classmethod
    def from_k8s(cls, pod) -> "PodState":
        spec = getattr(pod, "spec", None)
        status = getattr(pod, "status", None)
        return cls(
            name=pod.metadata.name,
            namespace=pod.metadata.namespace,
            labels=pod.metadata.labels or {},
            node_name=getattr(spec, "node_name", None) or None,
            ready=pod_is_ready(status),
        )


def pod_is_ready(status) -> bool:
    """Returns True if the pod status reports Ready=True or a completed pod."""
    conditions = getattr(status, "conditions", None) or []
    for condition in conditions:
        if condition.type != "Ready":
            continue
        if condition.status == "True" or condition.reason == POD_COMPLETED_REASON:
            return True
    return False
