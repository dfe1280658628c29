# src/mixsched/cluster/snapshot.py
"""
In-memory state of the pods, nodes and namespaces of the cluster.

The snapshot has a single writer (the background sync tasks) and any number
of readers (admission requests). Every method completes without awaiting, so
on the event loop a reader always sees the state before or after a write,
never in between.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Set

from ..models.capacity import CAPACITY_LABEL_KEY
from ..models.cluster import NamespaceState, NodeState, PodState
from ..utils.label_selectors import selector_matches

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    PODS = "pods"
    NODES = "nodes"
    NAMESPACES = "namespaces"


class WatchEventType(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class ClusterSnapshot:
    """Pods, nodes and namespaces keyed by name, with a capacity-label index over nodes."""

    def __init__(self, capacity_label_key: str = CAPACITY_LABEL_KEY):
        self.capacity_label_key = capacity_label_key
        self._pods: Dict[str, Dict[str, PodState]] = {}
        self._nodes: Dict[str, NodeState] = {}
        self._namespaces: Dict[str, NamespaceState] = {}
        self._nodes_by_capacity: Dict[str, Set[str]] = {}

    # --- Writer API ---

    def replace(self, kind: ResourceKind, items: Iterable) -> None:
        """Replaces every object of a kind, as after a full list."""
        if kind is ResourceKind.PODS:
            pods: Dict[str, Dict[str, PodState]] = {}
            for pod in items:
                pods.setdefault(pod.namespace, {})[pod.name] = pod
            self._pods = pods
        elif kind is ResourceKind.NODES:
            nodes = {node.name: node for node in items}
            index: Dict[str, Set[str]] = {}
            for node in nodes.values():
                value = node.labels.get(self.capacity_label_key)
                if value is not None:
                    index.setdefault(value, set()).add(node.name)
            self._nodes = nodes
            self._nodes_by_capacity = index
        else:
            self._namespaces = {ns.name: ns for ns in items}
        logger.debug("Snapshot replaced %d %s.", self.count(kind), kind.value)

    def apply(self, kind: ResourceKind, event_type: WatchEventType, item) -> None:
        """Applies one watch event."""
        deleted = event_type is WatchEventType.DELETED
        if kind is ResourceKind.PODS:
            if deleted:
                self._remove_pod(item)
            else:
                self._pods.setdefault(item.namespace, {})[item.name] = item
        elif kind is ResourceKind.NODES:
            self._unindex_node(item.name)
            if deleted:
                self._nodes.pop(item.name, None)
            else:
                self._nodes[item.name] = item
                self._index_node(item)
        elif deleted:
            self._namespaces.pop(item.name, None)
        else:
            self._namespaces[item.name] = item

    def _remove_pod(self, pod: PodState) -> None:
        in_namespace = self._pods.get(pod.namespace)
        if not in_namespace:
            return
        in_namespace.pop(pod.name, None)
        if not in_namespace:
            del self._pods[pod.namespace]

    def _index_node(self, node: NodeState) -> None:
        value = node.labels.get(self.capacity_label_key)
        if value is not None:
            self._nodes_by_capacity.setdefault(value, set()).add(node.name)

    def _unindex_node(self, name: str) -> None:
        previous = self._nodes.get(name)
        if previous is None:
            return
        value = previous.labels.get(self.capacity_label_key)
        members = self._nodes_by_capacity.get(value)
        if members is not None:
            members.discard(name)
            if not members:
                del self._nodes_by_capacity[value]

    # --- Reader API ---

    def get_namespace(self, name: str) -> Optional[NamespaceState]:
        return self._namespaces.get(name)

    def list_pods(self, namespace: str, selector: Optional[Mapping[str, str]] = None) -> List[PodState]:
        pods = self._pods.get(namespace, {})
        return [pod for pod in pods.values() if selector_matches(selector, pod.labels)]

    def get_node(self, name: str) -> Optional[NodeState]:
        return self._nodes.get(name)

    def list_nodes(self, selector: Optional[Mapping[str, str]] = None) -> List[NodeState]:
        if selector and set(selector) == {self.capacity_label_key}:
            names = self._nodes_by_capacity.get(selector[self.capacity_label_key], ())
            return [self._nodes[name] for name in sorted(names) if name in self._nodes]
        return [node for node in self._nodes.values() if selector_matches(selector, node.labels)]

    def count(self, kind: ResourceKind) -> int:
        if kind is ResourceKind.PODS:
            return sum(len(pods) for pods in self._pods.values())
        if kind is ResourceKind.NODES:
            return len(self._nodes)
        return len(self._namespaces)
