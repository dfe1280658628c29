# src/mixsched/cluster/readers.py
"""
Interchangeable read paths over cluster state.

ApiReader queries the Kubernetes API directly and is always current.
SnapshotReader answers from the in-memory ClusterSnapshot. The cache picks
one of them per call; callers only ever see the ClusterReader interface.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from kubernetes_asyncio import client
from kubernetes_asyncio.client.rest import ApiException

from ..core.exceptions import ClusterCacheError
from ..models.cluster import NamespaceState, NodeState, PodState
from ..utils.label_selectors import format_selector
from .snapshot import ClusterSnapshot

logger = logging.getLogger(__name__)


class ClusterReader(ABC):
    """
    Abstract read interface over pods, nodes and namespaces.
    A missing object is reported as None; a failed read raises ClusterCacheError.
    """

    @abstractmethod
    async def get_namespace(self, name: str) -> Optional[NamespaceState]:
        pass

    @abstractmethod
    async def list_pods(self, namespace: str, selector: Optional[Mapping[str, str]] = None) -> List[PodState]:
        pass

    @abstractmethod
    async def get_node(self, name: str) -> Optional[NodeState]:
        pass

    @abstractmethod
    async def list_nodes(self, selector: Optional[Mapping[str, str]] = None) -> List[NodeState]:
        pass


class SnapshotReader(ClusterReader):
    """Reads from the in-memory snapshot. Never blocks, never fails."""

    def __init__(self, snapshot: ClusterSnapshot):
        self.snapshot = snapshot

    async def get_namespace(self, name: str) -> Optional[NamespaceState]:
        return self.snapshot.get_namespace(name)

    async def list_pods(self, namespace: str, selector: Optional[Mapping[str, str]] = None) -> List[PodState]:
        return self.snapshot.list_pods(namespace, selector)

    async def get_node(self, name: str) -> Optional[NodeState]:
        return self.snapshot.get_node(name)

    async def list_nodes(self, selector: Optional[Mapping[str, str]] = None) -> List[NodeState]:
        return self.snapshot.list_nodes(selector)


class ApiReader(ClusterReader):
    """Reads directly from the Kubernetes API server."""

    def __init__(self, api: client.CoreV1Api):
        self.api = api

    async def get_namespace(self, name: str) -> Optional[NamespaceState]:
        try:
            namespace = await self.api.read_namespace(name)
        except ApiException as e:
            if e.status == 404:
                return None
            raise ClusterCacheError(f"get namespace '{name}': {e.reason}") from e
        except Exception as e:
            raise ClusterCacheError(f"get namespace '{name}': {e}") from e
        return NamespaceState.from_k8s(namespace)

    async def list_pods(self, namespace: str, selector: Optional[Mapping[str, str]] = None) -> List[PodState]:
        try:
            pods = await self.api.list_namespaced_pod(namespace, label_selector=format_selector(selector))
        except ApiException as e:
            raise ClusterCacheError(f"list pods in '{namespace}': {e.reason}") from e
        except Exception as e:
            raise ClusterCacheError(f"list pods in '{namespace}': {e}") from e
        return [PodState.from_k8s(pod) for pod in pods.items or []]

    async def get_node(self, name: str) -> Optional[NodeState]:
        try:
            node = await self.api.read_node(name)
        except ApiException as e:
            if e.status == 404:
                return None
            raise ClusterCacheError(f"get node '{name}': {e.reason}") from e
        except Exception as e:
            raise ClusterCacheError(f"get node '{name}': {e}") from e
        return NodeState.from_k8s(node)

    async def list_nodes(self, selector: Optional[Mapping[str, str]] = None) -> List[NodeState]:
        try:
            nodes = await self.api.list_node(label_selector=format_selector(selector))
        except ApiException as e:
            raise ClusterCacheError(f"list nodes: {e.reason}") from e
        except Exception as e:
            raise ClusterCacheError(f"list nodes: {e}") from e
        return [NodeState.from_k8s(node) for node in nodes.items or []]
