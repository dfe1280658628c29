# src/mixsched/cluster/cache.py
"""
Cluster State Cache: the single read path the admission engine uses for
live pods, nodes and namespaces.

Until the background sync has listed every resource kind once, reads go
straight to the API server. Once the readiness gate opens, reads are served
from the in-memory snapshot only.
"""

import asyncio
import logging
from typing import List, Mapping, Optional

from kubernetes_asyncio import client

from ..core.exceptions import ClusterCacheError
from ..models.cluster import NamespaceState, NodeState, PodState
from .gate import ReadinessGate
from .readers import ApiReader, ClusterReader, SnapshotReader
from .snapshot import ClusterSnapshot, ResourceKind
from .sync import ResourceSync

logger = logging.getLogger(__name__)


class ClusterStateCache:
    """
    Dual-mode cache over pods, nodes and namespaces.

    Read failures in direct mode are logged and reported as "no data"
    (None or an empty list); they never propagate to the caller.
    """

    def __init__(
        self,
        api: Optional[client.CoreV1Api] = None,
        snapshot: Optional[ClusterSnapshot] = None,
        gate: Optional[ReadinessGate] = None,
        watch_timeout_seconds: int = 300,
        retry_backoff_seconds: float = 5.0,
    ):
        self.snapshot = snapshot if snapshot is not None else ClusterSnapshot()
        self.gate = gate if gate is not None else ReadinessGate()
        self._snapshot_reader = SnapshotReader(self.snapshot)
        self._api_reader = ApiReader(api) if api is not None else None
        self._tasks: List[asyncio.Task] = []
        self._syncs: List[ResourceSync] = []

        if api is not None:
            self._syncs = [
                ResourceSync(
                    ResourceKind.PODS,
                    api.list_pod_for_all_namespaces,
                    PodState.from_k8s,
                    self.snapshot,
                    watch_timeout_seconds,
                    retry_backoff_seconds,
                ),
                ResourceSync(
                    ResourceKind.NODES,
                    api.list_node,
                    NodeState.from_k8s,
                    self.snapshot,
                    watch_timeout_seconds,
                    retry_backoff_seconds,
                ),
                ResourceSync(
                    ResourceKind.NAMESPACES,
                    api.list_namespace,
                    NamespaceState.from_k8s,
                    self.snapshot,
                    watch_timeout_seconds,
                    retry_backoff_seconds,
                ),
            ]

    @property
    def is_synced(self) -> bool:
        return self.gate.is_open()

    @property
    def reader(self) -> ClusterReader:
        """The read path for this call: the snapshot once synced, the API before."""
        if self.gate.is_open() or self._api_reader is None:
            return self._snapshot_reader
        return self._api_reader

    def start(self) -> None:
        """Starts one background sync task per resource kind. Calling it twice is a no-op."""
        if self._tasks:
            return
        for sync in self._syncs:
            self._tasks.append(asyncio.create_task(sync.run(), name=f"sync-{sync.kind.value}"))
        logger.info("Started cluster cache sync for %d resource kinds.", len(self._tasks))

    async def wait_for_sync(self) -> None:
        """Blocks until every resource kind has been listed once, then opens the readiness gate."""
        self.start()
        await asyncio.gather(*(sync.synced.wait() for sync in self._syncs))
        self.gate.open()
        logger.info(
            "Cluster cache synced: %d pods, %d nodes, %d namespaces.",
            self.snapshot.count(ResourceKind.PODS),
            self.snapshot.count(ResourceKind.NODES),
            self.snapshot.count(ResourceKind.NAMESPACES),
        )

    async def stop(self) -> None:
        """Cancels all sync tasks."""
        logger.info("Stopping cluster cache sync...")
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def get_namespace(self, name: str) -> Optional[NamespaceState]:
        try:
            return await self.reader.get_namespace(name)
        except ClusterCacheError as e:
            logger.error("Cluster read failed, treating as no data: %s", e)
            return None

    async def list_pods(self, namespace: str, selector: Optional[Mapping[str, str]] = None) -> List[PodState]:
        try:
            return await self.reader.list_pods(namespace, selector)
        except ClusterCacheError as e:
            logger.error("Cluster read failed, treating as no data: %s", e)
            return []

    async def get_node(self, name: str) -> Optional[NodeState]:
        try:
            return await self.reader.get_node(name)
        except ClusterCacheError as e:
            logger.error("Cluster read failed, treating as no data: %s", e)
            return None

    async def list_nodes(self, selector: Optional[Mapping[str, str]] = None) -> List[NodeState]:
        try:
            return await self.reader.list_nodes(selector)
        except ClusterCacheError as e:
            logger.error("Cluster read failed, treating as no data: %s", e)
            return []
