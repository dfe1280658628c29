# src/mixsched/placement/decision.py
"""
Placement decisions for admitted workloads.

Templates (Deployments, StatefulSets) always receive capacity preferences
and a spread term. Bare pods are decided against live cluster state: a new
pod is pinned to on-demand capacity until the on-demand floor of its replica
set is met, and deleting a pod is vetoed when it would leave the workload
without its guaranteed floor while spot capacity cannot cover for it.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Set

from pydantic import BaseModel, ConfigDict

from ..cluster.cache import ClusterStateCache
from ..core.exceptions import PlacementVetoError
from ..models.capacity import CAPACITY_LABEL_KEY, CapacityClass
from ..models.policy import EffectivePolicy, WebhookSettings
from ..models.workload import WorkloadView
from .affinity import (
    anti_affinity_preferences,
    capacity_preference,
    fill_affinity,
    node_preferences,
    spread_preference,
)

logger = logging.getLogger(__name__)


class PlacementDelta(BaseModel):
    """New values for the pod-spec fields a decision touches. None means untouched."""

    model_config = ConfigDict(frozen=True)

    affinity: Optional[Dict[str, Any]] = None
    node_selector: Optional[Dict[str, str]] = None


class PlacementEngine:
    """Turns a workload view and its effective policy into a PlacementDelta."""

    def __init__(self, cache: ClusterStateCache, settings: WebhookSettings):
        self.cache = cache
        self.settings = settings

    def for_template(self, view: WorkloadView, policy: EffectivePolicy) -> PlacementDelta:
        """
        Appends spot and on-demand node preferences plus a node-spread term to
        the template's affinity. Existing entries are kept; admitting the same
        object again appends a second set.
        """
        affinity = fill_affinity(view.affinity)

        preferences = node_preferences(affinity)
        for capacity, weight in (
            (CapacityClass.SPOT, policy.spot_weight),
            (CapacityClass.ON_DEMAND, policy.on_demand_weight),
        ):
            if weight == 0:
                # The API server rejects zero-weight preferences.
                logger.debug("Weight for %s is 0; no preference added.", capacity.value)
                continue
            preferences.append(capacity_preference(capacity, weight))

        anti_affinity_preferences(affinity).append(
            spread_preference(view.selector, self.settings.anti_affinity_weight, self.settings.topology_key)
        )
        return PlacementDelta(affinity=affinity)

    async def for_pod_create(self, view: WorkloadView) -> Optional[PlacementDelta]:
        """
        Pins the pod to on-demand nodes while its replica set has fewer ready
        on-demand replicas than the floor. Returns None when no change is needed.
        """
        selector = view.match_labels
        if not selector:
            logger.info("Pod %s/%s has no labels; no replica set to balance.", view.namespace, view.name)
            return None

        on_demand = await self.count_ready(CapacityClass.ON_DEMAND, view.namespace, selector)
        if on_demand >= self.settings.on_demand_floor:
            logger.debug(
                "On-demand floor met for %s (%d >= %d); leaving placement to the scheduler.",
                selector,
                on_demand,
                self.settings.on_demand_floor,
            )
            return None

        logger.info(
            "On-demand floor not met for %s (%d < %d); pinning pod to on-demand nodes.",
            selector,
            on_demand,
            self.settings.on_demand_floor,
        )
        node_selector = dict(view.node_selector or {})
        node_selector[CAPACITY_LABEL_KEY] = CapacityClass.ON_DEMAND.value

        affinity = fill_affinity(view.affinity)
        anti_affinity_preferences(affinity).append(
            spread_preference(view.selector, self.settings.anti_affinity_weight, self.settings.topology_key)
        )
        return PlacementDelta(affinity=affinity, node_selector=node_selector)

    async def check_pod_delete(self, view: WorkloadView) -> None:
        """
        Vetoes the deletion of a ready on-demand pod when the ready on-demand
        replicas left behind fall below the floor and the ready spot replicas
        are below theirs too. Removing a pod that is not ready changes no
        floor count and is always allowed.

        Raises:
            PlacementVetoError: If the deletion must be rejected.
        """
        if not view.node_name:
            return

        node = await self.cache.get_node(view.node_name)
        if node is None or node.capacity_class is not CapacityClass.ON_DEMAND:
            return

        selector = view.match_labels
        if not selector:
            return

        on_demand = await self.ready_replicas(CapacityClass.ON_DEMAND, view.namespace, selector)
        if view.name not in on_demand:
            logger.debug("Pod %s/%s is not a ready on-demand replica; deletion allowed.", view.namespace, view.name)
            return

        remaining = len(on_demand) - 1
        if remaining >= self.settings.on_demand_floor:
            return

        spot = await self.count_ready(CapacityClass.SPOT, view.namespace, selector)
        if spot >= self.settings.spot_floor:
            return

        raise PlacementVetoError(
            f"deleting pod {view.namespace}/{view.name} would leave {remaining} ready on-demand replica(s) "
            f"(floor {self.settings.on_demand_floor}) with only {spot} ready spot replica(s) "
            f"(floor {self.settings.spot_floor})"
        )

    async def count_ready(self, capacity: CapacityClass, namespace: str, selector: Mapping[str, str]) -> int:
        """Number of ready pods matching selector on nodes of a capacity class."""
        return len(await self.ready_replicas(capacity, namespace, selector))

    async def ready_replicas(self, capacity: CapacityClass, namespace: str, selector: Mapping[str, str]) -> Set[str]:
        """
        Names of the ready pods matching selector that are bound to nodes of
        a capacity class. A class without nodes has no replicas.
        """
        nodes = await self.cache.list_nodes({CAPACITY_LABEL_KEY: capacity.value})
        if not nodes:
            logger.info("No %s nodes in the cluster.", capacity.value)
            return set()
        node_names = {node.name for node in nodes}

        pods = await self.cache.list_pods(namespace, selector)
        return {pod.name for pod in pods if pod.ready and pod.node_name in node_names}
