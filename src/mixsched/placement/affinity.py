# src/mixsched/placement/affinity.py
"""
Builders for the affinity structures written into pod specs.

All structures are plain JSON documents in the API's camelCase form, since
they are serialized straight into the admission patch.
"""

import copy
from typing import Any, Dict, Optional

from ..models.capacity import CAPACITY_LABEL_KEY, CapacityClass

PREFERRED = "preferredDuringSchedulingIgnoredDuringExecution"


def fill_affinity(existing: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Returns a copy of an affinity document whose node-affinity and
    pod-anti-affinity preference lists are guaranteed to exist.

    Any other content of the existing document (required terms, pod
    affinity, ...) is carried over untouched.
    """
    affinity = copy.deepcopy(existing) if existing else {}

    node_affinity = affinity.get("nodeAffinity") or {}
    node_affinity[PREFERRED] = list(node_affinity.get(PREFERRED) or [])
    affinity["nodeAffinity"] = node_affinity

    pod_anti_affinity = affinity.get("podAntiAffinity") or {}
    pod_anti_affinity[PREFERRED] = list(pod_anti_affinity.get(PREFERRED) or [])
    affinity["podAntiAffinity"] = pod_anti_affinity

    return affinity


def capacity_preference(capacity: CapacityClass, weight: int) -> Dict[str, Any]:
    """A preferred scheduling term steering pods towards nodes of a capacity class."""
    return {
        "weight": weight,
        "preference": {
            "matchExpressions": [
                {
                    "key": CAPACITY_LABEL_KEY,
                    "operator": "In",
                    "values": [capacity.value],
                }
            ]
        },
    }


def spread_preference(label_selector: Dict[str, Any], weight: int, topology_key: str) -> Dict[str, Any]:
    """A weighted pod anti-affinity term spreading matching pods across topology domains."""
    return {
        "weight": weight,
        "podAffinityTerm": {
            "labelSelector": copy.deepcopy(label_selector),
            "topologyKey": topology_key,
        },
    }


def node_preferences(affinity: Dict[str, Any]) -> list:
    return affinity["nodeAffinity"][PREFERRED]


def anti_affinity_preferences(affinity: Dict[str, Any]) -> list:
    return affinity["podAntiAffinity"][PREFERRED]
