# src/mixsched/models/capacity.py

from enum import Enum
from typing import Mapping, Optional

# Node label carrying the capacity class of a node.
CAPACITY_LABEL_KEY = "node.kubernetes.io/capacity"

# Topology key used to spread replicas across distinct nodes.
HOSTNAME_TOPOLOGY_KEY = "kubernetes.io/hostname"


class CapacityClass(str, Enum):
    """Capacity class a node belongs to, as declared by CAPACITY_LABEL_KEY."""

    SPOT = "spot"
    ON_DEMAND = "on-demand"

    @classmethod
    def of_labels(cls, labels: Optional[Mapping[str, str]]) -> Optional["CapacityClass"]:
        """Returns the class named by the node labels, or None for unlabeled nodes."""
        value = (labels or {}).get(CAPACITY_LABEL_KEY)
        try:
            return cls(value)
        except ValueError:
            return None
