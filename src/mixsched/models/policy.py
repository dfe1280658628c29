# src/mixsched/models/policy.py
"""
Pydantic models for the policy values the admission engine works with:
the process-wide defaults and the per-request effective policy.
"""

from typing import FrozenSet

from pydantic import BaseModel, ConfigDict, Field

from .capacity import HOSTNAME_TOPOLOGY_KEY

DEFAULT_EXCLUDED_NAMESPACES = frozenset({"kube-system", "mix-scheduler-system"})


class WebhookSettings(BaseModel):
    """
    Immutable process-level defaults, built once at startup and handed to
    every component that needs them.

    Attributes:
        enabled: Default value of the enable switch when no label sets it.
        excluded_namespaces: Namespaces that are never mutated.
        spot_weight: Default node-affinity weight for spot nodes.
        on_demand_weight: Default node-affinity weight for on-demand nodes.
        on_demand_floor: Minimum ready replicas to keep on on-demand nodes.
        spot_floor: Minimum ready replicas expected on spot nodes.
        anti_affinity_weight: Weight of the pod anti-affinity preference.
        topology_key: Topology key of the anti-affinity preference.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(True, description="Default enable switch")
    excluded_namespaces: FrozenSet[str] = Field(
        default=DEFAULT_EXCLUDED_NAMESPACES, description="Namespaces never mutated"
    )
    spot_weight: int = Field(10, ge=0, le=100, description="Default spot preference weight")
    on_demand_weight: int = Field(1, ge=0, le=100, description="Default on-demand preference weight")
    on_demand_floor: int = Field(1, ge=0, description="Minimum ready on-demand replicas")
    spot_floor: int = Field(1, ge=0, description="Minimum ready spot replicas")
    anti_affinity_weight: int = Field(1, ge=1, le=100, description="Pod anti-affinity weight")
    topology_key: str = Field(HOSTNAME_TOPOLOGY_KEY, description="Anti-affinity topology key")


class EffectivePolicy(BaseModel):
    """Policy resolved for a single admission request. Never persisted."""

    model_config = ConfigDict(frozen=True)

    enabled: bool
    spot_weight: int = Field(..., ge=0, le=100)
    on_demand_weight: int = Field(..., ge=0, le=100)
