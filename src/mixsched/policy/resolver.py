# src/mixsched/policy/resolver.py
"""
Resolves the policy applying to an admitted workload.

Each field is looked up independently, in order, on the labels of the
workload itself, then on the labels of its namespace, then in the process
defaults. The first level that supplies a value wins for that field only.
"""

import logging
import re
from typing import Mapping, Optional

from ..core.exceptions import PolicyResolutionError
from ..models.policy import EffectivePolicy, WebhookSettings

logger = logging.getLogger(__name__)

ENABLE_LABEL_KEY = "mix-scheduler-admission-webhook"
SPOT_WEIGHT_LABEL_KEY = "spot/weight"
ON_DEMAND_WEIGHT_LABEL_KEY = "on-demand/weight"

_SWITCH_VALUES = {"true": True, "false": False}
_INTEGER = re.compile(r"-?[0-9]+")

# Upper bound the API server accepts for a preferred scheduling term weight.
MAX_WEIGHT = 100


class PolicyResolver:
    """Computes an EffectivePolicy from instance labels, namespace labels and defaults."""

    def __init__(self, settings: WebhookSettings):
        self.settings = settings

    def is_excluded(self, namespace: str) -> bool:
        return namespace in self.settings.excluded_namespaces

    def resolve(
        self,
        namespace: str,
        instance_labels: Optional[Mapping[str, str]],
        namespace_labels: Optional[Mapping[str, str]] = None,
    ) -> EffectivePolicy:
        """
        Resolves the enable switch and both weights for one request.
        Weight labels are only parsed when the switch resolves to enabled;
        a disabled policy carries the default weights.

        Raises:
            PolicyResolutionError: If a weight label is not a non-negative integer.
        """
        instance_labels = instance_labels or {}
        namespace_labels = namespace_labels or {}

        if not self._resolve_enabled(namespace, instance_labels, namespace_labels):
            return EffectivePolicy(
                enabled=False,
                spot_weight=self.settings.spot_weight,
                on_demand_weight=self.settings.on_demand_weight,
            )

        return EffectivePolicy(
            enabled=True,
            spot_weight=self._resolve_weight(
                SPOT_WEIGHT_LABEL_KEY, instance_labels, namespace_labels, self.settings.spot_weight
            ),
            on_demand_weight=self._resolve_weight(
                ON_DEMAND_WEIGHT_LABEL_KEY, instance_labels, namespace_labels, self.settings.on_demand_weight
            ),
        )

    def is_enabled(
        self,
        namespace: str,
        instance_labels: Optional[Mapping[str, str]],
        namespace_labels: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """Resolves the enable switch alone, without validating weight labels."""
        return self._resolve_enabled(namespace, instance_labels or {}, namespace_labels or {})

    def _resolve_enabled(
        self, namespace: str, instance_labels: Mapping[str, str], namespace_labels: Mapping[str, str]
    ) -> bool:
        if self.is_excluded(namespace):
            return False

        for scope, labels in (("instance", instance_labels), ("namespace", namespace_labels)):
            switch = _parse_switch(labels.get(ENABLE_LABEL_KEY), scope)
            if switch is not None:
                return switch

        return self.settings.enabled

    @staticmethod
    def _resolve_weight(
        key: str, instance_labels: Mapping[str, str], namespace_labels: Mapping[str, str], default: int
    ) -> int:
        for scope, labels in (("instance", instance_labels), ("namespace", namespace_labels)):
            if key in labels:
                return _parse_weight(key, labels[key], scope)
        return default


def _parse_switch(value: Optional[str], scope: str) -> Optional[bool]:
    """Maps "true"/"false" to a bool. Anything else counts as unset."""
    if value is None or value == "":
        return None
    switch = _SWITCH_VALUES.get(value)
    if switch is None:
        logger.warning(
            "Ignoring %s label %s=%r: expected 'true' or 'false'.",
            scope,
            ENABLE_LABEL_KEY,
            value,
        )
    return switch


def _parse_weight(key: str, value: str, scope: str) -> int:
    if not isinstance(value, str) or not _INTEGER.fullmatch(value):
        raise PolicyResolutionError(f"parse {scope} label {key}={value!r}: not an integer")
    weight = int(value)
    if weight < 0:
        raise PolicyResolutionError(f"{scope} label {key} must be >= 0, got {weight}")
    if weight > MAX_WEIGHT:
        raise PolicyResolutionError(f"{scope} label {key} must be <= {MAX_WEIGHT}, got {weight}")
    return weight
