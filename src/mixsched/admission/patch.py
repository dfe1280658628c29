# src/mixsched/admission/patch.py
"""
Translates a PlacementDelta into JSON patch operations.

Each touched pod-spec field is written as a whole value. `replace` is used
when the field is already present in the admitted object and `add` when it
is absent, since RFC 6902 `replace` fails on a missing member.
"""

from typing import List, Optional

from ..models.admission import PatchOperation
from ..models.workload import WorkloadView
from ..placement.decision import PlacementDelta


def build_patch(view: WorkloadView, delta: Optional[PlacementDelta]) -> List[PatchOperation]:
    """Returns the ordered patch for a delta; empty when nothing changes."""
    if delta is None:
        return []

    operations: List[PatchOperation] = []
    if delta.node_selector is not None:
        operations.append(
            PatchOperation(
                op=_op_for(view.node_selector),
                path=f"{view.pod_spec_path}/nodeSelector",
                value=delta.node_selector,
            )
        )
    if delta.affinity is not None:
        operations.append(
            PatchOperation(
                op=_op_for(view.affinity),
                path=f"{view.pod_spec_path}/affinity",
                value=delta.affinity,
            )
        )
    return operations


def _op_for(current) -> str:
    return "add" if current is None else "replace"
