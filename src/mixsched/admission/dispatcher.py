# src/mixsched/admission/dispatcher.py
"""
Routes admission requests by kind and operation, and turns each outcome
into an AdmissionResponse.

Verdicts:
  * unsupported kind or operation, or policy disabled -> allowed, no patch
  * mutation decided -> allowed with a JSON patch
  * decode or policy resolution error -> denied (400)
  * availability-floor veto on delete -> denied (403)
"""

import logging
from typing import Optional

from ..cluster.cache import ClusterStateCache
from ..core.exceptions import DecodeError, PlacementVetoError, PolicyResolutionError
from ..core.telemetry import admission_counter
from ..models.admission import AdmissionOperation, AdmissionRequest, AdmissionResponse, AdmissionReview
from ..models.policy import EffectivePolicy
from ..models.workload import WorkloadKind, WorkloadView
from ..placement.decision import PlacementEngine
from ..policy.resolver import PolicyResolver
from .patch import build_patch

logger = logging.getLogger(__name__)

VETO_MESSAGE_PREFIX = "denied by mix-scheduler availability policy"


class AdmissionDispatcher:
    """Entry point of the admission decision engine."""

    def __init__(self, resolver: PolicyResolver, engine: PlacementEngine, cache: ClusterStateCache):
        self.resolver = resolver
        self.engine = engine
        self.cache = cache

    async def review(self, review: AdmissionReview) -> AdmissionReview:
        """Answers an AdmissionReview carrying a request."""
        request = review.request
        response = await self.admit(request)

        verdict = "denied" if not response.allowed else ("patched" if response.patch else "allowed")
        admission_counter.add(
            1, {"kind": request.kind.kind, "operation": request.operation.value, "verdict": verdict}
        )
        return AdmissionReview.respond(response)

    async def admit(self, request: AdmissionRequest) -> AdmissionResponse:
        try:
            kind = WorkloadKind(request.kind.kind)
        except ValueError:
            logger.info("Unsupported kind '%s'; allowing unmodified.", request.kind.kind)
            return AdmissionResponse.allow(request.uid)

        try:
            if request.operation is AdmissionOperation.DELETE:
                return await self._admit_delete(request, kind)
            if request.operation in (AdmissionOperation.CREATE, AdmissionOperation.UPDATE):
                return await self._admit_write(request, kind)
            return AdmissionResponse.allow(request.uid)
        except DecodeError as e:
            logger.warning("Rejecting %s %s: %s", request.operation.value, kind.value, e)
            return AdmissionResponse.deny(request.uid, str(e))
        except PolicyResolutionError as e:
            logger.warning("Rejecting %s %s: invalid policy: %s", request.operation.value, kind.value, e)
            return AdmissionResponse.deny(request.uid, f"invalid mix-scheduler policy: {e}")
        except PlacementVetoError as e:
            logger.warning("Vetoing %s %s: %s", request.operation.value, kind.value, e)
            return AdmissionResponse.deny(request.uid, f"{VETO_MESSAGE_PREFIX}: {e}", code=403)

    async def _admit_write(self, request: AdmissionRequest, kind: WorkloadKind) -> AdmissionResponse:
        view = WorkloadView.from_object(kind, request.object, request.namespace)
        if self.resolver.is_excluded(view.namespace):
            logger.debug("Namespace '%s' is excluded; skipping.", view.namespace)
            return AdmissionResponse.allow(request.uid)

        policy = await self._resolve(view)
        if not policy.enabled:
            logger.info("Mutation disabled for %s %s/%s; skipping.", kind.value, view.namespace, view.name)
            return AdmissionResponse.allow(request.uid)

        if kind.is_template:
            delta = self.engine.for_template(view, policy)
        elif request.operation is AdmissionOperation.CREATE:
            delta = await self.engine.for_pod_create(view)
        else:
            # Placement fields of a running pod are immutable.
            delta = None

        operations = build_patch(view, delta)
        if not operations:
            return AdmissionResponse.allow(request.uid)

        logger.info(
            "Patching %s %s/%s: %s",
            kind.value,
            view.namespace,
            view.name,
            ", ".join(op.path for op in operations),
        )
        try:
            return AdmissionResponse.with_patch(request.uid, operations)
        except (TypeError, ValueError) as e:
            logger.error("Failed to serialize patch for %s: %s", kind.value, e, exc_info=True)
            return AdmissionResponse.deny(request.uid, f"marshal patch: {e}")

    async def _admit_delete(self, request: AdmissionRequest, kind: WorkloadKind) -> AdmissionResponse:
        if kind is not WorkloadKind.POD:
            return AdmissionResponse.allow(request.uid)
        if request.old_object is None:
            logger.warning("DELETE of pod without oldObject; cannot check the floor, allowing.")
            return AdmissionResponse.allow(request.uid)

        view = WorkloadView.from_object(kind, request.old_object, request.namespace)
        if self.resolver.is_excluded(view.namespace):
            return AdmissionResponse.allow(request.uid)

        namespace_labels = await self._namespace_labels(view.namespace)
        if not self.resolver.is_enabled(view.namespace, view.labels, namespace_labels):
            return AdmissionResponse.allow(request.uid)

        await self.engine.check_pod_delete(view)
        return AdmissionResponse.allow(request.uid)

    async def _resolve(self, view: WorkloadView) -> EffectivePolicy:
        namespace_labels = await self._namespace_labels(view.namespace)
        return self.resolver.resolve(view.namespace, view.labels, namespace_labels)

    async def _namespace_labels(self, name: str) -> Optional[dict]:
        namespace = await self.cache.get_namespace(name)
        if namespace is None:
            logger.debug("Namespace '%s' not found; using defaults for namespace scope.", name)
            return None
        return namespace.labels
