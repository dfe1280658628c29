# src/mixsched/cluster/sync.py
"""
Background list-and-watch loop keeping one resource kind of the
ClusterSnapshot up to date.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from kubernetes_asyncio import watch
from kubernetes_asyncio.client.rest import ApiException

from .snapshot import ClusterSnapshot, ResourceKind, WatchEventType

logger = logging.getLogger(__name__)

HTTP_GONE = 410


class ResourceSync:
    """
    Lists a resource kind into the snapshot, then follows its watch stream.

    The loop is the only writer of its kind in the snapshot. `synced` is set
    once the first full list has been stored and never cleared afterwards.
    """

    def __init__(
        self,
        kind: ResourceKind,
        list_func: Callable[..., Awaitable[Any]],
        project: Callable[[Any], Any],
        snapshot: ClusterSnapshot,
        watch_timeout_seconds: int = 300,
        retry_backoff_seconds: float = 5.0,
    ):
        self.kind = kind
        self.list_func = list_func
        self.project = project
        self.snapshot = snapshot
        self.watch_timeout_seconds = watch_timeout_seconds
        self.retry_backoff_seconds = retry_backoff_seconds
        self.synced = asyncio.Event()

    async def run(self):
        """Runs until cancelled. Failures are logged and followed by a fresh list."""
        resource_version: Optional[str] = None
        try:
            while True:
                try:
                    if resource_version is None:
                        resource_version = await self.list_once()
                    resource_version = await self.watch_once(resource_version)
                except ApiException as e:
                    resource_version = None
                    if e.status == HTTP_GONE:
                        logger.info("Watch on %s expired, re-listing.", self.kind.value)
                        continue
                    logger.error("Kubernetes API error while syncing %s: %s", self.kind.value, e)
                    await asyncio.sleep(self.retry_backoff_seconds)
                except Exception as e:
                    resource_version = None
                    logger.error(f"Error while syncing {self.kind.value}: {e}", exc_info=True)
                    await asyncio.sleep(self.retry_backoff_seconds)
        except asyncio.CancelledError:
            logger.info(f"Sync of {self.kind.value} cancelled.")
            raise

    async def list_once(self) -> str:
        """Replaces the snapshot contents for this kind and returns the list's resourceVersion."""
        result = await self.list_func()
        self.snapshot.replace(self.kind, [self.project(item) for item in result.items or []])
        if not self.synced.is_set():
            logger.info("Initial sync of %s complete (%d objects).", self.kind.value, self.snapshot.count(self.kind))
            self.synced.set()
        return result.metadata.resource_version

    async def watch_once(self, resource_version: str) -> str:
        """
        Applies watch events until the server closes the stream.

        Returns:
            The last resourceVersion seen, to resume from.

        Raises:
            ApiException: With status 410 when the resourceVersion is too old.
        """
        w = watch.Watch()
        async with w.stream(
            self.list_func,
            resource_version=resource_version,
            timeout_seconds=self.watch_timeout_seconds,
        ) as stream:
            async for event in stream:
                event_type = event.get("type")
                if event_type == "ERROR":
                    raw = event.get("raw_object") or {}
                    raise ApiException(status=raw.get("code"), reason=raw.get("message"))
                try:
                    kind = WatchEventType(event_type)
                except ValueError:
                    # BOOKMARK and unknown types carry no object change.
                    continue

                obj = event["object"]
                self.snapshot.apply(self.kind, kind, self.project(obj))
                resource_version = obj.metadata.resource_version or resource_version
        return resource_version
