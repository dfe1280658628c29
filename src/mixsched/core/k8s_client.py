# src/mixsched/core/k8s_client.py
"""
Loads the Kubernetes client configuration once per process and hands out
CoreV1Api instances to the cluster state cache.
"""

import asyncio
import logging
import typing

from kubernetes_asyncio import client, config

logger = logging.getLogger(__name__)

_CONFIG_LOCK = asyncio.Lock()
_CONFIG_LOADED = False


async def ensure_k8s_config() -> bool:
    """
    Loads the in-cluster configuration, falling back to the local kubeconfig.
    Safe to call concurrently; the configuration is loaded at most once.

    Returns:
        bool: True if a configuration is loaded, False otherwise.
    """
    global _CONFIG_LOADED

    if _CONFIG_LOADED:
        return True

    async with _CONFIG_LOCK:
        if _CONFIG_LOADED:
            return True

        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration.")
            _CONFIG_LOADED = True
            return True
        except config.ConfigException:
            logger.debug("In-cluster config not found, trying kubeconfig.")

        try:
            await config.load_kube_config()
            logger.info("Loaded Kubernetes configuration from kubeconfig file.")
            _CONFIG_LOADED = True
            return True
        except config.ConfigException as e:
            logger.warning("Could not load kubeconfig: %s", e)
        except FileNotFoundError:
            logger.warning("Could not find kubeconfig file.")

    logger.error("Failed to load any Kubernetes configuration.")
    return False


async def get_core_v1_api() -> typing.Optional[client.CoreV1Api]:
    """Returns a configured CoreV1Api, or None when no configuration is available."""
    if await ensure_k8s_config():
        return client.CoreV1Api()
    return None


async def close_api(api: typing.Optional[client.CoreV1Api]) -> None:
    """Closes the HTTP session behind a CoreV1Api instance."""
    if api is not None:
        await api.api_client.close()
        logger.debug("Kubernetes API client closed.")
