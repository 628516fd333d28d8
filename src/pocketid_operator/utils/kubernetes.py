"""
Kubernetes utilities for the Pocket ID operator.

This module provides helper functions for interacting with the Kubernetes API:
- Kubernetes client management and configuration
- Merge-patch access to PocketIDClient metadata and status
- Owner reference construction for derived resources
"""

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ..constants import API_GROUP, API_VERSION, KIND, PLURAL
from ..errors import KubernetesAPIError

logger = logging.getLogger(__name__)


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    Tries the in-cluster configuration first (when running in a pod) and
    falls back to the local kubeconfig for development.

    Returns:
        Configured Kubernetes API client
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


def build_owner_reference(name: str, uid: str) -> dict[str, Any]:
    """Owner reference pointing at a PocketIDClient resource."""
    return {
        "apiVersion": f"{API_GROUP}/{API_VERSION}",
        "kind": KIND,
        "name": name,
        "uid": uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


class PocketIDClientResourceAPI:
    """Access to PocketIDClient custom resources."""

    def __init__(self, k8s_client: client.ApiClient | None = None):
        """
        Initialize the resource API.

        Args:
            k8s_client: Optional Kubernetes API client
        """
        self.k8s_client = k8s_client
        self._custom_api: client.CustomObjectsApi | None = None

    @property
    def custom_api(self) -> client.CustomObjectsApi:
        """Get CustomObjectsApi client."""
        if self._custom_api is None:
            self._custom_api = client.CustomObjectsApi(
                self.k8s_client or get_kubernetes_client()
            )
        return self._custom_api

    def patch_metadata(
        self, name: str, namespace: str, metadata: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Merge-patch the metadata of a PocketIDClient.

        Raises:
            KubernetesAPIError: If the patch fails
        """
        try:
            return self.custom_api.patch_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL,
                name=name,
                body={"metadata": metadata},
            )
        except ApiException as e:
            raise KubernetesAPIError(
                f"Failed to patch metadata of {KIND} {namespace}/{name}: {e.reason}",
                reason=e.reason,
            ) from e

    def patch_status(
        self, name: str, namespace: str, status: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Merge-patch the status subresource of a PocketIDClient.

        Only the supplied fields are sent; everything else in status is left
        as it is on the server.

        Raises:
            KubernetesAPIError: If the patch fails
        """
        try:
            return self.custom_api.patch_namespaced_custom_object_status(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL,
                name=name,
                body={"status": status},
            )
        except ApiException as e:
            raise KubernetesAPIError(
                f"Failed to patch status of {KIND} {namespace}/{name}: {e.reason}",
                reason=e.reason,
            ) from e
