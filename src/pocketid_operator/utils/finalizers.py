"""
Finalizer management for PocketIDClient resources.

The finalizer keeps Kubernetes from removing a PocketIDClient until the
matching Pocket ID client and credentials secret have been cleaned up.
Both operations read the finalizer list from the event body and are no-ops
when the list already has the desired shape, so they are safe to call on
every reconciliation pass.
"""

import logging
from typing import Any

from ..constants import CLIENT_FINALIZER
from .kubernetes import PocketIDClientResourceAPI

logger = logging.getLogger(__name__)


class FinalizerManager:
    """Adds and removes the operator's finalizer token."""

    def __init__(
        self,
        resource_api: PocketIDClientResourceAPI,
        finalizer: str = CLIENT_FINALIZER,
    ):
        self.resource_api = resource_api
        self.finalizer = finalizer

    def has_finalizer(self, body: dict[str, Any]) -> bool:
        return self.finalizer in (body.get("metadata", {}).get("finalizers") or [])

    def ensure(self, body: dict[str, Any]) -> bool:
        """
        Add the finalizer if it is missing.

        Args:
            body: Resource body as delivered by the watch

        Returns:
            True if a patch was sent

        Raises:
            KubernetesAPIError: If the patch fails
        """
        metadata = body.get("metadata", {})
        finalizers = list(metadata.get("finalizers") or [])
        if self.finalizer in finalizers:
            return False

        name, namespace = metadata["name"], metadata["namespace"]
        logger.info(f"Adding finalizer {self.finalizer} to {namespace}/{name}")
        self.resource_api.patch_metadata(
            name, namespace, {"finalizers": [*finalizers, self.finalizer]}
        )
        metadata["finalizers"] = [*finalizers, self.finalizer]
        return True

    def release(self, body: dict[str, Any]) -> bool:
        """
        Remove the finalizer if it is present.

        Args:
            body: Resource body as delivered by the watch

        Returns:
            True if a patch was sent

        Raises:
            KubernetesAPIError: If the patch fails
        """
        metadata = body.get("metadata", {})
        finalizers = list(metadata.get("finalizers") or [])
        if self.finalizer not in finalizers:
            return False

        remaining = [f for f in finalizers if f != self.finalizer]
        name, namespace = metadata["name"], metadata["namespace"]
        logger.info(f"Removing finalizer {self.finalizer} from {namespace}/{name}")
        self.resource_api.patch_metadata(name, namespace, {"finalizers": remaining})
        metadata["finalizers"] = remaining
        return True
