"""
Secret management for Pocket ID client credentials.

This module renders the credentials payload for a PocketIDClient and keeps
the corresponding Kubernetes secret in place. The secret is owned by the
PocketIDClient so garbage collection removes it as well, but the operator
also deletes it explicitly during cleanup.
"""

import logging
from typing import Any

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..constants import (
    DEFAULT_SECRET_ID_KEY,
    DEFAULT_SECRET_SECRET_KEY,
    OPERATOR_LABEL_KEY,
    OPERATOR_LABEL_VALUE,
    OWNER_LABEL_KEY,
)
from ..errors import KubernetesAPIError
from ..models.client import SecretTemplate
from .templates import TemplateContext, render_template

logger = logging.getLogger(__name__)


def render_secret_data(
    secret_template: SecretTemplate | None, context: TemplateContext
) -> dict[str, str]:
    """
    Build the secret payload.

    Args:
        secret_template: Optional user template; each data value is rendered
        context: Template values for the current client

    Returns:
        Mapping of secret keys to plain-text values
    """
    if secret_template and secret_template.data:
        return {
            key: render_template(value, context)
            for key, value in secret_template.data.items()
        }

    return {
        DEFAULT_SECRET_ID_KEY: context.ClientID,
        DEFAULT_SECRET_SECRET_KEY: context.ClientSecret,
    }


class ClientSecretManager:
    """Manages the credentials secret derived from a PocketIDClient."""

    def __init__(self, k8s_client: client.ApiClient | None = None):
        """
        Initialize secret manager.

        Args:
            k8s_client: Optional Kubernetes API client
        """
        self.k8s_client = k8s_client
        self._v1: client.CoreV1Api | None = None

    @property
    def v1(self) -> client.CoreV1Api:
        """Get CoreV1Api client."""
        if self._v1 is None:
            if self.k8s_client:
                self._v1 = client.CoreV1Api(self.k8s_client)
            else:
                self._v1 = client.CoreV1Api()
        return self._v1

    def _build_secret(
        self,
        namespace: str,
        name: str,
        string_data: dict[str, str],
        owner_reference: dict[str, Any],
    ) -> client.V1Secret:
        return client.V1Secret(
            api_version="v1",
            kind="Secret",
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=namespace,
                labels={
                    OPERATOR_LABEL_KEY: OPERATOR_LABEL_VALUE,
                    OWNER_LABEL_KEY: owner_reference["name"],
                },
                owner_references=[
                    client.V1OwnerReference(
                        api_version=owner_reference["apiVersion"],
                        kind=owner_reference["kind"],
                        name=owner_reference["name"],
                        uid=owner_reference["uid"],
                        controller=owner_reference.get("controller", True),
                        block_owner_deletion=owner_reference.get(
                            "blockOwnerDeletion", True
                        ),
                    )
                ],
            ),
            type="Opaque",
            string_data=string_data,
        )

    async def apply_secret(
        self,
        namespace: str,
        name: str,
        string_data: dict[str, str],
        owner_reference: dict[str, Any],
    ) -> client.V1Secret:
        """
        Create the credentials secret, replacing it if it already exists.

        Args:
            namespace: Secret namespace
            name: Secret name
            string_data: Plain-text payload
            owner_reference: Owner reference to the PocketIDClient

        Returns:
            The stored secret

        Raises:
            KubernetesAPIError: If the secret cannot be written
        """
        secret = self._build_secret(namespace, name, string_data, owner_reference)

        try:
            created = self.v1.create_namespaced_secret(namespace=namespace, body=secret)
            logger.info(f"Created credentials secret {namespace}/{name}")
            return created
        except ApiException as e:
            if e.status != 409:
                raise KubernetesAPIError(
                    f"Failed to create secret {namespace}/{name}: {e.reason}",
                    reason=e.reason,
                ) from e

        # Already exists: replace so that removed template keys disappear too
        try:
            replaced = self.v1.replace_namespaced_secret(
                name=name, namespace=namespace, body=secret
            )
            logger.info(f"Updated credentials secret {namespace}/{name}")
            return replaced
        except ApiException as e:
            raise KubernetesAPIError(
                f"Failed to update secret {namespace}/{name}: {e.reason}",
                reason=e.reason,
            ) from e

    async def delete_secret(self, namespace: str, name: str) -> bool:
        """
        Delete the credentials secret if it exists.

        Returns:
            True if a secret was deleted, False if it was already gone

        Raises:
            KubernetesAPIError: If deletion fails for reasons other than 404
        """
        try:
            self.v1.delete_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"Secret {namespace}/{name} already absent")
                return False
            raise KubernetesAPIError(
                f"Failed to delete secret {namespace}/{name}: {e.reason}",
                reason=e.reason,
            ) from e

        logger.info(f"Deleted credentials secret {namespace}/{name}")
        return True
