"""
CustomResourceDefinition for PocketIDClient.

The schema is written by hand and mirrors the Pocket ID OIDC client
definition plus the operator's secretTemplate block. register_crd() applies
it at startup when REGISTER_CRD is enabled.
"""

import logging
from typing import Any

from kubernetes import client
from kubernetes.client.rest import ApiException

from .constants import (
    API_GROUP,
    API_VERSION,
    CRD_NAME,
    KIND,
    PLURAL,
    SHORT_NAMES,
    SINGULAR,
    Phase,
)
from .errors import KubernetesAPIError

logger = logging.getLogger(__name__)

SPEC_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "id": {
            "type": "string",
            "description": "Client ID (defaults to the resource name)",
        },
        "callbackURLs": {"type": "array", "items": {"type": "string"}},
        "logoutCallbackURLs": {"type": "array", "items": {"type": "string"}},
        "isPublic": {"type": "boolean"},
        "pkceEnabled": {"type": "boolean"},
        "isGroupRestricted": {"type": "boolean"},
        "launchURL": {"type": "string"},
        "requiresReauthentication": {"type": "boolean"},
        "secretTemplate": {
            "type": "object",
            "description": "Optional template for customizing the generated secret",
            "properties": {
                "name": {
                    "type": "string",
                    "description": (
                        "Custom name for the secret (defaults to {cr-name}-credentials)"
                    ),
                },
                "data": {
                    "type": "object",
                    "description": (
                        "Key-value pairs for secret data. Values support the "
                        "placeholders {{ .ClientID }}, {{ .ClientSecret }}, "
                        "{{ .ClientName }}, {{ .Namespace }}, {{ .ResourceName }}"
                    ),
                    "additionalProperties": {"type": "string"},
                },
            },
        },
    },
}

CONDITION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["type", "status", "lastTransitionTime", "reason", "message"],
    "properties": {
        "type": {"type": "string"},
        "status": {"type": "string", "enum": ["True", "False", "Unknown"]},
        "observedGeneration": {"type": "integer", "minimum": 0},
        "lastTransitionTime": {"type": "string", "format": "date-time"},
        "reason": {"type": "string"},
        "message": {"type": "string"},
    },
}

STATUS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "observedGeneration": {"type": "integer"},
        "conditions": {"type": "array", "items": CONDITION_SCHEMA},
        "phase": {"type": "string", "enum": [phase.value for phase in Phase]},
        "retryAttempt": {"type": "integer", "minimum": 0},
        "nextRetryTime": {"type": "string", "format": "date-time"},
        "clientId": {"type": "string"},
        "secretName": {"type": "string"},
    },
}

PRINTER_COLUMNS: list[dict[str, Any]] = [
    {
        "name": "Status",
        "type": "string",
        "description": "The status of the client",
        "jsonPath": ".status.phase",
    },
    {
        "name": "Client ID",
        "type": "string",
        "description": "The Pocket ID client ID",
        "jsonPath": ".status.clientId",
    },
    {
        "name": "Retries",
        "type": "integer",
        "description": "Number of retry attempts",
        "jsonPath": ".status.retryAttempt",
        "priority": 1,
    },
    {
        "name": "Next Retry",
        "type": "date",
        "description": "When the next retry will occur",
        "jsonPath": ".status.nextRetryTime",
        "priority": 1,
    },
    {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
]


def build_crd_manifest() -> dict[str, Any]:
    """Full CustomResourceDefinition body for PocketIDClient."""
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": CRD_NAME},
        "spec": {
            "group": API_GROUP,
            "scope": "Namespaced",
            "names": {
                "kind": KIND,
                "plural": PLURAL,
                "singular": SINGULAR,
                "shortNames": list(SHORT_NAMES),
            },
            "versions": [
                {
                    "name": API_VERSION,
                    "served": True,
                    "storage": True,
                    "additionalPrinterColumns": PRINTER_COLUMNS,
                    "subresources": {"status": {}},
                    "schema": {
                        "openAPIV3Schema": {
                            "type": "object",
                            "properties": {
                                "spec": SPEC_SCHEMA,
                                "status": STATUS_SCHEMA,
                            },
                        }
                    },
                }
            ],
        },
    }


def register_crd(k8s_client: client.ApiClient | None = None) -> None:
    """
    Create the PocketIDClient CRD, or replace it if it already exists.

    Raises:
        KubernetesAPIError: If the CRD cannot be applied
    """
    api = client.ApiextensionsV1Api(k8s_client)
    manifest = build_crd_manifest()

    try:
        api.create_custom_resource_definition(body=manifest)
        logger.info(f"Created CRD {CRD_NAME}")
        return
    except ApiException as e:
        if e.status != 409:
            raise KubernetesAPIError(
                f"Failed to create CRD {CRD_NAME}: {e.reason}", reason=e.reason
            ) from e

    try:
        existing = api.read_custom_resource_definition(name=CRD_NAME)
        manifest["metadata"]["resourceVersion"] = existing.metadata.resource_version
        api.replace_custom_resource_definition(name=CRD_NAME, body=manifest)
        logger.info(f"Updated CRD {CRD_NAME}")
    except ApiException as e:
        raise KubernetesAPIError(
            f"Failed to update CRD {CRD_NAME}: {e.reason}", reason=e.reason
        ) from e
