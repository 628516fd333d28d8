"""
Pocket ID admin API client utilities.

This module provides a small async interface to the Pocket ID REST API for
managing OIDC clients. The client handles:
- API key authentication via the X-API-KEY header
- Error translation into PocketIDAPIError
- Type-safe request bodies built from pydantic models
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from ..constants import POCKETID_API_KEY_HEADER
from ..errors import ConfigurationError, PocketIDAPIError
from ..models.pocketid_api import OidcClientCreate, OidcClientSecret, OidcClientUpdate
from ..observability.metrics import metrics_collector
from ..settings import PocketIDSettings, get_pocketid_settings

logger = logging.getLogger(__name__)


class PocketIDAdminClient:
    """
    High-level client for Pocket ID OIDC client management.

    Instances own their httpx client; use them as async context managers so
    the connection pool is closed when the reconciliation attempt ends.
    """

    def __init__(
        self,
        server_url: str,
        api_token: str,
        verify_ssl: bool = True,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Pocket ID admin client.

        Args:
            server_url: Base URL of the Pocket ID server
            api_token: API key for the X-API-KEY header (may be empty)
            verify_ssl: Whether to verify SSL certificates
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.server_url = server_url.rstrip("/")
        self.verify_ssl = verify_ssl
        self.timeout = timeout

        headers = {"Content-Type": "application/json"}
        token = api_token.strip()
        if token:
            headers[POCKETID_API_KEY_HEADER] = token

        self._client = httpx.AsyncClient(
            base_url=self.server_url,
            verify=verify_ssl,
            timeout=httpx.Timeout(timeout),
            headers=headers,
            transport=transport,
            follow_redirects=False,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PocketIDAdminClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - closes the connection pool."""
        await self.close()

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        request_model: BaseModel | None = None,
        operation: str = "request",
    ) -> httpx.Response:
        """
        Make an authenticated request to the Pocket ID API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API path, e.g. /api/oidc/clients
            request_model: Optional pydantic model serialized as JSON body
            operation: Label for the API error metric

        Returns:
            Response with body already buffered

        Raises:
            PocketIDAPIError: On HTTP or transport errors
        """
        json_body: dict[str, Any] | None = None
        if request_model is not None:
            # by_alias: Pocket ID expects camelCase field names
            json_body = request_model.model_dump(by_alias=True)

        try:
            response = await self._client.request(method, endpoint, json=json_body)
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            metrics_collector.record_api_error(operation)
            status_code = e.response.status_code
            response_body = e.response.text or "<no content>"
            error = PocketIDAPIError(
                f"{method} {endpoint} failed",
                status_code=status_code,
                response_body=response_body,
            )
            logger.error(
                f"Request failed: {method} {endpoint} - HTTP {status_code}",
                extra={
                    "http_status": status_code,
                    "response_body": error.body_preview(),
                },
            )
            raise error from e

        except httpx.HTTPError as e:
            # Other HTTP errors (connection, timeout, etc.)
            metrics_collector.record_api_error(operation)
            logger.error(f"Request failed: {method} {endpoint} - {e}")
            raise PocketIDAPIError(f"{method} {endpoint} failed: {e}") from e

    async def client_exists(self, client_id: str) -> bool:
        """
        Check whether an OIDC client exists.

        Any error, including transport failures, is reported as "does not
        exist". A wrong answer only sends the reconciler down the create
        path, where Pocket ID rejects a duplicate and the attempt is retried.

        Args:
            client_id: Pocket ID client ID

        Returns:
            True if the client could be fetched
        """
        try:
            response = await self._client.get(f"/api/oidc/clients/{client_id}")
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.debug(f"Client '{client_id}' not found or not fetchable: {e}")
            return False

    async def create_client(self, definition: OidcClientCreate) -> None:
        """
        Create a new OIDC client.

        Raises:
            PocketIDAPIError: If creation fails
        """
        logger.info(f"Creating OIDC client '{definition.id}'")
        await self._make_request(
            "POST",
            "/api/oidc/clients",
            request_model=definition,
            operation="create_client",
        )

    async def update_client(self, client_id: str, definition: OidcClientUpdate) -> None:
        """
        Update an existing OIDC client.

        Raises:
            PocketIDAPIError: If the update fails
        """
        logger.info(f"Updating OIDC client '{client_id}'")
        await self._make_request(
            "PUT",
            f"/api/oidc/clients/{client_id}",
            request_model=definition,
            operation="update_client",
        )

    async def regenerate_client_secret(self, client_id: str) -> str:
        """
        Generate a new secret for a client.

        Returns:
            The new client secret

        Raises:
            PocketIDAPIError: If the request fails or returns no secret
        """
        logger.info(f"Regenerating client secret for '{client_id}'")
        response = await self._make_request(
            "POST",
            f"/api/oidc/clients/{client_id}/secret",
            operation="regenerate_client_secret",
        )
        try:
            return OidcClientSecret.model_validate(response.json()).secret
        except ValueError as e:
            raise PocketIDAPIError(
                f"No secret returned for client '{client_id}'",
                response_body=response.text,
            ) from e

    async def delete_client(self, client_id: str) -> None:
        """
        Delete an OIDC client.

        Raises:
            PocketIDAPIError: If deletion fails
        """
        logger.info(f"Deleting OIDC client '{client_id}'")
        await self._make_request(
            "DELETE", f"/api/oidc/clients/{client_id}", operation="delete_client"
        )


def get_pocketid_admin_client(
    pocketid_settings: PocketIDSettings | None = None,
) -> PocketIDAdminClient:
    """
    Create a Pocket ID admin client from the current environment.

    Settings are loaded on every call so that a rotated API token is picked
    up by the next reconciliation attempt.

    Raises:
        ConfigurationError: If POCKETID_API_TOKEN is not set
    """
    cfg = pocketid_settings or get_pocketid_settings()
    if not cfg.api_token.strip():
        raise ConfigurationError(
            "POCKETID_API_TOKEN is not set",
            user_action="Provide the Pocket ID API key in POCKETID_API_TOKEN",
        )

    return PocketIDAdminClient(
        server_url=cfg.api_url,
        api_token=cfg.api_token,
        verify_ssl=cfg.verify_ssl,
        timeout=cfg.timeout,
    )
