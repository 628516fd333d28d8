"""
Pydantic models for PocketIDClient resources.

This module defines type-safe data models for the PocketIDClient
specification and status. Field aliases match the camelCase names used in
the custom resource so that raw kopf bodies validate directly.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import SECRET_NAME_SUFFIX, Phase
from .pocketid_api import OidcClientCreate, OidcClientUpdate


class SecretTemplate(BaseModel):
    """Customization of the generated credentials secret."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(
        None,
        description="Custom name for the secret (defaults to {cr-name}-credentials)",
    )
    data: dict[str, str] | None = Field(
        None,
        description=(
            "Key-value pairs for secret data. Values support the placeholders "
            "{{ .ClientID }}, {{ .ClientSecret }}, {{ .ClientName }}, "
            "{{ .Namespace }} and {{ .ResourceName }}"
        ),
    )


class PocketIDClientSpec(BaseModel):
    """
    Specification for a PocketIDClient resource.

    Mirrors the Pocket ID OIDC client definition plus the operator-only
    secretTemplate block.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1, description="Display name of the client")
    id: str | None = Field(
        None, description="Client ID override (defaults to the resource name)"
    )
    callback_urls: list[str] = Field(
        default_factory=list, alias="callbackURLs", description="Allowed callback URLs"
    )
    logout_callback_urls: list[str] = Field(
        default_factory=list,
        alias="logoutCallbackURLs",
        description="Allowed post-logout callback URLs",
    )
    is_public: bool = Field(
        False, alias="isPublic", description="Whether this is a public client"
    )
    pkce_enabled: bool = Field(
        False, alias="pkceEnabled", description="Require PKCE for authorization"
    )
    is_group_restricted: bool = Field(
        False,
        alias="isGroupRestricted",
        description="Restrict access to allowed user groups",
    )
    launch_url: str | None = Field(
        None, alias="launchURL", description="URL shown in the Pocket ID dashboard"
    )
    requires_reauthentication: bool = Field(
        False,
        alias="requiresReauthentication",
        description="Force re-authentication on every login",
    )
    secret_template: SecretTemplate | None = Field(
        None,
        alias="secretTemplate",
        description="Optional template for customizing the generated secret",
    )

    @field_validator("callback_urls", "logout_callback_urls", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def resolve_client_id(self, resource_name: str) -> str:
        """Pocket ID client ID: spec.id when set, otherwise the resource name."""
        return self.id or resource_name

    def resolve_secret_name(self, resource_name: str) -> str:
        """Credentials secret name: template override or {name}-credentials."""
        if self.secret_template and self.secret_template.name:
            return self.secret_template.name
        return f"{resource_name}{SECRET_NAME_SUFFIX}"

    def to_update_payload(self) -> OidcClientUpdate:
        """Build the Pocket ID update definition from this spec."""
        return OidcClientUpdate(
            name=self.name,
            callback_urls=self.callback_urls,
            logout_callback_urls=self.logout_callback_urls,
            is_public=self.is_public,
            pkce_enabled=self.pkce_enabled,
            is_group_restricted=self.is_group_restricted,
            launch_url=self.launch_url,
            requires_reauthentication=self.requires_reauthentication,
        )

    def to_create_payload(self, client_id: str) -> OidcClientCreate:
        """Build the Pocket ID create definition, which also carries the ID."""
        return OidcClientCreate(
            id=client_id, **self.to_update_payload().model_dump(by_alias=False)
        )


class PocketIDClientStatus(BaseModel):
    """Status block of a PocketIDClient as written by the reconciler."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    phase: Phase | None = None
    retry_attempt: int = Field(0, alias="retryAttempt", ge=0)
    next_retry_time: datetime | None = Field(None, alias="nextRetryTime")
    observed_generation: int | None = Field(None, alias="observedGeneration")
    client_id: str | None = Field(None, alias="clientId")
    secret_name: str | None = Field(None, alias="secretName")
    conditions: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("retry_attempt", mode="before")
    @classmethod
    def none_as_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("next_retry_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @field_validator("conditions", mode="before")
    @classmethod
    def none_as_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v
