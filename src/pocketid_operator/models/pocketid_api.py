"""
Pydantic models for the Pocket ID admin REST API.

Only the OIDC client endpoints used by the operator are modelled. Models
serialize with camelCase aliases to match the Pocket ID DTOs.
"""

from pydantic import BaseModel, ConfigDict, Field


class OidcClientUpdate(BaseModel):
    """Body of PUT /api/oidc/clients/{id}."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    callback_urls: list[str] = Field(default_factory=list, alias="callbackURLs")
    logout_callback_urls: list[str] = Field(
        default_factory=list, alias="logoutCallbackURLs"
    )
    is_public: bool = Field(False, alias="isPublic")
    pkce_enabled: bool = Field(False, alias="pkceEnabled")
    is_group_restricted: bool = Field(False, alias="isGroupRestricted")
    launch_url: str | None = Field(None, alias="launchURL")
    requires_reauthentication: bool = Field(False, alias="requiresReauthentication")


class OidcClientCreate(OidcClientUpdate):
    """Body of POST /api/oidc/clients."""

    id: str


class OidcClientSecret(BaseModel):
    """Response of POST /api/oidc/clients/{id}/secret."""

    secret: str
