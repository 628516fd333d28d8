"""Unit tests for the operator error hierarchy."""

import pytest

from pocketid_operator.errors import (
    ConfigurationError,
    KubernetesAPIError,
    OperatorError,
    PocketIDAPIError,
    ValidationError,
)


class TestErrorCategories:
    """Test categorization and user guidance."""

    def test_validation_error_names_field(self):
        error = ValidationError("spec.name is required", field="name")

        assert error.category == "validation"
        assert error.field == "name"
        assert str(error) == "Validation error in field 'name': spec.name is required"

    def test_message_excludes_user_action(self):
        """The string form is safe to embed in status conditions."""
        error = ConfigurationError(
            "POCKETID_API_TOKEN is not set", user_action="Set the token"
        )

        assert str(error) == "POCKETID_API_TOKEN is not set"
        assert error.user_action == "Set the token"

    @pytest.mark.parametrize("status_code", [404, 503])
    def test_pocketid_status_codes(self, status_code):
        error = PocketIDAPIError("request failed", status_code=status_code)

        assert str(error) == f"Pocket ID API error: HTTP {status_code}: request failed"
        assert error.service == "Pocket ID API"
        assert error.category == "external"

    def test_body_preview_truncates(self):
        error = PocketIDAPIError("bad", status_code=500, response_body="x" * 2000)

        preview = error.body_preview(limit=10)

        assert preview == "x" * 10 + "...<truncated>"
        assert PocketIDAPIError("bad").body_preview() is None

    def test_kubernetes_reason_in_message(self):
        error = KubernetesAPIError("patch failed", reason="Forbidden")

        assert error.reason == "Forbidden"
        assert "(reason: Forbidden)" in str(error)
        assert "RBAC" in error.user_action

    def test_configuration_error(self):
        error = ConfigurationError("POCKETID_API_TOKEN is not set")

        assert isinstance(error, OperatorError)
        assert error.category == "configuration"
        assert error.user_action == "Review and correct configuration"
