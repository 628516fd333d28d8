"""Unit tests for secret template rendering."""

import pytest

from pocketid_operator.models.client import SecretTemplate
from pocketid_operator.utils.secret_manager import render_secret_data
from pocketid_operator.utils.templates import TemplateContext, render_template

CONTEXT = TemplateContext(
    ClientID="abc",
    ClientSecret="s3cr3t",
    ClientName="My App",
    Namespace="apps",
    ResourceName="my-app",
)


class TestRenderTemplate:
    """Test placeholder substitution."""

    def test_client_id(self):
        """Recognized placeholders are replaced."""
        assert render_template("{{ .ClientID }}", TemplateContext("abc", "")) == "abc"

    @pytest.mark.parametrize(
        "template",
        ["{{.ClientID}}", "{{ .ClientID }}", "{{   .ClientID\t}}"],
    )
    def test_whitespace_tolerant(self, template):
        """Whitespace inside the braces is ignored."""
        assert render_template(template, CONTEXT) == "abc"

    def test_all_fields(self):
        """Every context field can be referenced."""
        template = (
            "{{ .ClientID }}:{{ .ClientSecret }}:{{ .ClientName }}:"
            "{{ .Namespace }}:{{ .ResourceName }}"
        )
        assert render_template(template, CONTEXT) == "abc:s3cr3t:My App:apps:my-app"

    def test_unknown_placeholder_unchanged(self):
        """Unrecognized placeholders are returned as written."""
        assert render_template("{{ .Foo }}", CONTEXT) == "{{ .Foo }}"

    def test_embedded_in_text(self):
        """Placeholders can be part of larger strings."""
        rendered = render_template(
            "https://{{ .Namespace }}.example.com/?id={{ .ClientID }}", CONTEXT
        )
        assert rendered == "https://apps.example.com/?id=abc"

    def test_no_placeholders_is_identity(self):
        """Plain strings pass through unchanged."""
        assert render_template("plain value", CONTEXT) == "plain value"

    def test_single_pass(self):
        """Substituted values are not rendered again."""
        context = TemplateContext(ClientID="{{ .ClientSecret }}", ClientSecret="x")
        assert render_template("{{ .ClientID }}", context) == "{{ .ClientSecret }}"


class TestRenderSecretData:
    """Test the secret payload built from a template."""

    def test_default_map_without_template(self):
        """Without a template the payload has CLIENT_ID and CLIENT_SECRET."""
        assert render_secret_data(None, TemplateContext("x", "y")) == {
            "CLIENT_ID": "x",
            "CLIENT_SECRET": "y",
        }

    def test_template_without_data_uses_default(self):
        """A template that only renames the secret keeps the default keys."""
        template = SecretTemplate(name="custom")
        assert render_secret_data(template, TemplateContext("x", "y")) == {
            "CLIENT_ID": "x",
            "CLIENT_SECRET": "y",
        }

    def test_template_data_replaces_default(self):
        """Template data defines the keys and renders each value."""
        template = SecretTemplate(
            data={"OIDC_ID": "{{ .ClientID }}", "OIDC_SECRET": "{{ .ClientSecret }}"}
        )
        assert render_secret_data(template, CONTEXT) == {
            "OIDC_ID": "abc",
            "OIDC_SECRET": "s3cr3t",
        }
