"""Unit tests for the PocketIDClient CRD manifest and registration."""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException

from pocketid_operator.constants import CRD_NAME, Phase
from pocketid_operator.crd import build_crd_manifest, register_crd
from pocketid_operator.errors import KubernetesAPIError


class TestManifest:
    """Test the generated CustomResourceDefinition body."""

    def test_names_and_scope(self):
        manifest = build_crd_manifest()

        assert manifest["metadata"]["name"] == "pocketidclients.jeffrescignano.io"
        assert manifest["spec"]["scope"] == "Namespaced"
        assert manifest["spec"]["names"] == {
            "kind": "PocketIDClient",
            "plural": "pocketidclients",
            "singular": "pocketidclient",
            "shortNames": ["pidc"],
        }

    def test_version_has_status_subresource(self):
        version = build_crd_manifest()["spec"]["versions"][0]

        assert version["name"] == "v1alpha1"
        assert version["served"] and version["storage"]
        assert version["subresources"] == {"status": {}}

    def test_spec_requires_name(self):
        schema = build_crd_manifest()["spec"]["versions"][0]["schema"]
        spec = schema["openAPIV3Schema"]["properties"]["spec"]

        assert spec["required"] == ["name"]
        assert "secretTemplate" in spec["properties"]

    def test_status_phase_enum(self):
        schema = build_crd_manifest()["spec"]["versions"][0]["schema"]
        status = schema["openAPIV3Schema"]["properties"]["status"]

        assert status["properties"]["phase"]["enum"] == [p.value for p in Phase]

    def test_printer_columns(self):
        columns = build_crd_manifest()["spec"]["versions"][0][
            "additionalPrinterColumns"
        ]
        by_name = {c["name"]: c for c in columns}

        assert by_name["Status"]["jsonPath"] == ".status.phase"
        assert by_name["Client ID"]["jsonPath"] == ".status.clientId"
        assert by_name["Retries"]["priority"] == 1
        assert by_name["Next Retry"]["priority"] == 1
        assert "Age" in by_name


class TestRegisterCRD:
    """Test create-or-replace registration."""

    @pytest.fixture
    def api(self):
        with patch("pocketid_operator.crd.client.ApiextensionsV1Api") as api_cls:
            yield api_cls.return_value

    def test_creates_when_missing(self, api):
        register_crd(MagicMock())

        api.create_custom_resource_definition.assert_called_once()
        api.replace_custom_resource_definition.assert_not_called()

    def test_replaces_existing(self, api):
        api.create_custom_resource_definition.side_effect = ApiException(
            status=409, reason="AlreadyExists"
        )
        api.read_custom_resource_definition.return_value.metadata.resource_version = (
            "42"
        )

        register_crd(MagicMock())

        kwargs = api.replace_custom_resource_definition.call_args.kwargs
        assert kwargs["name"] == CRD_NAME
        assert kwargs["body"]["metadata"]["resourceVersion"] == "42"

    def test_create_failure(self, api):
        api.create_custom_resource_definition.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        with pytest.raises(KubernetesAPIError):
            register_crd(MagicMock())

    def test_replace_failure(self, api):
        api.create_custom_resource_definition.side_effect = ApiException(
            status=409, reason="AlreadyExists"
        )
        api.replace_custom_resource_definition.side_effect = ApiException(
            status=422, reason="Invalid"
        )

        with pytest.raises(KubernetesAPIError):
            register_crd(MagicMock())
