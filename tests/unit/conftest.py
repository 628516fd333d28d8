"""
Shared fixtures for unit tests.

Provides in-memory stand-ins for the PocketIDClient resource API, the
credentials secret manager and the Pocket ID admin client. All fakes append
to one shared call log so tests can assert on the order of side effects.
"""

from copy import deepcopy
from typing import Any

import pytest

from pocketid_operator.constants import CLIENT_FINALIZER
from pocketid_operator.errors import KubernetesAPIError
from pocketid_operator.services.client_reconciler import PocketIDClientReconciler
from pocketid_operator.utils.dedup import GenerationLedger


class FakeResourceAPI:
    """Records metadata and status merge patches instead of sending them."""

    def __init__(self, calls: list[str]):
        self.calls = calls
        self.metadata_patches: list[dict[str, Any]] = []
        self.status_patches: list[dict[str, Any]] = []
        self.fail_status = False
        self.fail_metadata = False

    def patch_metadata(self, name, namespace, metadata):
        if self.fail_metadata:
            raise KubernetesAPIError("metadata patch refused", reason="Conflict")
        self.calls.append("patch_metadata")
        self.metadata_patches.append(deepcopy(metadata))
        return {}

    def patch_status(self, name, namespace, status):
        if self.fail_status:
            raise KubernetesAPIError("status patch refused", reason="Conflict")
        self.status_patches.append(deepcopy(status))
        return {}

    def merged_status(self, initial: dict[str, Any] | None = None) -> dict[str, Any]:
        """Status as the API server would hold it after all merge patches."""
        merged = deepcopy(initial or {})
        for patch in self.status_patches:
            for key, value in patch.items():
                if value is None:
                    merged.pop(key, None)
                else:
                    merged[key] = deepcopy(value)
        return merged


class FakeSecretManager:
    """Keeps credentials secrets in a dict."""

    def __init__(self, calls: list[str]):
        self.calls = calls
        self.secrets: dict[tuple[str, str], dict[str, str]] = {}
        self.owners: dict[tuple[str, str], dict[str, Any]] = {}
        self.apply_error: Exception | None = None
        self.delete_error: Exception | None = None

    async def apply_secret(self, namespace, name, string_data, owner_reference):
        if self.apply_error is not None:
            raise self.apply_error
        self.calls.append(f"apply_secret:{namespace}/{name}")
        self.secrets[(namespace, name)] = dict(string_data)
        self.owners[(namespace, name)] = dict(owner_reference)

    async def delete_secret(self, namespace, name):
        if self.delete_error is not None:
            raise self.delete_error
        self.calls.append(f"delete_secret:{namespace}/{name}")
        return self.secrets.pop((namespace, name), None) is not None


class FakePocketID:
    """In-memory Pocket ID server speaking the admin client interface."""

    def __init__(self, calls: list[str]):
        self.calls = calls
        self.clients: dict[str, dict[str, Any]] = {}
        self.errors: dict[str, Exception] = {}
        self._rotations = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    def _check(self, operation: str) -> None:
        if operation in self.errors:
            raise self.errors[operation]

    async def client_exists(self, client_id):
        self.calls.append(f"client_exists:{client_id}")
        return client_id in self.clients

    async def create_client(self, definition):
        self._check("create_client")
        self.calls.append(f"create_client:{definition.id}")
        self.clients[definition.id] = definition.model_dump(by_alias=True)

    async def update_client(self, client_id, definition):
        self._check("update_client")
        self.calls.append(f"update_client:{client_id}")
        self.clients[client_id] = {
            "id": client_id,
            **definition.model_dump(by_alias=True),
        }

    async def regenerate_client_secret(self, client_id):
        self._check("regenerate_client_secret")
        self.calls.append(f"regenerate_client_secret:{client_id}")
        self._rotations += 1
        return f"secret-{self._rotations}"

    async def delete_client(self, client_id):
        self._check("delete_client")
        self.calls.append(f"delete_client:{client_id}")
        self.clients.pop(client_id, None)


def make_body(
    name: str = "my-app",
    namespace: str = "apps",
    uid: str | None = "uid-1",
    generation: int | None = 1,
    spec: dict[str, Any] | None = None,
    status: dict[str, Any] | None = None,
    finalizers: list[str] | None = None,
    deleting: bool = False,
) -> dict[str, Any]:
    """Build a PocketIDClient body as delivered by the watch."""
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "finalizers": list(finalizers or []),
    }
    if uid is not None:
        metadata["uid"] = uid
    if generation is not None:
        metadata["generation"] = generation
    if deleting:
        metadata["deletionTimestamp"] = "2026-01-01T00:00:00Z"

    body: dict[str, Any] = {
        "apiVersion": "jeffrescignano.io/v1alpha1",
        "kind": "PocketIDClient",
        "metadata": metadata,
        "spec": {"name": "My App"} if spec is None else spec,
    }
    if status is not None:
        body["status"] = status
    return body


@pytest.fixture
def calls() -> list[str]:
    return []


@pytest.fixture
def resource_api(calls):
    return FakeResourceAPI(calls)


@pytest.fixture
def secret_manager(calls):
    return FakeSecretManager(calls)


@pytest.fixture
def pocketid(calls):
    return FakePocketID(calls)


@pytest.fixture
def ledger():
    return GenerationLedger()


@pytest.fixture
def reconciler(resource_api, secret_manager, pocketid, ledger):
    """Reconciler wired to in-memory fakes."""
    return PocketIDClientReconciler(
        resource_api=resource_api,
        secret_manager=secret_manager,
        pocketid_admin_factory=lambda: pocketid,
        ledger=ledger,
    )


@pytest.fixture
def finalized_body():
    """Body that already carries the operator finalizer."""
    return make_body(finalizers=[CLIENT_FINALIZER])


@pytest.fixture
def body_factory():
    """Factory for PocketIDClient bodies, see make_body."""
    return make_body
