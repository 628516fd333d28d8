"""
Pocket ID client reconciler.

This module drives a PocketIDClient resource through its lifecycle: it
creates or updates the OIDC client in Pocket ID, rotates its secret,
materializes the credentials secret and records progress in status. Failed
attempts are retried with exponential backoff up to MAX_RETRIES; deletion
removes the Pocket ID client and the secret before releasing the finalizer.
"""

import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..constants import (
    CONDITION_CLIENT_CREATED,
    CONDITION_CLIENT_UPDATED,
    CONDITION_FALSE,
    CONDITION_READY,
    CONDITION_RECONCILING,
    CONDITION_SECRET_CREATED,
    CONDITION_TRUE,
    KIND,
    MAX_RETRIES,
    REASON_CREATE_SUCCEEDED,
    REASON_DELETION_FAILED,
    REASON_MAX_RETRIES_EXCEEDED,
    REASON_RECONCILE_FAILED,
    REASON_RECONCILE_STARTED,
    REASON_RECONCILE_SUCCEEDED,
    REASON_RETRY_STARTED,
    REASON_SECRET_READY,
    REASON_UPDATE_SUCCEEDED,
    SECRET_NAME_SUFFIX,
    Phase,
)
from ..errors import ValidationError
from ..models.client import PocketIDClientSpec, PocketIDClientStatus
from ..observability.metrics import metrics_collector
from ..utils.backoff import next_retry_time
from ..utils.dedup import GenerationLedger, generation_ledger
from ..utils.finalizers import FinalizerManager
from ..utils.kubernetes import PocketIDClientResourceAPI, build_owner_reference
from ..utils.pocketid_admin import PocketIDAdminClient, get_pocketid_admin_client
from ..utils.secret_manager import ClientSecretManager, render_secret_data
from ..utils.templates import TemplateContext
from .base_reconciler import BaseReconciler, StatusRecorder


class PocketIDClientReconciler(BaseReconciler):
    """
    Reconciler for PocketIDClient resources.

    One call to reconcile() handles one delivered event. The gates are
    evaluated in order: dedup, deletion, already satisfied, backoff and
    max retries. Only when all pass does an attempt start.
    """

    resource_type = "pocketidclient"

    def __init__(
        self,
        resource_api: PocketIDClientResourceAPI | None = None,
        finalizers: FinalizerManager | None = None,
        secret_manager: ClientSecretManager | None = None,
        pocketid_admin_factory: Callable[[], PocketIDAdminClient] | None = None,
        ledger: GenerationLedger | None = None,
    ):
        """
        Initialize Pocket ID client reconciler.

        Args:
            resource_api: Access to PocketIDClient resources
            finalizers: Finalizer manager, built on resource_api if not provided
            secret_manager: Manager for the credentials secret
            pocketid_admin_factory: Factory creating a Pocket ID admin client
            ledger: Generation dedup ledger, the shared one by default
        """
        super().__init__(resource_api)
        self.finalizers = finalizers or FinalizerManager(self.resource_api)
        self.secret_manager = secret_manager or ClientSecretManager()
        self.pocketid_admin_factory = (
            pocketid_admin_factory or get_pocketid_admin_client
        )
        self.ledger = generation_ledger if ledger is None else ledger
        # UIDs whose deletion already ran; dropped when the object leaves the API
        self._settled_deletions: set[str] = set()

    async def reconcile(self, body: dict[str, Any], *, resync: bool = False) -> None:
        """
        Handle one delivery of a PocketIDClient.

        Args:
            body: Resource body; finalizer changes are applied to it in place
            resync: Whether this run was triggered by the retry timer. Resync
                runs bypass the dedup ledger and never update it.
        """
        metadata = body.get("metadata", {})
        name = metadata.get("name")
        namespace = metadata.get("namespace")
        uid = metadata.get("uid")
        generation = metadata.get("generation")
        deleting = bool(metadata.get("deletionTimestamp"))

        if deleting and uid in self._settled_deletions:
            self.logger.debug(f"Deletion of {KIND} {namespace}/{name} already handled")
            return

        if not deleting and not resync:
            if not uid or generation is None:
                self.logger.debug(
                    f"Ignoring {KIND} {namespace}/{name} without uid or generation"
                )
                return
            if self.ledger.is_processed(uid, generation):
                self.logger.debug(
                    f"Ignoring status-only update of {KIND} {namespace}/{name}",
                    resource_name=name,
                    namespace=namespace,
                )
                metrics_collector.record_skip(namespace, "duplicate")
                return
            self.ledger.record(uid, generation)

        async with self.lock_for(uid or f"{namespace}/{name}"):
            if not deleting:
                await self._handle_upsert(body)
                return
            attempted = await self._handle_deletion(body)

        # Events caused by our own deletion writes must not start another run
        if attempted and uid:
            self._settled_deletions.add(uid)
        if not self.finalizers.has_finalizer(body):
            if uid:
                self.ledger.forget(uid)
                self.release_lock(uid)
            metrics_collector.forget_resource(namespace, name)

    def forget(self, uid: str, namespace: str, name: str) -> None:
        """Drop all per-resource state once the object is gone from the API."""
        self._settled_deletions.discard(uid)
        self.ledger.forget(uid)
        self.release_lock(uid)
        metrics_collector.forget_resource(namespace, name)

    async def _handle_upsert(self, body: dict[str, Any]) -> None:
        metadata = body["metadata"]
        name, namespace = metadata["name"], metadata["namespace"]
        generation = metadata.get("generation")
        status = self._parse_status(body)

        if status.observed_generation == generation and status.phase == Phase.READY:
            self.logger.debug(f"{KIND} {namespace}/{name} already reconciled")
            metrics_collector.record_skip(namespace, "up_to_date")
            return

        if (
            status.phase != Phase.READY
            and status.observed_generation == generation
            and status.next_retry_time is not None
            and status.next_retry_time > datetime.now(UTC)
        ):
            self.logger.debug(
                f"{KIND} {namespace}/{name} in backoff until "
                f"{status.next_retry_time.isoformat()}"
            )
            metrics_collector.record_skip(namespace, "backoff")
            return

        # A new generation starts counting from zero again
        retry_attempt = (
            status.retry_attempt if status.observed_generation == generation else 0
        )
        recorder = self.status_recorder(body)

        if retry_attempt >= MAX_RETRIES:
            self.logger.warning(
                f"Max retries exceeded for {KIND} {namespace}/{name}, giving up",
                resource_name=name,
                namespace=namespace,
                retry_attempt=retry_attempt,
            )
            recorder.record_condition(
                CONDITION_READY,
                CONDITION_FALSE,
                REASON_MAX_RETRIES_EXCEEDED,
                self._gave_up_message(retry_attempt),
            )
            metrics_collector.record_skip(namespace, "max_retries")
            return

        start_time = time.time()
        self.logger.log_reconciliation_start(
            resource_type=self.resource_type, resource_name=name, namespace=namespace
        )

        async with metrics_collector.track_reconciliation(namespace) as outcome:
            try:
                self.finalizers.ensure(body)
                self._begin_attempt(recorder, retry_attempt)
                client_id, secret_name = await self.do_reconcile(body, recorder)
            except Exception as e:
                outcome["result"] = "error"
                failed_attempt = retry_attempt + 1
                self.logger.log_reconciliation_error(
                    resource_type=self.resource_type,
                    resource_name=name,
                    namespace=namespace,
                    error=e,
                    duration=time.time() - start_time,
                    retry_attempt=failed_attempt,
                )
                if failed_attempt >= MAX_RETRIES:
                    # Terminal: nothing re-drives the resource until the spec changes
                    self.update_status_failed(
                        recorder,
                        Phase.FAILED.value,
                        REASON_MAX_RETRIES_EXCEEDED,
                        f"Reconciliation failed: {e}. "
                        f"{self._gave_up_message(failed_attempt)}",
                        extra_fields={
                            "retryAttempt": failed_attempt,
                            "nextRetryTime": None,
                        },
                    )
                else:
                    self.update_status_failed(
                        recorder,
                        Phase.FAILED.value,
                        REASON_RECONCILE_FAILED,
                        f"Reconciliation failed: {e}. "
                        f"Retry {failed_attempt}/{MAX_RETRIES} scheduled.",
                        extra_fields={
                            "retryAttempt": failed_attempt,
                            "nextRetryTime": next_retry_time(
                                failed_attempt
                            ).isoformat(),
                        },
                    )
                metrics_collector.set_retry_attempt(namespace, name, failed_attempt)
                return

        recorder.patch(
            {
                "phase": Phase.READY.value,
                "clientId": client_id,
                "secretName": secret_name,
                "retryAttempt": 0,
                "nextRetryTime": None,
            }
        )
        recorder.record_condition(
            CONDITION_READY,
            CONDITION_TRUE,
            REASON_RECONCILE_SUCCEEDED,
            "Reconciliation completed successfully",
        )
        metrics_collector.set_retry_attempt(namespace, name, 0)
        self.logger.log_reconciliation_success(
            resource_type=self.resource_type,
            resource_name=name,
            namespace=namespace,
            duration=time.time() - start_time,
        )

    @staticmethod
    def _gave_up_message(attempts: int) -> str:
        return (
            f"Gave up after {attempts} failed attempts. Manual intervention required."
        )

    def _begin_attempt(self, recorder: StatusRecorder, retry_attempt: int) -> None:
        if retry_attempt > 0:
            phase = Phase.RETRYING
            reason = REASON_RETRY_STARTED
            message = f"Retry attempt {retry_attempt + 1}/{MAX_RETRIES}"
        else:
            phase = Phase.PENDING
            reason = REASON_RECONCILE_STARTED
            message = "Starting reconciliation"

        recorder.patch({"phase": phase.value, "nextRetryTime": None})
        recorder.record_condition(CONDITION_RECONCILING, CONDITION_TRUE, reason, message)

    async def do_reconcile(
        self, body: dict[str, Any], recorder: StatusRecorder
    ) -> tuple[str, str]:
        """
        Bring the Pocket ID client and the credentials secret in line with spec.

        Args:
            body: Resource body
            recorder: Status recorder for this attempt

        Returns:
            The Pocket ID client ID and the credentials secret name

        Raises:
            OperatorError: If any step fails
        """
        metadata = body["metadata"]
        name, namespace = metadata["name"], metadata["namespace"]
        spec = self._validate_spec(body.get("spec"))

        client_id = spec.resolve_client_id(name)
        secret_name = spec.resolve_secret_name(name)

        async with self.pocketid_admin_factory() as pocketid:
            if await pocketid.client_exists(client_id):
                await pocketid.update_client(client_id, spec.to_update_payload())
                client_secret = await pocketid.regenerate_client_secret(client_id)
                recorder.record_condition(
                    CONDITION_CLIENT_UPDATED,
                    CONDITION_TRUE,
                    REASON_UPDATE_SUCCEEDED,
                    f"OIDC client {client_id} updated",
                )
            else:
                await pocketid.create_client(spec.to_create_payload(client_id))
                client_secret = await pocketid.regenerate_client_secret(client_id)
                recorder.record_condition(
                    CONDITION_CLIENT_CREATED,
                    CONDITION_TRUE,
                    REASON_CREATE_SUCCEEDED,
                    f"OIDC client {client_id} created",
                )

        context = TemplateContext(
            ClientID=client_id,
            ClientSecret=client_secret,
            ClientName=spec.name,
            Namespace=namespace,
            ResourceName=name,
        )
        await self.secret_manager.apply_secret(
            namespace=namespace,
            name=secret_name,
            string_data=render_secret_data(spec.secret_template, context),
            owner_reference=build_owner_reference(name, metadata["uid"]),
        )
        recorder.record_condition(
            CONDITION_SECRET_CREATED,
            CONDITION_TRUE,
            REASON_SECRET_READY,
            f"Secret {secret_name} created/updated",
        )

        return client_id, secret_name

    async def _handle_deletion(self, body: dict[str, Any]) -> bool:
        """Run the deletion sequence; returns whether cleanup was attempted."""
        metadata = body["metadata"]
        name, namespace = metadata["name"], metadata["namespace"]

        if not self.finalizers.has_finalizer(body):
            self.logger.debug(f"{KIND} {namespace}/{name} has no finalizer, skipping")
            return False

        start_time = time.time()
        self.logger.log_reconciliation_start(
            resource_type=self.resource_type,
            resource_name=name,
            namespace=namespace,
            operation="delete",
        )
        recorder = self.status_recorder(body)
        recorder.patch({"phase": Phase.REMOVING.value})

        async with metrics_collector.track_reconciliation(
            namespace, operation="delete"
        ) as outcome:
            try:
                await self.cleanup_resources(body, recorder)
                self.finalizers.release(body)
            except Exception as e:
                outcome["result"] = "error"
                self.logger.log_reconciliation_error(
                    resource_type=self.resource_type,
                    resource_name=name,
                    namespace=namespace,
                    error=e,
                    duration=time.time() - start_time,
                    operation="delete",
                )
                self.update_status_failed(
                    recorder,
                    Phase.REMOVAL_FAILED.value,
                    REASON_DELETION_FAILED,
                    f"Deletion failed: {e}",
                )
                return True

        self.logger.log_reconciliation_success(
            resource_type=self.resource_type,
            resource_name=name,
            namespace=namespace,
            duration=time.time() - start_time,
            operation="delete",
        )
        return True

    async def cleanup_resources(
        self, body: dict[str, Any], recorder: StatusRecorder
    ) -> None:
        """
        Delete the Pocket ID client and the credentials secret.

        Identifiers come from status first, since they record what was
        actually created, then from spec, then from the resource name.

        Raises:
            OperatorError: If either deletion fails
        """
        metadata = body["metadata"]
        name, namespace = metadata["name"], metadata["namespace"]
        spec = body.get("spec") or {}
        status = recorder.status
        template = spec.get("secretTemplate") or {}

        client_id = status.get("clientId") or spec.get("id") or name
        secret_name = (
            status.get("secretName")
            or template.get("name")
            or f"{name}{SECRET_NAME_SUFFIX}"
        )

        async with self.pocketid_admin_factory() as pocketid:
            if await pocketid.client_exists(client_id):
                await pocketid.delete_client(client_id)
            else:
                self.logger.info(
                    f"OIDC client {client_id} already absent from Pocket ID",
                    client_id=client_id,
                )

        await self.secret_manager.delete_secret(namespace, secret_name)

    def _validate_spec(self, spec: dict[str, Any] | None) -> PocketIDClientSpec:
        """
        Validate and parse the PocketIDClient specification.

        Raises:
            ValidationError: If the specification is invalid
        """
        if not spec or not spec.get("name"):
            raise ValidationError("spec.name is required", field="name")
        try:
            return PocketIDClientSpec.model_validate(spec)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {KIND} specification: {e}") from e

    def _parse_status(self, body: dict[str, Any]) -> PocketIDClientStatus:
        try:
            return PocketIDClientStatus.model_validate(body.get("status") or {})
        except PydanticValidationError as e:
            name = body["metadata"]["name"]
            self.logger.warning(f"Ignoring unreadable status of {KIND} {name}: {e}")
            return PocketIDClientStatus()
