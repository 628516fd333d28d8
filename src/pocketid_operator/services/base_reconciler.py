"""
Base reconciler class providing common patterns for resource reconciliation.

This module defines the BaseReconciler class and the StatusRecorder used to
write status patches. Status writes are best effort: a failed patch is
logged and reconciliation carries on.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any

from ..constants import CONDITION_FALSE, CONDITION_READY
from ..observability.logging import OperatorLogger
from ..utils.conditions import build_condition, upsert_condition
from ..utils.kubernetes import PocketIDClientResourceAPI


class StatusRecorder:
    """
    Per-invocation view of a resource's status.

    Every write is sent as its own merge patch of the status subresource and
    folded into an in-memory copy, so later steps of the same invocation
    build on what was written before (the conditions list in particular).
    """

    def __init__(
        self,
        resource_api: PocketIDClientResourceAPI,
        name: str,
        namespace: str,
        generation: int | None,
        current: dict[str, Any] | None,
        logger: OperatorLogger,
    ):
        self.resource_api = resource_api
        self.name = name
        self.namespace = namespace
        self.generation = generation
        self.logger = logger
        self.status: dict[str, Any] = dict(current or {})

    def patch(self, fields: dict[str, Any]) -> None:
        """
        Merge fields into the status and stamp observedGeneration.

        Args:
            fields: camelCase status fields; None clears a field
        """
        fields = {**fields, "observedGeneration": self.generation}
        self._send(fields)

    def record_condition(
        self,
        condition_type: str,
        status: str,
        reason: str,
        message: str,
    ) -> None:
        """Upsert one condition and patch the full conditions list."""
        condition = build_condition(
            condition_type, status, reason, message, self.generation
        )
        conditions = upsert_condition(self.status.get("conditions"), condition)
        self._send({"conditions": conditions})

    def _send(self, fields: dict[str, Any]) -> None:
        self.status.update(fields)
        try:
            self.resource_api.patch_status(self.name, self.namespace, fields)
        except Exception as e:
            # Status is informational; the next reconciliation rewrites it
            self.logger.warning(
                f"Failed to patch status of {self.namespace}/{self.name}: {e}",
                resource_name=self.name,
                namespace=self.namespace,
                error_type=type(e).__name__,
            )


class BaseReconciler(ABC):
    """
    Base class for resource reconcilers.

    Provides common patterns for:
    - Status recording with conditions
    - Per-resource serialization of reconciliation runs
    - Reconciliation lifecycle hooks
    """

    resource_type = "resource"

    def __init__(self, resource_api: PocketIDClientResourceAPI | None = None):
        """
        Initialize base reconciler.

        Args:
            resource_api: Access to the primary resources, created if not provided
        """
        self.resource_api = resource_api or PocketIDClientResourceAPI()
        self.logger = OperatorLogger(self.__class__.__name__)
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def status_recorder(self, body: dict[str, Any]) -> StatusRecorder:
        """Create a StatusRecorder for the resource in body."""
        metadata = body.get("metadata", {})
        return StatusRecorder(
            resource_api=self.resource_api,
            name=metadata["name"],
            namespace=metadata["namespace"],
            generation=metadata.get("generation"),
            current=body.get("status"),
            logger=self.logger,
        )

    def lock_for(self, uid: str) -> asyncio.Lock:
        """Lock serializing all runs for one resource UID."""
        return self._locks[uid]

    def release_lock(self, uid: str) -> None:
        lock = self._locks.get(uid)
        if lock is not None and not lock.locked():
            del self._locks[uid]

    def update_status_failed(
        self,
        recorder: StatusRecorder,
        phase: str,
        reason: str,
        message: str,
        extra_fields: dict[str, Any] | None = None,
    ) -> None:
        """Record a failed phase with a Ready=False condition."""
        recorder.patch({"phase": phase, **(extra_fields or {})})
        recorder.record_condition(CONDITION_READY, CONDITION_FALSE, reason, message)

    @abstractmethod
    async def reconcile(self, body: dict[str, Any], *, resync: bool = False) -> None:
        """
        Drive the resource in body toward its declared state.

        Args:
            body: Resource body owned by the caller
            resync: Whether this run was triggered by the retry timer
        """

    @abstractmethod
    async def cleanup_resources(
        self, body: dict[str, Any], recorder: StatusRecorder
    ) -> None:
        """Remove everything derived from the resource before it is deleted."""
