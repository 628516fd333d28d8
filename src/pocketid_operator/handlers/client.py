"""
PocketIDClient handlers - kopf glue between the watch stream and the reconciler.

Every watch notification carries the full resource body and is handed to
PocketIDClientReconciler, which decides whether there is anything to do.
Failures are recorded on the resource by the reconciler and never raised
into kopf, so kopf's own retry machinery does not interfere with the
operator's backoff policy. A timer re-drives failed resources once their
backoff has elapsed.
"""

import copy
import logging
from datetime import UTC, datetime
from typing import Any

import kopf

from pocketid_operator.constants import (
    API_GROUP,
    API_VERSION,
    MAX_RETRIES,
    PLURAL,
    Phase,
)
from pocketid_operator.models.client import PocketIDClientStatus
from pocketid_operator.services import PocketIDClientReconciler
from pocketid_operator.settings import settings as operator_settings

logger = logging.getLogger(__name__)


def get_reconciler(memo: kopf.Memo) -> PocketIDClientReconciler:
    """Reconciler shared by all handlers, created on first use."""
    reconciler = getattr(memo, "reconciler", None)
    if reconciler is None:
        reconciler = PocketIDClientReconciler()
        memo.reconciler = reconciler
    return reconciler


def retry_due(status: dict[str, Any], meta: dict[str, Any], **_: Any) -> bool:
    """
    Whether a failed resource has waited out its backoff.

    Used as the timer filter so only resources with a pending retry wake
    the reconciler.
    """
    if meta.get("deletionTimestamp"):
        return False

    try:
        parsed = PocketIDClientStatus.model_validate(dict(status or {}))
    except ValueError:
        return False

    if parsed.phase != Phase.FAILED or parsed.retry_attempt >= MAX_RETRIES:
        return False
    retry_at = parsed.next_retry_time
    return retry_at is None or retry_at <= datetime.now(UTC)


@kopf.on.event(PLURAL, group=API_GROUP, version=API_VERSION)
async def on_pocketid_client_event(
    event: dict[str, Any],
    name: str,
    namespace: str,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """
    Handle every watch notification for a PocketIDClient.

    Args:
        event: Raw watch event with "type" and "object"
        name: Name of the PocketIDClient resource
        namespace: Namespace of the PocketIDClient resource
        memo: Operator-wide memo holding the shared reconciler
    """
    if event.get("type") == "DELETED":
        # Cleanup already ran while the finalizer held the object
        logger.info(f"PocketIDClient {namespace}/{name} deleted")
        uid = event["object"].get("metadata", {}).get("uid")
        if uid:
            get_reconciler(memo).forget(uid, namespace, name)
        return

    # The reconciler updates finalizers on the body it is given
    body = copy.deepcopy(event["object"])
    await get_reconciler(memo).reconcile(body)


@kopf.timer(
    PLURAL,
    group=API_GROUP,
    version=API_VERSION,
    interval=operator_settings.retry_resync_interval_seconds,
    when=retry_due,
)
async def retry_failed_pocketid_client(
    body: kopf.Body,
    name: str,
    namespace: str,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """
    Re-drive a failed PocketIDClient whose retry time has come.

    Watch events are deduplicated by generation, so without this timer a
    failed resource would only be retried on the next spec change.
    """
    logger.debug(f"Backoff elapsed for PocketIDClient {namespace}/{name}, retrying")
    await get_reconciler(memo).reconcile(copy.deepcopy(dict(body)), resync=True)
