"""Unit tests for the kopf glue in handlers/client.py."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import kopf
import pytest

from pocketid_operator.constants import CLIENT_FINALIZER, MAX_RETRIES
from pocketid_operator.errors import PocketIDAPIError
from pocketid_operator.handlers.client import (
    get_reconciler,
    on_pocketid_client_event,
    retry_due,
    retry_failed_pocketid_client,
)
from pocketid_operator.utils.conditions import get_condition


def iso(delta: timedelta) -> str:
    return (datetime.now(UTC) + delta).isoformat()


@pytest.fixture
def memo():
    memo = kopf.Memo()
    memo.reconciler = AsyncMock()
    memo.reconciler.forget = MagicMock()
    return memo


class TestRetryDue:
    """Test the timer filter that selects resources waiting on a retry."""

    def test_failed_and_elapsed(self):
        status = {
            "phase": "Failed",
            "retryAttempt": 2,
            "nextRetryTime": iso(timedelta(seconds=-1)),
        }
        assert retry_due(status=status, meta={}) is True

    def test_failed_without_retry_time(self):
        assert retry_due(status={"phase": "Failed", "retryAttempt": 1}, meta={})

    def test_backoff_not_elapsed(self):
        status = {
            "phase": "Failed",
            "retryAttempt": 2,
            "nextRetryTime": iso(timedelta(minutes=5)),
        }
        assert retry_due(status=status, meta={}) is False

    def test_retries_exhausted(self):
        status = {"phase": "Failed", "retryAttempt": MAX_RETRIES}
        assert retry_due(status=status, meta={}) is False

    @pytest.mark.parametrize("phase", ["Ready", "Pending", "Retrying", "RemovalFailed"])
    def test_other_phases(self, phase):
        assert retry_due(status={"phase": phase}, meta={}) is False

    def test_no_status(self):
        assert retry_due(status={}, meta={}) is False

    def test_deleting(self):
        status = {"phase": "Failed", "retryAttempt": 1}
        meta = {"deletionTimestamp": "2026-01-01T00:00:00Z"}
        assert retry_due(status=status, meta=meta) is False

    def test_unparseable_status(self):
        assert retry_due(status={"phase": "Exploded"}, meta={}) is False


class TestEventHandler:
    """Test the watch event handler."""

    @pytest.mark.asyncio
    async def test_passes_copy_of_body(self, memo, body_factory):
        body = body_factory()
        event = {"type": "MODIFIED", "object": body}

        await on_pocketid_client_event(
            event=event, name="my-app", namespace="apps", memo=memo
        )

        memo.reconciler.reconcile.assert_awaited_once()
        passed = memo.reconciler.reconcile.await_args.args[0]
        assert passed == body
        assert passed is not body

    @pytest.mark.asyncio
    async def test_deleted_event_only_logged(self, memo, body_factory):
        event = {"type": "DELETED", "object": body_factory(deleting=True)}

        await on_pocketid_client_event(
            event=event, name="my-app", namespace="apps", memo=memo
        )

        memo.reconciler.reconcile.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_initial_listing_is_reconciled(self, memo, body_factory):
        """Events from the initial listing have no type."""
        event = {"type": None, "object": body_factory()}

        await on_pocketid_client_event(
            event=event, name="my-app", namespace="apps", memo=memo
        )

        memo.reconciler.reconcile.assert_awaited_once()


class TestRetryTimer:
    """Test the backoff timer."""

    @pytest.mark.asyncio
    async def test_reconciles_as_resync(self, memo, body_factory):
        body = body_factory(status={"phase": "Failed", "retryAttempt": 1})

        await retry_failed_pocketid_client(
            body=body, name="my-app", namespace="apps", memo=memo
        )

        memo.reconciler.reconcile.assert_awaited_once()
        call = memo.reconciler.reconcile.await_args
        assert call.args[0] == body
        assert call.kwargs == {"resync": True}


def test_get_reconciler_reuses_memo_instance(memo):
    assert get_reconciler(memo) is memo.reconciler


class TestRetryLifecycle:
    """Drive a permanently failing resource through the registered handlers."""

    @pytest.fixture
    def live_memo(self, reconciler):
        memo = kopf.Memo()
        memo.reconciler = reconciler
        return memo

    @pytest.mark.asyncio
    async def test_failures_end_in_max_retries_exceeded(
        self, live_memo, body_factory, pocketid, resource_api
    ):
        pocketid.errors["create_client"] = PocketIDAPIError("POST failed")
        body = body_factory(finalizers=[CLIENT_FINALIZER])
        ready_reasons = set()

        async def deliver(event_type):
            await on_pocketid_client_event(
                event={"type": event_type, "object": body},
                name="my-app",
                namespace="apps",
                memo=live_memo,
            )

        await deliver(None)
        for _ in range(3 * MAX_RETRIES):
            status = resource_api.merged_status()
            ready_reasons.add(get_condition(status["conditions"], "Ready")["reason"])
            if "nextRetryTime" in status:
                # Skip the wait instead of sleeping through the backoff
                status["nextRetryTime"] = iso(timedelta(seconds=-1))
            body["status"] = status

            # Status writes echo back as watch events of the same generation
            await deliver("MODIFIED")
            if retry_due(status=body["status"], meta=body["metadata"]):
                await retry_failed_pocketid_client(
                    body=body, name="my-app", namespace="apps", memo=live_memo
                )

        final = resource_api.merged_status()
        assert final["retryAttempt"] == MAX_RETRIES
        assert "nextRetryTime" not in final
        assert ready_reasons == {"ReconcileFailed", "MaxRetriesExceeded"}
        ready = get_condition(final["conditions"], "Ready")
        assert ready["reason"] == "MaxRetriesExceeded"
        assert retry_due(status=final, meta=body["metadata"]) is False


class TestDeletedEvent:
    """The final DELETED event releases per-resource state."""

    @pytest.mark.asyncio
    async def test_forgets_resource(self, memo, body_factory):
        event = {"type": "DELETED", "object": body_factory(deleting=True)}

        await on_pocketid_client_event(
            event=event, name="my-app", namespace="apps", memo=memo
        )

        memo.reconciler.forget.assert_called_once_with("uid-1", "apps", "my-app")
