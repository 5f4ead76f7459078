"""Tests for OfflineMutator — direct writes with queue fallback."""

import json

import httpx
import pytest

from chronyx.core import ConnectivityMonitor, OfflineMutator
from chronyx.protocols import MutationRejected, RemoteConfigError
from chronyx.storage import OfflineQueue


@pytest.fixture
def monitor(queue):
    return ConnectivityMonitor(queue)


@pytest.fixture
def mutator(queue, monitor):
    return OfflineMutator(queue, monitor=monitor)


@pytest.mark.asyncio
class TestOnline:
    async def test_insert_returns_row(self, mutator, rest_server, queue):
        rest_server.responder = lambda request: httpx.Response(201, json=[{"id": 1, "text": "x"}])

        outcome = await mutator.mutate("todos", "insert", {"text": "x"})

        assert outcome.queued is False
        assert outcome.record == {"id": 1, "text": "x"}
        assert rest_server.requests[0].headers["Prefer"] == "return=representation"
        assert queue.queue_status().count == 0

    async def test_update_uses_default_match_column(self, mutator, rest_server):
        rest_server.responder = lambda request: httpx.Response(200, json=[{"id": "abc"}])

        await mutator.mutate("todos", "update", {"status": "done"}, match_value="abc")

        request = rest_server.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.abc"

    async def test_delete_returns_no_record(self, mutator, rest_server):
        rest_server.responder = lambda request: httpx.Response(204)

        outcome = await mutator.mutate("todos", "delete", match_value="abc")

        assert outcome.queued is False
        assert outcome.record is None

    async def test_network_error_falls_back_to_queue(self, mutator, rest_server, queue):
        rest_server.drop_connection()

        outcome = await mutator.mutate("expenses", "insert", {"amount": 40})

        assert outcome.queued is True
        queued = queue.get(outcome.mutation_id)
        assert queued.table == "expenses"
        assert queued.data == {"amount": 40}

    async def test_rejection_is_raised_not_queued(self, mutator, rest_server, queue):
        rest_server.fail_with(400, "bad column")

        with pytest.raises(MutationRejected):
            await mutator.mutate("todos", "insert", {"nope": 1})

        assert queue.queue_status().count == 0

    async def test_missing_credentials_raised(self, store, unconfigured_client):
        q = OfflineQueue(store, unconfigured_client, record_events=False)
        with pytest.raises(RemoteConfigError):
            await OfflineMutator(q).mutate("todos", "insert", {})

    async def test_without_monitor_assumes_online(self, queue, rest_server):
        await OfflineMutator(queue).mutate("todos", "insert", {"a": 1})
        assert len(rest_server.requests) == 1


@pytest.mark.asyncio
class TestOffline:
    async def test_offline_write_is_queued(self, mutator, monitor, rest_server, queue):
        monitor.mark_offline()

        outcome = await mutator.mutate("todos", "upsert", {"id": 3, "text": "later"})

        assert outcome.queued is True
        assert rest_server.requests == []
        assert queue.get(outcome.mutation_id).operation == "upsert"

    async def test_queued_write_replays_on_reconnect(self, mutator, monitor, rest_server):
        monitor.mark_offline()
        await mutator.mutate("todos", "update", {"status": "done"}, match_value="abc")

        result = await monitor.mark_online()

        assert result.succeeded == 1
        assert rest_server.requests[0].url.params["id"] == "eq.abc"
        assert json.loads(rest_server.requests[0].content) == {"status": "done"}


@pytest.mark.asyncio
class TestValidation:
    @pytest.mark.parametrize("operation", ["update", "delete"])
    async def test_matched_operations_need_value(self, mutator, operation):
        with pytest.raises(ValueError, match="match_value required"):
            await mutator.mutate("todos", operation, {})

    async def test_unknown_operation(self, mutator):
        with pytest.raises(ValueError):
            await mutator.mutate("todos", "replace", {})
