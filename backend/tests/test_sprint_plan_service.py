"""
Sprint Planning Backend — Sprint Plan Service Unit Tests
==========================================================

What:  Tests for the validate → resolve → commit upsert workflow.
How:   Uses mock stores and a mock broadcaster (no database, no hub).

What we test:
    ✅ Read miss → create, read hit → replace (id doubles as partition key)
    ✅ Any read failure is treated as "does not exist"
    ✅ Incomplete records touch neither the store nor the hub
    ✅ Exactly one sprintPlanningTeamData event per successful write
    ✅ The team member path never carries points
    ✅ Conflicts and broadcast failures propagate
    ✅ Scoped lookup raises NotFoundError when empty
"""

import pytest

from sprintplanning.exceptions import (
    BroadcastError,
    ConflictError,
    DatabaseError,
    IncompleteRecordError,
    ItemNotFoundError,
    NotFoundError,
)
from sprintplanning.schemas.sprint_planning import SprintPlanningEntity, SprintPlanRequest
from sprintplanning.services.sprint_plan_service import BROADCAST_TARGET, SprintPlanService
from sprintplanning.services.store_base import ItemResponse

ALICE_ID = "AcmeFalcons2024-S3alice"


def _echo(entity, *args):
    return ItemResponse(resource=entity, request_charge=1.5)


@pytest.fixture
def request_payload(sample_payload):
    return SprintPlanRequest.model_validate(sample_payload)


class TestUpsertResolve:
    """Create-vs-replace decision."""

    def setup_method(self):
        self.service = SprintPlanService()

    @pytest.mark.asyncio
    async def test_read_miss_creates(self, mock_store, mock_broadcaster, request_payload):
        mock_store.read.side_effect = ItemNotFoundError(ALICE_ID)
        mock_store.create.side_effect = _echo

        result = await self.service.create_sprint_plan(
            request_payload, mock_store, mock_broadcaster
        )

        mock_store.read.assert_awaited_once_with(ALICE_ID, ALICE_ID)
        mock_store.create.assert_awaited_once()
        mock_store.replace.assert_not_awaited()
        assert result.id == ALICE_ID
        assert result.points == 5

    @pytest.mark.asyncio
    async def test_read_hit_replaces(self, mock_store, mock_broadcaster, request_payload):
        existing = SprintPlanningEntity.build("Acme", "Falcons", "2024-S3", "alice", 1)
        mock_store.read.return_value = ItemResponse(existing, 0.8)
        mock_store.replace.side_effect = _echo

        result = await self.service.create_sprint_plan(
            request_payload, mock_store, mock_broadcaster
        )

        mock_store.create.assert_not_awaited()
        entity, item_id, partition_key = mock_store.replace.await_args.args
        assert item_id == partition_key == ALICE_ID
        assert entity == result
        assert result.points == 5

    @pytest.mark.asyncio
    async def test_read_error_is_treated_as_absent(
        self, mock_store, mock_broadcaster, request_payload
    ):
        mock_store.read.side_effect = DatabaseError("connection reset")
        mock_store.create.side_effect = _echo

        await self.service.create_sprint_plan(request_payload, mock_store, mock_broadcaster)

        mock_store.create.assert_awaited_once()
        mock_broadcaster.publish.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_spurious_create_conflict_propagates(
        self, mock_store, mock_broadcaster, request_payload
    ):
        mock_store.read.side_effect = DatabaseError("timeout")
        mock_store.create.side_effect = ConflictError(ALICE_ID)

        with pytest.raises(ConflictError):
            await self.service.create_sprint_plan(
                request_payload, mock_store, mock_broadcaster
            )

        mock_broadcaster.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replace_miss_propagates(self, mock_store, mock_broadcaster, request_payload):
        existing = SprintPlanningEntity.build("Acme", "Falcons", "2024-S3", "alice")
        mock_store.read.return_value = ItemResponse(existing, 0.5)
        mock_store.replace.side_effect = ItemNotFoundError(ALICE_ID)

        with pytest.raises(ItemNotFoundError):
            await self.service.create_sprint_plan(
                request_payload, mock_store, mock_broadcaster
            )

        mock_broadcaster.publish.assert_not_awaited()


class TestUpsertValidate:

    def setup_method(self):
        self.service = SprintPlanService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["employer", "team", "sprintId", "teamMember"])
    async def test_incomplete_record_is_skipped(
        self, mock_store, mock_broadcaster, sample_payload, field
    ):
        sample_payload[field] = "  "
        request = SprintPlanRequest.model_validate(sample_payload)

        with pytest.raises(IncompleteRecordError) as exc_info:
            await self.service.create_team_member(request, mock_store, mock_broadcaster)

        assert exc_info.value.missing_fields == [field]
        mock_store.read.assert_not_awaited()
        mock_store.create.assert_not_awaited()
        mock_store.replace.assert_not_awaited()
        mock_broadcaster.publish.assert_not_awaited()


class TestUpsertCommit:

    def setup_method(self):
        self.service = SprintPlanService()

    @pytest.mark.asyncio
    async def test_publishes_written_entity_once(
        self, mock_store, mock_broadcaster, request_payload
    ):
        mock_store.read.side_effect = ItemNotFoundError(ALICE_ID)
        mock_store.create.side_effect = _echo

        result = await self.service.create_sprint_plan(
            request_payload, mock_store, mock_broadcaster
        )

        mock_broadcaster.publish.assert_awaited_once_with(BROADCAST_TARGET, [result])
        assert BROADCAST_TARGET == "sprintPlanningTeamData"

    @pytest.mark.asyncio
    async def test_team_member_path_drops_points(
        self, mock_store, mock_broadcaster, request_payload
    ):
        existing = SprintPlanningEntity.build("Acme", "Falcons", "2024-S3", "alice", 13)
        mock_store.read.return_value = ItemResponse(existing, 0.5)
        mock_store.replace.side_effect = _echo

        result = await self.service.create_team_member(
            request_payload, mock_store, mock_broadcaster
        )

        assert request_payload.points == 5
        assert result.points is None
        replaced = mock_store.replace.await_args.args[0]
        assert replaced.points is None

    @pytest.mark.asyncio
    async def test_broadcast_failure_after_write_propagates(
        self, mock_store, mock_broadcaster, request_payload
    ):
        mock_store.read.side_effect = ItemNotFoundError(ALICE_ID)
        mock_store.create.side_effect = _echo
        mock_broadcaster.publish.side_effect = BroadcastError()

        with pytest.raises(BroadcastError):
            await self.service.create_sprint_plan(
                request_payload, mock_store, mock_broadcaster
            )

        mock_store.create.assert_awaited_once()


class TestSprintPlanningQuery:

    def setup_method(self):
        self.service = SprintPlanService()

    @pytest.mark.asyncio
    async def test_returns_matching_entities(self, mock_store):
        entities = [
            SprintPlanningEntity.build("A", "T", "S", "alice", 3),
            SprintPlanningEntity.build("A", "T", "S", "bob", 5),
        ]
        mock_store.query.return_value = entities

        result = await self.service.get_sprint_planning_data("A", "T", "S", mock_store)

        mock_store.query.assert_awaited_once_with("A", "T", "S")
        assert result == entities

    @pytest.mark.asyncio
    async def test_empty_result_is_not_found(self, mock_store):
        mock_store.query.return_value = []

        with pytest.raises(NotFoundError):
            await self.service.get_sprint_planning_data("A", "T", "other", mock_store)
