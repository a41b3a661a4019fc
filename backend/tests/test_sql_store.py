"""
Sprint Planning Backend — SQL Document Store Tests
====================================================

What:  Tests for SqlDocumentStore against a temporary SQLite database.
How:   Each test gets a fresh database file through the store_engine fixture.

What we test:
    ✅ create → read round trip, with a cost metric
    ✅ create on an existing id raises ConflictError
    ✅ read / replace of a missing document raise ItemNotFoundError
    ✅ a foreign partition key cannot see the document
    ✅ replace overwrites every field (points can be cleared)
    ✅ query is scoped to employer/team/sprint
"""

import pytest

from sprintplanning.exceptions import ConflictError, ItemNotFoundError
from sprintplanning.models.sprint_planning_item import SprintPlanningItem
from sprintplanning.schemas.sprint_planning import SprintPlanningEntity


def _entity(member="alice", points=None, sprint="S1"):
    return SprintPlanningEntity.build("Acme", "Falcons", sprint, member, points)


class TestPointOperations:

    @pytest.mark.asyncio
    async def test_create_then_read(self, sql_store):
        entity = _entity(points=8)

        created = await sql_store.create(entity)
        fetched = await sql_store.read(entity.id, entity.id)

        assert created.resource == entity
        assert fetched.resource == entity
        assert fetched.request_charge >= 0

    @pytest.mark.asyncio
    async def test_create_existing_id_conflicts(self, sql_store):
        entity = _entity()
        await sql_store.create(entity)

        with pytest.raises(ConflictError):
            await sql_store.create(_entity(points=3))

    @pytest.mark.asyncio
    async def test_read_missing_document(self, sql_store):
        with pytest.raises(ItemNotFoundError):
            await sql_store.read("nobody", "nobody")

    @pytest.mark.asyncio
    async def test_read_with_foreign_partition_key(self, sql_store):
        entity = _entity()
        await sql_store.create(entity)

        with pytest.raises(ItemNotFoundError):
            await sql_store.read(entity.id, "another-partition")

    @pytest.mark.asyncio
    async def test_replace_missing_document(self, sql_store):
        entity = _entity()

        with pytest.raises(ItemNotFoundError):
            await sql_store.replace(entity, entity.id, entity.id)

    @pytest.mark.asyncio
    async def test_replace_overwrites_all_fields(self, sql_store):
        await sql_store.create(_entity(points=13))

        replaced = await sql_store.replace(_entity(points=None), _entity().id, _entity().id)
        fetched = await sql_store.read(_entity().id, _entity().id)

        assert replaced.resource.points is None
        assert fetched.resource.points is None

    @pytest.mark.asyncio
    async def test_second_write_wins(self, sql_store):
        entity = _entity(points=3)
        await sql_store.create(entity)
        await sql_store.replace(_entity(points=5), entity.id, entity.id)

        fetched = await sql_store.read(entity.id, entity.id)

        assert fetched.resource.points == 5


class TestScopedQuery:

    @pytest.mark.asyncio
    async def test_returns_every_member_of_the_sprint(self, sql_store):
        await sql_store.create(_entity("alice", 3))
        await sql_store.create(_entity("bob", 5))
        await sql_store.create(_entity("carol", 8, sprint="S2"))

        result = await sql_store.query("Acme", "Falcons", "S1")

        assert sorted(e.team_member for e in result) == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_unknown_sprint_is_empty(self, sql_store):
        await sql_store.create(_entity("alice"))

        assert await sql_store.query("Acme", "Falcons", "other") == []

    @pytest.mark.asyncio
    async def test_match_is_case_sensitive(self, sql_store):
        await sql_store.create(_entity("alice"))

        assert await sql_store.query("acme", "Falcons", "S1") == []


class TestLongValues:

    def test_scope_columns_have_no_length_limit(self):
        columns = SprintPlanningItem.__table__.c
        for name in ("id", "employer", "team", "sprint_id", "team_member"):
            assert columns[name].type.length is None

    @pytest.mark.asyncio
    async def test_long_scope_values_round_trip(self, sql_store):
        entity = SprintPlanningEntity.build("E" * 400, "Falcons", "S1", "m" * 400, 2)

        await sql_store.create(entity)
        fetched = await sql_store.read(entity.id, entity.id)

        assert fetched.resource == entity


@pytest.mark.asyncio
async def test_health_check(sql_store):
    assert await sql_store.health_check() is True
