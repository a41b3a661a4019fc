"""
Sprint Planning Backend — Sprint Plan Service (Upsert Orchestrator)
=====================================================================

What:  The upsert-and-broadcast workflow behind both write functions, plus
       the scoped lookup behind getSprintPlanningData.
How:   Composes a DocumentStore and a BroadcastService passed in per call.
Who:   Called by route handlers in routes/sprint_plans.py.

Orchestration Flow (POST /api/createSprintPlan[TeamMember]):
    ┌────────────┐    ┌──────────────────────┐    ┌──────────────────────┐
    │  Validate  │───▶│  Resolve             │───▶│  Commit              │
    │  4 fields  │    │  read(id, id)        │    │  publish(            │
    │            │    │  miss → create       │    │   "sprintPlanning-   │
    │            │    │  hit  → replace      │    │    TeamData", [e])   │
    └────────────┘    └──────────────────────┘    └──────────────────────┘

    Validate fails  → IncompleteRecordError; no store or hub traffic
    read fails      → treated as absent, whatever the reason
    create/replace  → ConflictError / ItemNotFoundError / DatabaseError propagate
    publish fails   → BroadcastError propagates; the write is already durable

Concurrency:
    read and write are separate store calls. Two writers on the same tuple
    can both miss the read; the slower create then fails with ConflictError.
    Writers that both hit replace in full, last one wins.
"""

import logging
from typing import List

from sprintplanning.exceptions import (
    DatabaseError,
    IncompleteRecordError,
    NotFoundError,
)
from sprintplanning.schemas.sprint_planning import SprintPlanningEntity, SprintPlanRequest
from sprintplanning.services.broadcast_base import BroadcastService
from sprintplanning.services.store_base import DocumentStore

logger = logging.getLogger(__name__)

BROADCAST_TARGET = "sprintPlanningTeamData"


class SprintPlanService:
    """
    Business logic for sprint planning records.

    Responsibilities:
        - create_team_member(): upsert without points (resets stored points)
        - create_sprint_plan(): upsert with points
        - get_sprint_planning_data(): all records of one sprint
    """

    async def create_team_member(
        self,
        request: SprintPlanRequest,
        store: DocumentStore,
        broadcaster: BroadcastService,
    ) -> SprintPlanningEntity:
        """
        Register a team member in a sprint.

        The entity never carries points, so replacing an existing record
        through this path clears its estimate.
        """
        return await self._upsert(request, store, broadcaster, include_points=False)

    async def create_sprint_plan(
        self,
        request: SprintPlanRequest,
        store: DocumentStore,
        broadcaster: BroadcastService,
    ) -> SprintPlanningEntity:
        """Record a team member's estimate for a sprint."""
        return await self._upsert(request, store, broadcaster, include_points=True)

    async def _upsert(
        self,
        request: SprintPlanRequest,
        store: DocumentStore,
        broadcaster: BroadcastService,
        include_points: bool,
    ) -> SprintPlanningEntity:
        """
        Validate → Resolve → Commit.

        Raises:
            IncompleteRecordError: a scope field is empty (nothing was written)
            ConflictError: create raced another writer of the same tuple
            DatabaseError: create or replace failed
            BroadcastError: the hub rejected the event after the write
        """
        # ── Validate ──────────────────────────────────────────────────────
        missing = request.missing_fields()
        if missing:
            raise IncompleteRecordError(missing)

        # ── Resolve ───────────────────────────────────────────────────────
        entity = SprintPlanningEntity.build(
            employer=request.employer,
            team=request.team,
            sprint_id=request.sprint_id,
            team_member=request.team_member,
            points=request.points if include_points else None,
        )

        exists = True
        try:
            await store.read(entity.id, entity.id)
        except DatabaseError as e:
            # Covers ItemNotFoundError and any other read failure alike
            logger.debug("Read of %s missed (%s); creating", entity.id, e.message)
            exists = False

        if exists:
            response = await store.replace(entity, entity.id, entity.id)
        else:
            response = await store.create(entity)
        logger.info("This query cost: %.2f ms", response.request_charge)

        # ── Commit ────────────────────────────────────────────────────────
        await broadcaster.publish(BROADCAST_TARGET, [entity])

        logger.info("Item inserted")
        return entity

    async def get_sprint_planning_data(
        self,
        employer: str,
        team: str,
        sprint_id: str,
        store: DocumentStore,
    ) -> List[SprintPlanningEntity]:
        """
        Raises:
            NotFoundError: no record exists for that employer/team/sprint
            DatabaseError: the query failed
        """
        entities = await store.query(employer, team, sprint_id)
        if not entities:
            logger.info("Could not find data for %s/%s/%s", employer, team, sprint_id)
            raise NotFoundError(
                resource="sprint planning data",
                context={"employer": employer, "team": team, "sprint_id": sprint_id},
            )

        logger.info("Found the data! %d records", len(entities))
        return entities


# ── Singleton Instance ────────────────────────────────────────────────────
sprint_plan_service = SprintPlanService()
