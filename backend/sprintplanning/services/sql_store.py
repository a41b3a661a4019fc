"""
Sprint Planning Backend — SQLAlchemy Document Store
=====================================================

What:  DocumentStore implementation backed by one SQL table of sprint
       planning documents (PostgreSQL via asyncpg, SQLite via aiosqlite).
How:   Each operation opens its own AsyncSession and commits before it
       returns, so a create or replace is durable the moment the call
       completes and nothing is left pending for the broadcast step.
       The partition key is the document id.
Who:   Built by dependencies.get_store() for every request.

Error translation:
    IntegrityError on insert     → ConflictError
    no row on read / replace     → ItemNotFoundError
    any other SQLAlchemyError    → DatabaseError
"""

import logging
import time
from typing import List, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sprintplanning.exceptions import ConflictError, DatabaseError, ItemNotFoundError
from sprintplanning.models.sprint_planning_item import SprintPlanningItem
from sprintplanning.schemas.sprint_planning import SprintPlanningEntity
from sprintplanning.services.store_base import DocumentStore, ItemResponse

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _to_entity(item: SprintPlanningItem) -> SprintPlanningEntity:
    return SprintPlanningEntity.model_validate(item)


class SqlDocumentStore(DocumentStore):
    """
    Document store over a relational table.

    Args:
        session_factory: async_sessionmaker bound to the target engine
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _get(
        self, session: AsyncSession, item_id: str, partition_key: str
    ) -> Optional[SprintPlanningItem]:
        # Documents are partitioned on /id: any other key cannot hold the item
        if partition_key != item_id:
            return None
        return await session.get(SprintPlanningItem, item_id)

    async def read(self, item_id: str, partition_key: str) -> ItemResponse:
        start = time.perf_counter()
        try:
            async with self._session_factory() as session:
                item = await self._get(session, item_id, partition_key)
        except SQLAlchemyError as e:
            logger.error("Read of %s failed: %s", item_id, str(e))
            raise DatabaseError(
                message="Could not read the sprint planning record.",
                context={"id": item_id, "error_type": type(e).__name__},
            ) from e

        if item is None:
            raise ItemNotFoundError(item_id, partition_key)
        return ItemResponse(resource=_to_entity(item), request_charge=_elapsed_ms(start))

    async def create(self, entity: SprintPlanningEntity) -> ItemResponse:
        start = time.perf_counter()
        try:
            async with self._session_factory() as session:
                session.add(
                    SprintPlanningItem(
                        id=entity.id,
                        employer=entity.employer,
                        team=entity.team,
                        sprint_id=entity.sprint_id,
                        team_member=entity.team_member,
                        points=entity.points,
                    )
                )
                await session.commit()
        except IntegrityError as e:
            raise ConflictError(entity.id) from e
        except SQLAlchemyError as e:
            logger.error("Create of %s failed: %s", entity.id, str(e))
            raise DatabaseError(
                message="Could not create the sprint planning record.",
                context={"id": entity.id, "error_type": type(e).__name__},
            ) from e

        return ItemResponse(resource=entity, request_charge=_elapsed_ms(start))

    async def replace(
        self, entity: SprintPlanningEntity, item_id: str, partition_key: str
    ) -> ItemResponse:
        start = time.perf_counter()
        try:
            async with self._session_factory() as session:
                item = await self._get(session, item_id, partition_key)
                if item is None:
                    raise ItemNotFoundError(item_id, partition_key)

                # Full overwrite: fields absent from `entity` become NULL
                item.employer = entity.employer
                item.team = entity.team
                item.sprint_id = entity.sprint_id
                item.team_member = entity.team_member
                item.points = entity.points
                await session.commit()
                stored = _to_entity(item)
        except SQLAlchemyError as e:
            logger.error("Replace of %s failed: %s", item_id, str(e))
            raise DatabaseError(
                message="Could not replace the sprint planning record.",
                context={"id": item_id, "error_type": type(e).__name__},
            ) from e

        return ItemResponse(resource=stored, request_charge=_elapsed_ms(start))

    async def query(
        self, employer: str, team: str, sprint_id: str
    ) -> List[SprintPlanningEntity]:
        start = time.perf_counter()
        statement = select(SprintPlanningItem).where(
            SprintPlanningItem.employer == employer,
            SprintPlanningItem.team == team,
            SprintPlanningItem.sprint_id == sprint_id,
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                items = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Query for %s/%s/%s failed: %s", employer, team, sprint_id, str(e))
            raise DatabaseError(
                message="Could not retrieve sprint planning data.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info(
            "Query %s/%s/%s returned %d documents in %.2f ms",
            employer, team, sprint_id, len(items), _elapsed_ms(start),
        )
        return [_to_entity(item) for item in items]

    async def health_check(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Store health check failed: %s", str(e))
            return False
