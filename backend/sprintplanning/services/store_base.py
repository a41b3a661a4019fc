"""
Sprint Planning Backend — Abstract Document Store Interface
=============================================================

What:  Abstract base class defining the capability set the upsert workflow
       needs from a document store: point read, insert, full replace and a
       scoped query, all keyed by a partition key.
How:   Concrete stores inherit from DocumentStore. SqlDocumentStore is the
       shipped implementation; tests substitute AsyncMock objects.
Who:   Called by SprintPlanService and the query route.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from sprintplanning.schemas.sprint_planning import SprintPlanningEntity


@dataclass(frozen=True)
class ItemResponse:
    """
    Result of a single-document operation.

    Attributes:
        resource:       The document as stored after the operation
        request_charge: Cost of the operation (milliseconds spent in the
                        store round-trip). Reported for logging only.
    """
    resource: SprintPlanningEntity
    request_charge: float


class DocumentStore(ABC):
    """
    Contract:
        - Documents are addressed by (id, partition_key)
        - Every write supplies the complete document; there are no patches
        - Driver failures are raised as DatabaseError, never leaked raw
    """

    @abstractmethod
    async def read(self, item_id: str, partition_key: str) -> ItemResponse:
        """
        Point lookup.

        Raises:
            ItemNotFoundError: No document with that id under that partition key.
            DatabaseError: The store could not be queried.
        """
        ...

    @abstractmethod
    async def create(self, entity: SprintPlanningEntity) -> ItemResponse:
        """
        Insert a new document.

        Raises:
            ConflictError: A document with entity.id already exists.
            DatabaseError: The insert failed for any other reason.
        """
        ...

    @abstractmethod
    async def replace(
        self, entity: SprintPlanningEntity, item_id: str, partition_key: str
    ) -> ItemResponse:
        """
        Overwrite every field of an existing document.

        Raises:
            ItemNotFoundError: The document does not exist.
            DatabaseError: The update failed for any other reason.
        """
        ...

    @abstractmethod
    async def query(
        self, employer: str, team: str, sprint_id: str
    ) -> List[SprintPlanningEntity]:
        """
        All documents for one employer/team/sprint, any team member.

        Returns an empty list when nothing matches; ordering is whatever the
        store yields.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the store is reachable."""
        ...
