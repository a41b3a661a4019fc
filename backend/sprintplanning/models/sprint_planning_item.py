"""
Sprint Planning Backend — Sprint Planning Item Model
======================================================

What:  ORM model for the document table holding sprint planning records.
How:   One row per (employer, team, sprintId, teamMember). The row id is the
       composite identifier and doubles as the partition key, so point reads
       hit the primary key.
Who:   Used exclusively by SqlDocumentStore.

Query Patterns:
    - Point read / replace: WHERE id = :id          → primary key
    - Scoped query:         WHERE employer = :e AND team = :t AND sprint_id = :s
                                                    → idx_sprint_planning_scope
"""

from sqlalchemy import Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from sprintplanning.config import settings
from sprintplanning.database import Base


class SprintPlanningItem(Base):
    """
    A persisted sprint planning document.

    Lifecycle:
        1. Inserted on the first write for an identity tuple
        2. Overwritten in full on every later write for that tuple
        3. Never deleted
    """

    __tablename__ = settings.db_table_name

    # employer + team + sprintId + teamMember; also the partition key
    id: Mapped[str] = mapped_column(
        String,
        primary_key=True,
        comment="Composite identifier and partition key",
    )

    # Unbounded: clients put no length limit on scope values
    employer: Mapped[str] = mapped_column(String, nullable=False)
    team: Mapped[str] = mapped_column(String, nullable=False)
    sprint_id: Mapped[str] = mapped_column(String, nullable=False)
    team_member: Mapped[str] = mapped_column(String, nullable=False)

    # Only set by the createSprintPlan path; NULL otherwise
    points: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        default=None,
        comment="Story point estimate",
    )

    __table_args__ = (
        Index("idx_sprint_planning_scope", "employer", "team", "sprint_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<SprintPlanningItem(id='{self.id}', sprint_id='{self.sprint_id}', "
            f"team_member='{self.team_member}', points={self.points})>"
        )
