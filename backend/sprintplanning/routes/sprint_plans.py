"""
Sprint Planning Backend — Sprint Plan Route Handlers
======================================================

What:  The three data functions of the planning board:
         POST /api/createSprintPlanTeamMember
         POST /api/createSprintPlan
         GET  /api/getSprintPlanningData/{employer}/{team}/{sprintId}
How:   Reads the body, parses it into a SprintPlanRequest, delegates to
       SprintPlanService, returns JSON.
Who:   Called by the planning board web client.

Response contract (errors rendered by the global handlers in main.py):
    200 + entity JSON    write succeeded and was broadcast
    200 + empty body     write skipped: a scope field was missing
    200 + JSON array     records found
    404                  no records for that sprint
    500                  anything else, with one generic body
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from sprintplanning.config import settings
from sprintplanning.dependencies import get_broadcaster, get_store
from sprintplanning.exceptions import MalformedPayloadError
from sprintplanning.schemas.sprint_planning import (
    ErrorResponse,
    SprintPlanningEntity,
    SprintPlanRequest,
)
from sprintplanning.services.broadcast_base import BroadcastService
from sprintplanning.services.sprint_plan_service import sprint_plan_service
from sprintplanning.services.store_base import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.api_prefix, tags=["Sprint Planning"])

WRITE_RESPONSES = {
    200: {"description": "Stored record, or an empty body when a scope field is missing"},
    500: {"description": "Server error", "model": ErrorResponse},
}


async def read_sprint_plan_request(request: Request) -> SprintPlanRequest:
    """
    Parse the raw body into a SprintPlanRequest.

    Parsing happens here rather than through a FastAPI body parameter so
    that a malformed body is a 500 like every other failure, not a 422.

    Raises:
        MalformedPayloadError: body is not JSON or has wrongly typed fields.
    """
    body = await request.body()
    try:
        return SprintPlanRequest.model_validate_json(body)
    except PydanticValidationError as e:
        raise MalformedPayloadError(
            context={"error_count": e.error_count(), "body_length": len(body)}
        ) from e


@router.post(
    "/createSprintPlanTeamMember",
    response_model=SprintPlanningEntity,
    responses=WRITE_RESPONSES,
    summary="Add or reset a team member in a sprint",
    description=(
        "Upserts the record for employer/team/sprintId/teamMember without points "
        "and broadcasts it as sprintPlanningTeamData."
    ),
)
async def create_sprint_plan_team_member(
    request: Request,
    store: DocumentStore = Depends(get_store),
    broadcaster: BroadcastService = Depends(get_broadcaster),
) -> SprintPlanningEntity:
    payload = await read_sprint_plan_request(request)
    return await sprint_plan_service.create_team_member(payload, store, broadcaster)


@router.post(
    "/createSprintPlan",
    response_model=SprintPlanningEntity,
    responses=WRITE_RESPONSES,
    summary="Record a team member's estimate",
    description=(
        "Upserts the record for employer/team/sprintId/teamMember including points "
        "and broadcasts it as sprintPlanningTeamData."
    ),
)
async def create_sprint_plan(
    request: Request,
    store: DocumentStore = Depends(get_store),
    broadcaster: BroadcastService = Depends(get_broadcaster),
) -> SprintPlanningEntity:
    payload = await read_sprint_plan_request(request)
    return await sprint_plan_service.create_sprint_plan(payload, store, broadcaster)


@router.get(
    "/getSprintPlanningData/{employer}/{team}/{sprint_id}",
    response_model=List[SprintPlanningEntity],
    responses={
        404: {"description": "No records for this sprint", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List every record of one sprint",
)
async def get_sprint_planning_data(
    employer: str,
    team: str,
    sprint_id: str,
    store: DocumentStore = Depends(get_store),
) -> List[SprintPlanningEntity]:
    """
    All team members of employer/team/sprint, in store order.

    Path segments are matched exactly (case-sensitive, untrimmed).
    """
    return await sprint_plan_service.get_sprint_planning_data(
        employer=employer, team=team, sprint_id=sprint_id, store=store
    )
