"""
Sprint Planning Backend — Broadcast Hub Routes
================================================

What:  Connection negotiation for the planning board and the client-side
       endpoints of the in-process hub.
         GET|POST /api/negotiate          → {url, accessToken}
         POST     /client/negotiate?hub=  → connection id + transports
         WS       /client/?hub=&id=&access_token=
How:   Thin wrappers over WebSocketHub; no business logic.
Who:   The hub client library running in the browser.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, WebSocket

from sprintplanning.config import settings
from sprintplanning.dependencies import get_broadcaster, get_hub
from sprintplanning.exceptions import NotFoundError
from sprintplanning.schemas.sprint_planning import (
    ConnectionInfo,
    ErrorResponse,
    HubNegotiateResponse,
)
from sprintplanning.services.broadcast_base import BroadcastService
from sprintplanning.services.websocket_hub import POLICY_VIOLATION, WebSocketHub

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.api_prefix, tags=["Broadcast Hub"])
client_router = APIRouter(prefix="/client", tags=["Broadcast Hub"])


@router.api_route(
    "/negotiate",
    methods=["GET", "POST"],
    response_model=ConnectionInfo,
    summary="Issue hub connection credentials",
)
async def negotiate(
    x_ms_signalr_userid: Optional[str] = Header(default=None),
    broadcaster: BroadcastService = Depends(get_broadcaster),
) -> ConnectionInfo:
    """Anonymous; the optional user id header becomes the token subject."""
    connection_info = broadcaster.negotiate(x_ms_signalr_userid)
    logger.info("Returning connection %s", connection_info.url)
    return connection_info


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@client_router.post(
    "/negotiate",
    response_model=HubNegotiateResponse,
    responses={
        401: {"description": "Missing or invalid access token", "model": ErrorResponse},
        404: {"description": "Unknown hub", "model": ErrorResponse},
    },
    summary="Reserve a hub connection",
)
async def negotiate_connection(
    hub: str = Query(...),
    authorization: Optional[str] = Header(default=None),
    access_token: Optional[str] = Query(default=None),
    hub_service: WebSocketHub = Depends(get_hub),
) -> HubNegotiateResponse:
    if not hub_service.matches_hub(hub):
        raise NotFoundError(resource="hub", resource_id=hub)
    claims = hub_service.verify_token(_bearer_token(authorization) or access_token)
    return hub_service.open_connection(claims)


@client_router.websocket("/")
async def hub_connection(
    websocket: WebSocket,
    hub: Optional[str] = Query(default=None),
    id: Optional[str] = Query(default=None),
    access_token: Optional[str] = Query(default=None),
    hub_service: WebSocketHub = Depends(get_hub),
) -> None:
    if not hub_service.matches_hub(hub):
        logger.warning("Rejected connection to unknown hub %r", hub)
        await websocket.close(code=POLICY_VIOLATION)
        return
    token = access_token or _bearer_token(websocket.headers.get("authorization"))
    await hub_service.serve(websocket, token, connection_token=id)
