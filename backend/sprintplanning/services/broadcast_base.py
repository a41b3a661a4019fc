"""
Sprint Planning Backend — Abstract Broadcast Interface
========================================================

What:  Contract for the publish/subscribe channel that pushes sprint planning
       updates to every connected client.
How:   WebSocketHub is the in-process implementation; tests use AsyncMock.
Who:   SprintPlanService publishes; the negotiate route issues credentials.

Delivery semantics:
    Best effort. No acknowledgment, no retry, and no ordering guarantee
    between publishes issued by concurrent requests.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from sprintplanning.schemas.sprint_planning import ConnectionInfo


class BroadcastService(ABC):

    @abstractmethod
    async def publish(self, target: str, arguments: Sequence[Any]) -> None:
        """
        Hand a named event to the hub for delivery to all subscribers.

        Args:
            target:    Client-side handler name (e.g. "sprintPlanningTeamData")
            arguments: Positional arguments for the handler; pydantic models
                       are sent in their wire (camelCase) form

        Raises:
            BroadcastError: The event could not be handed to the hub.
        """
        ...

    @abstractmethod
    def negotiate(self, client_id: Optional[str] = None) -> ConnectionInfo:
        """
        Issue a short-lived url/access token pair for subscribing directly.

        Args:
            client_id: Identity to embed in the token; generated when omitted.
        """
        ...

    @property
    @abstractmethod
    def connection_count(self) -> int:
        """Number of currently connected subscribers."""
        ...
