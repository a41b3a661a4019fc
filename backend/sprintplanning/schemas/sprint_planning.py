"""
Sprint Planning Backend — Pydantic Request/Response Schemas
=============================================================

What:  Pydantic models defining the wire contract of the HTTP functions and
       the payload pushed to hub subscribers.
How:   Python attribute names are snake_case; JSON uses the camelCase names
       the web client already speaks (sprintId, teamMember, accessToken).
       Responses serialize by alias, requests accept either spelling.

Persisted / broadcast record shape:
    {"id": ..., "employer": ..., "sprintId": ..., "team": ...,
     "teamMember": ..., "points": ...}
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


REQUIRED_SCOPE_FIELDS = ("employer", "team", "sprint_id", "team_member")


def compute_id(employer: str, team: str, sprint_id: str, team_member: str) -> str:
    """
    Build the document id for one team member in one sprint.

    Plain concatenation: case-sensitive, no trimming, no separator. Tuples
    whose fields only differ in where one value ends and the next begins
    ("ab" + "c" vs "a" + "bc") share an id.
    """
    return f"{employer}{team}{sprint_id}{team_member}"


# ══════════════════════════════════════════════════════════════════════════
# Entity — the stored and broadcast record
# ══════════════════════════════════════════════════════════════════════════


class SprintPlanningEntity(BaseModel):
    """
    What:  A single sprint planning record for one team member in one sprint.
    Who:   Returned by the create* functions, listed by getSprintPlanningData,
           and sent as the only argument of the sprintPlanningTeamData event.
    """
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str = Field(description="employer + team + sprintId + teamMember")
    employer: str
    sprint_id: str = Field(alias="sprintId")
    team: str
    team_member: str = Field(alias="teamMember")
    points: Optional[float] = Field(
        default=None, allow_inf_nan=False, description="Story point estimate"
    )

    @classmethod
    def build(
        cls,
        employer: str,
        team: str,
        sprint_id: str,
        team_member: str,
        points: Optional[float] = None,
    ) -> "SprintPlanningEntity":
        """Create an entity with its id derived from the scope fields."""
        return cls(
            id=compute_id(employer, team, sprint_id, team_member),
            employer=employer,
            sprint_id=sprint_id,
            team=team,
            team_member=team_member,
            points=points,
        )

    def to_wire(self) -> dict:
        """JSON-ready dict using the client's field names."""
        return self.model_dump(mode="json", by_alias=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Model — what the create* functions accept
# ══════════════════════════════════════════════════════════════════════════


class SprintPlanRequest(BaseModel):
    """
    What:  Candidate field values parsed from a create* request body.
    How:   Every field is optional at the parsing stage so that an incomplete
           record reaches the workflow's validation step instead of failing
           schema parsing. A client-supplied `id` is ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    employer: Optional[str] = None
    team: Optional[str] = None
    sprint_id: Optional[str] = Field(default=None, alias="sprintId")
    team_member: Optional[str] = Field(default=None, alias="teamMember")
    points: Optional[float] = Field(default=None, allow_inf_nan=False)

    def missing_fields(self) -> List[str]:
        """Names (wire spelling) of scope fields that are empty or whitespace."""
        missing = []
        for name in REQUIRED_SCOPE_FIELDS:
            value = getattr(self, name)
            if value is None or not value.strip():
                missing.append(type(self).model_fields[name].alias or name)
        return missing


# ══════════════════════════════════════════════════════════════════════════
# Broadcast Hub Models
# ══════════════════════════════════════════════════════════════════════════


class ConnectionInfo(BaseModel):
    """
    What:  Credentials a client uses to subscribe to the broadcast hub.
    Who:   Returned by GET/POST /negotiate.
    """
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(description="Hub client URL to connect to")
    access_token: str = Field(alias="accessToken", description="Short-lived JWT")


class TransportInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transport: str
    transfer_formats: List[str] = Field(alias="transferFormats")


class HubNegotiateResponse(BaseModel):
    """
    What:  Second negotiation step performed by the hub client itself.
    Who:   Returned by POST /client/negotiate once the access token checks out.
    """
    model_config = ConfigDict(populate_by_name=True)

    connection_id: str = Field(alias="connectionId")
    connection_token: str = Field(alias="connectionToken")
    negotiate_version: int = Field(default=1, alias="negotiateVersion")
    available_transports: List[TransportInfo] = Field(alias="availableTransports")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Error body shared by every non-2xx JSON response.

    Example:
        {
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    hub_connections: int = Field(description="Currently connected hub clients")
    uptime_seconds: float = Field(description="Seconds since service started")
