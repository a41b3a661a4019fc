"""
Sprint Planning Backend — Dependency Wiring
=============================================

What:  FastAPI dependencies that hand route handlers their store and hub.
How:   Routes declare `Depends(get_store)` / `Depends(get_broadcaster)`;
       tests swap implementations through `app.dependency_overrides`.
"""

from sprintplanning.database import async_session_factory
from sprintplanning.services.broadcast_base import BroadcastService
from sprintplanning.services.sql_store import SqlDocumentStore
from sprintplanning.services.store_base import DocumentStore
from sprintplanning.services.websocket_hub import WebSocketHub, broadcast_hub

_store: SqlDocumentStore | None = None


def get_store() -> DocumentStore:
    """Singleton SQL document store bound to the application engine."""
    global _store
    if _store is None:
        _store = SqlDocumentStore(async_session_factory)
    return _store


def get_hub() -> WebSocketHub:
    """The in-process hub that serves subscriber connections."""
    return broadcast_hub


def get_broadcaster() -> BroadcastService:
    """The channel the upsert workflow publishes to."""
    return broadcast_hub
