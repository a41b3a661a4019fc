"""
Sprint Planning Backend — Application Package Initializer
==========================================================

What: Marks the `sprintplanning` directory as a Python package.
Who:  Used by pytest, uvicorn (`uvicorn sprintplanning.main:app`) and the
      package metadata in pyproject.toml.

Architecture Note:
    ┌─────────────────────────────────────┐
    │    Routes (API + hub client layer)  │  ← HTTP / WebSocket concerns only
    ├─────────────────────────────────────┤
    │    Services (upsert workflow)       │  ← validate → resolve → commit
    ├─────────────────────────────────────┤
    │    Adapters (store, broadcast hub)  │  ← document store + pub/sub contracts
    ├─────────────────────────────────────┤
    │    Models & Schemas (Data)          │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
