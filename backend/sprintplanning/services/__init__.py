# Services package init
"""
Sprint Planning Backend — Services Layer
==========================================

Service Inventory:
    - DocumentStore (abstract): point read / create / replace / scoped query
    - SqlDocumentStore: DocumentStore over async SQLAlchemy
    - BroadcastService (abstract): publish + negotiate
    - WebSocketHub: in-process BroadcastService serving hub clients
    - SprintPlanService: validate → resolve → commit upsert workflow

Routes receive the store and hub through FastAPI dependencies and pass them
into SprintPlanService, which keeps no state of its own.
"""
