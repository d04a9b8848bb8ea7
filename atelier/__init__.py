"""
Atelier Backend — Application Package Initializer
==================================================

What: Marks the `atelier` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows the same layered layout throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Studio (navigation state machine) │  ← In-memory, no persistence
    │   Services (integrations, jobs)     │  ← Square, Resend, cron jobs
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never hold business rules; the studio package never touches the
    database; services never know about HTTP status codes.
"""

__version__ = "1.0.0"
