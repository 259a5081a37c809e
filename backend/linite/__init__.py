"""
Linite Backend — Application Package Initializer
=================================================

What: Package root for the command-generation service.
Who:  Imported by uvicorn (`linite.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Generator Service (orchestration) │  ← one call per request
    ├─────────────────────────────────────┤
    │   Engine (resolver, synthesizer)    │  ← pure functions, no I/O
    ├─────────────────────────────────────┤
    │   Catalog Loader + ORM models       │  ← async SQLAlchemy reads
    └─────────────────────────────────────┘

    Data only flows downward-then-back: the loader fetches a catalog snapshot,
    the engine turns it into commands, the routes serialize the result.
"""

__version__ = "1.0.0"
