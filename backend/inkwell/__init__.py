"""
Inkwell Backend: Application Package Initializer
=================================================

What: Marks the `inkwell` directory as a Python package.
Who:  Imported by uvicorn (`inkwell.main:app`), pytest, and the CLI entry point.

Architecture Note:
    The backend follows the same layered split for both of its components:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← /post, /github, /health
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← PostService, TreeFetcher
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database / Remote content source   │  ← aiosqlite, GitHub REST API
    └─────────────────────────────────────┘

    Routes only translate HTTP into service calls; services raise the
    exceptions from `inkwell.exceptions`, which the handlers in `main.py`
    render as `{"err": ...}` payloads.
"""

__version__ = "1.0.0"
