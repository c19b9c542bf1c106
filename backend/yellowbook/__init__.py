"""
Yellow Book API: Application Package
=====================================

What: Business directory REST API (list, fetch and create directory entries).
Who:  Imported by uvicorn (`yellowbook.main:app`), Alembic, pytest and the
      `yellowbook` administration CLI.

Architecture Note:
    ┌─────────────────────────────────────┐
    │      Routes + EntryService          │  ← HTTP surface
    ├─────────────────────────────────────┤
    │     Schemas (field-rule table)      │  ← creation / full-entry validation
    ├─────────────────────────────────────┤
    │      YellowBookGateway              │  ← only reader/writer of yellow_books
    ├─────────────────────────────────────┤
    │    Database (async SQLAlchemy)      │  ← engine, sessions, metadata
    └─────────────────────────────────────┘

    Every entry crossing the HTTP surface, in either direction, passes the
    schema validator. The gateway hands back plain records keyed by wire
    names; the routes never touch ORM rows.
"""

__version__ = "1.0.0"
