"""
CircuitMap Backend — Application Package
==========================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (breaker/panel/device)   │  ← transactions, locking
    ├─────────────────────────────────────┤
    │  Position core (positions,          │  ← pure: grammar, conflict
    │  conflicts, tandem)                 │    rules, tandem split plan
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

The position core never touches the database, so it is unit-tested with
plain objects; services hand it the panel's breakers and apply its verdict.
"""

__version__ = "1.0.0"
