"""
db/ - Database Layer
====================
Resolves DATABASE_URL, owns the PostgreSQL connection pool, and applies the
migration file on first start.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
