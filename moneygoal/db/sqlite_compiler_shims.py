"""SQLite compilation shims for PostgreSQL-specific SQLAlchemy types.

Installs a compiler for JSONB when the active dialect is SQLite so that
`Base.metadata.create_all()` succeeds in test runs that substitute an
in-memory SQLite database. JSONB operators are not emulated.

Usage: imported for side-effects by moneygoal.db.models.base.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    # Stored as TEXT by SQLite; the JSON type processors still (de)serialize values.
    return "JSON"
