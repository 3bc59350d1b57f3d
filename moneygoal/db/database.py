"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with a test
fallback (SQLite in-memory) and exposes FastAPI dependencies.
"""
import os
import sys
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Database connection URL
# Generate dynamically from individual components if DATABASE_URL is not provided
def _get_database_url() -> str:
    # If DATABASE_URL is explicitly set, use it
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    # Otherwise, generate from individual components (all must be set)
    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT")
    db_name = os.getenv("POSTGRES_DB")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        missing = []
        if not db_user: missing.append("POSTGRES_USER")
        if not db_password: missing.append("POSTGRES_PASSWORD")
        if not db_host: missing.append("POSTGRES_HOST")
        if not db_port: missing.append("POSTGRES_PORT")
        if not db_name: missing.append("POSTGRES_DB")
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while a test is running, so module
    import during collection also checks ``sys.modules``. ``PYTEST_RUNNING=1``
    forces the detection.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if "pytest" in sys.modules:
        return True
    return False


# Test override strategy:
# 1. If MONEYGOAL_TEST_DB is set, use it.
# 2. Else if running under pytest, force in-memory sqlite.
# 3. Else resolve from DATABASE_URL / POSTGRES_* (raises when incomplete).
explicit_test_db = os.getenv("MONEYGOAL_TEST_DB")
pytest_indicator = _is_pytest_runtime()

if explicit_test_db:
    DATABASE_URL = explicit_test_db
    _sqlite_kwargs = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
elif pytest_indicator:
    # In-memory SQLite with StaticPool so the schema persists across connections
    DATABASE_URL = "sqlite+pysqlite:///:memory:"
    _sqlite_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
else:
    DATABASE_URL = _get_database_url()
    _sqlite_kwargs = {}


def _create_engine_with_fallback(url: str, kwargs: dict):
    """Create engine; under pytest without an explicit DB, fall back to in-memory sqlite."""
    try:
        return create_engine(url, **kwargs) if kwargs else create_engine(url)
    except OperationalError:
        if _is_pytest_runtime() and not os.getenv("MONEYGOAL_TEST_DB"):
            return create_engine(
                "sqlite+pysqlite:///:memory:",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        raise


engine = _create_engine_with_fallback(DATABASE_URL, _sqlite_kwargs)

# In-memory SQLite has no migrations applied; create the schema eagerly so every
# connection handed out by the StaticPool sees the tables.
if DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL:
    from moneygoal.db import models  # local import to avoid circular import at module load
    models.Base.metadata.create_all(bind=engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_db_session_local():
    """Return a generator yielding a Session for code running outside a request.

    Used by the scheduler thread and by tests (`db = next(gen)`).
    """

    def _session_gen():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    return _session_gen()
