"""
Shared test fixtures.

Sets up an isolated SQLite test database so tests never touch
the real database. Tables are created before each test and
dropped after it.
"""

import os

# erp_ledger.models.base builds its engine at import time.
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_ledger.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from erp_ledger.main import app
from erp_ledger.models.base import Base, get_db
from erp_ledger.services.chart_of_accounts import ChartService


TEST_DATABASE_URL = "sqlite:///./test_ledger.db"

TENANT = 1
OTHER_TENANT = 2

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)


# pysqlite opens transactions lazily and breaks SAVEPOINT; let
# SQLAlchemy emit BEGIN itself so begin_nested() works.
@event.listens_for(engine, "connect")
def do_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def do_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def seeded(db_session):
    """Tenant 1 with the full SYSCOHADA chart and standard journals."""
    ChartService(db_session).initialize_chart(TENANT)
    db_session.commit()
    return db_session


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    get_db is overridden so the app uses the test session.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """Session factory for tests that open one session per thread."""
    return TestSessionLocal
