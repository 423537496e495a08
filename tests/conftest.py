"""Shared pytest fixtures and configuration."""

import os
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before listing_api.deps is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DATABASE_KIND", "relational")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from listing_api.repository.listings import ListingQueryEngine
from listing_api.repository.relational import SqlListingGateway
from listing_api.sql import metadata
from tests.utils.memory_gateway import InMemoryDocumentGateway


@pytest.fixture
def sql_engine():
    """In-memory SQLite shared across threads (FastAPI runs sync routes in a pool)."""
    engine = create_engine(
        "sqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_conn(sql_engine):
    conn = sql_engine.connect()
    yield conn
    conn.close()


@pytest.fixture
def sql_query_engine(sql_conn):
    return ListingQueryEngine(SqlListingGateway(sql_conn))


@pytest.fixture
def document_gateway():
    """Document-semantics gateway whose find path understands "absent OR null"."""
    return InMemoryDocumentGateway()


@pytest.fixture
def aggregate_gateway():
    """Document-semantics gateway that needs the raw escape hatch for liveness."""
    return InMemoryDocumentGateway(supports_null_or_absent=False)
