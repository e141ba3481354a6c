"""
Shared test fixtures.

Mock Supabase client, reset singletons, and FastAPI test clients.
"""

import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, data: list = None, count: int = None):
        self._data = data or []
        self._count = count
        self._limit = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        if isinstance(data, dict):
            data = [data]
        for item in data:
            item.setdefault("id", "test-uuid-123")
            item["created_at"] = datetime.now(timezone.utc).isoformat()
        self._data = data
        return self

    def update(self, data):
        updated_data = [{**item, **data} for item in self._data]
        self._data = updated_data if updated_data else [data]
        return self

    def eq(self, column, value):
        self._data = [item for item in self._data if item.get(column, value) == value]
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self) -> MockSupabaseResponse:
        data = self._data[:self._limit] if self._limit is not None else self._data
        return MockSupabaseResponse(
            data=data,
            count=self._count if self._count is not None else len(data)
        )


class MockSupabaseTable:
    """Mock Supabase table that records writes on the client."""

    def __init__(self, client: "MockSupabaseClient", name: str, data: list = None, count: int = None):
        self._client = client
        self._name = name
        self._data = data or []
        self._count = count

    def select(self, *args, **kwargs):
        return MockSupabaseQuery([dict(row) for row in self._data], self._count)

    def insert(self, data):
        self._client.writes.append((self._name, "insert", data))
        query = MockSupabaseQuery([], self._count)
        return query.insert(data)

    def update(self, data):
        self._client.writes.append((self._name, "update", data))
        query = MockSupabaseQuery([dict(row) for row in self._data], self._count)
        return query.update(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self.writes: list[tuple] = []

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None})
        return MockSupabaseTable(self, name, config["data"], config["count"])

    def writes_to(self, table_name: str, operation: str) -> list:
        """Payloads written to a table with the given operation."""
        return [
            data for name, op, data in self.writes
            if name == table_name and op == operation
        ]


class FailingSupabaseClient:
    """Client whose every table call raises, for storage-down paths."""

    def table(self, name: str):
        raise ConnectionError("supabase unreachable")


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("reconciliation_patterns", [
                {"system_description": "Cadeira", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def failing_supabase() -> FailingSupabaseClient:
    return FailingSupabaseClient()


@pytest.fixture(autouse=True)
def reset_service_singletons():
    """Drop cached service instances between tests."""
    import services.confirmed_link_service as confirmed_link_module
    import services.ledger_snapshot_service as ledger_snapshot_module
    import services.reconciliation_service as reconciliation_module

    confirmed_link_module._confirmed_link_service = None
    ledger_snapshot_module._ledger_snapshot_service = None
    reconciliation_module._reconciliation_service = None
    yield
    confirmed_link_module._confirmed_link_service = None
    ledger_snapshot_module._ledger_snapshot_service = None
    reconciliation_module._reconciliation_service = None


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("inventory_items", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.confirmed_link_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.reconciliation_service.get_supabase_client", return_value=mock_supabase):
                yield mock_supabase


@pytest.fixture
def failing_db(failing_supabase) -> Generator:
    """Patch the database client with one that always fails."""
    with patch("config.database.get_supabase_client", return_value=failing_supabase):
        with patch("services.confirmed_link_service.get_supabase_client", return_value=failing_supabase):
            with patch("services.reconciliation_service.get_supabase_client", return_value=failing_supabase):
                yield failing_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("inventory_items", [...])
            response = test_client_with_mock_db.post("/api/reconciliation/links", json=...)
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
