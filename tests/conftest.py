"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Any, Generator, Optional

from config.settings import Settings
from exceptions import BackendUnavailableError, DatabaseError


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table
        self._filters: list[tuple[str, Any]] = []
        self._insert: Optional[list] = None
        self._update: Optional[dict] = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        self._insert = [data] if isinstance(data, dict) else list(data)
        return self

    def update(self, data):
        self._update = data
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> MockSupabaseResponse:
        if self._table.error is not None:
            raise self._table.error

        if self._insert is not None:
            now = datetime.now(timezone.utc).isoformat()
            inserted = []
            for item in self._insert:
                row = {"id": self._table.next_id(), **item, "created_at": now}
                self._table.rows.append(row)
                inserted.append(row)
            self._table.inserts.append(self._insert)
            return MockSupabaseResponse(data=inserted)

        if self._update is not None:
            updated = []
            for row in self._table.rows:
                if self._matches(row):
                    row.update(self._update)
                    updated.append(dict(row))
            return MockSupabaseResponse(data=updated)

        return MockSupabaseResponse(data=[dict(r) for r in self._table.rows if self._matches(r)])


class MockSupabaseTable:
    """Mock Supabase table holding rows in memory."""

    def __init__(self, name: str, rows: list = None):
        self.name = name
        self.rows = rows or []
        self.inserts: list[list] = []
        self.error: Optional[Exception] = None
        self._next = 1000

    def next_id(self) -> str:
        self._next += 1
        return f"{self.name}-{self._next}"

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self).select(*args, **kwargs)

    def insert(self, data):
        return MockSupabaseQuery(self).insert(data)

    def update(self, data):
        return MockSupabaseQuery(self).update(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(table_name, [dict(r) for r in data])

    def fail_table(self, table_name: str, error: Exception):
        """Make every query on a table raise ``error``."""
        self.table(table_name).error = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(name)
        return self._tables[name]


# ===================
# IN-MEMORY BACKEND
# ===================

class InMemoryBackend:
    """
    InventoryBackend held in dicts, with call counters and failure hooks.

    Usage:
        backend.fail_create("category", "Bakery")   # create raises DatabaseError
        backend.go_offline_after(2)                 # 3rd product create is unreachable
    """

    def __init__(self, categories: list = None, suppliers: list = None, products: list = None):
        self.categories = [dict(c) for c in categories or []]
        self.suppliers = [dict(s) for s in suppliers or []]
        self.products = [dict(p) for p in products or []]
        self.orders: list[dict] = []
        self.calls: dict[str, int] = {}
        self.create_names: dict[str, list[str]] = {"category": [], "supplier": []}
        self._failing: dict[str, set[str]] = {"category": set(), "supplier": set()}
        self._failing_stores: set[str] = set()
        self._offline = False
        self._product_creates_before_offline: Optional[int] = None
        self._ids = 0

    # ---- test hooks ----

    def fail_create(self, kind: str, name: str):
        self._failing[kind].add(name)

    def fail_store(self, store_id: str):
        self._failing_stores.add(store_id)

    def go_offline(self):
        self._offline = True

    def go_offline_after(self, product_creates: int):
        self._product_creates_before_offline = product_creates

    @property
    def writes(self) -> int:
        return sum(
            count for name, count in self.calls.items()
            if name.startswith(("create_", "update_"))
        )

    # ---- helpers ----

    def _call(self, name: str):
        self.calls[name] = self.calls.get(name, 0) + 1
        if self._offline:
            raise BackendUnavailableError(name, "connection refused")

    def _new_id(self, prefix: str) -> str:
        self._ids += 1
        return f"{prefix}-{self._ids}"

    # ---- InventoryBackend ----

    def list_categories(self) -> list[dict]:
        self._call("list_categories")
        return [dict(c) for c in self.categories]

    def create_category(self, name: str) -> dict:
        self._call("create_category")
        self.create_names["category"].append(name)
        if name in self._failing["category"]:
            raise DatabaseError("create_category", "insert rejected")
        entity = {"id": self._new_id("cat"), "name": name}
        self.categories.append(entity)
        return dict(entity)

    def list_suppliers(self) -> list[dict]:
        self._call("list_suppliers")
        return [dict(s) for s in self.suppliers]

    def create_supplier(self, name: str) -> dict:
        self._call("create_supplier")
        self.create_names["supplier"].append(name)
        if name in self._failing["supplier"]:
            raise DatabaseError("create_supplier", "insert rejected")
        entity = {"id": self._new_id("sup"), "name": name}
        self.suppliers.append(entity)
        return dict(entity)

    def list_products(self, supermarket_id: Optional[str] = None) -> list[dict]:
        self._call("list_products")
        return [
            dict(p) for p in self.products
            if supermarket_id is None or p["supermarket_id"] == supermarket_id
        ]

    def create_product(self, payload: dict) -> dict:
        if self._product_creates_before_offline is not None:
            if self.calls.get("create_product", 0) >= self._product_creates_before_offline:
                self._offline = True
        self._call("create_product")
        if payload.get("supermarket_id") in self._failing_stores:
            raise DatabaseError("create_product", "store rejected insert")
        product = {"id": self._new_id("prod"), **payload}
        self.products.append(product)
        return dict(product)

    def update_product(self, product_id: Any, payload: dict) -> dict:
        self._call("update_product")
        for product in self.products:
            if product["id"] == product_id:
                product.update(payload)
                return dict(product)
        raise DatabaseError("update_product", f"no product with id {product_id}")

    def create_order(self, payload: dict) -> dict:
        self._call("create_order")
        order = {"id": self._new_id("ord"), **payload}
        self.orders.append(order)
        return dict(order)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("categories", [
                {"id": 1, "name": "Dairy"}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any code using get_supabase_client() gets the mock.
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.backend.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only, independent of the local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def backend() -> InMemoryBackend:
    """Backend seeded with one known category and one known supplier."""
    return InMemoryBackend(
        categories=[{"id": 1, "name": "Dairy"}],
        suppliers=[{"id": 7, "name": "Acme"}],
    )


@pytest.fixture
def import_service(backend, test_settings):
    """ImportService on the in-memory backend."""
    from services.import_service import ImportService
    return ImportService(backend=backend, settings=test_settings)


@pytest.fixture
def distributor(backend):
    """StoreDistributor on the in-memory backend."""
    from services.store_distributor import StoreDistributor
    return StoreDistributor(backend=backend)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/imports/products/template")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
