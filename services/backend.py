"""
Inventory backend collaborator.

The import engine only talks to the backend through InventoryBackend:
list/create for categories and suppliers, list/create/update for products,
and create for orders. SupabaseBackend implements it on Supabase tables.
"""

from typing import Any, Optional, Protocol
import httpx
import structlog

from config import get_supabase_client
from config.database import ConnectionError as SupabaseConnectionError
from exceptions import BackendUnavailableError, DatabaseError

logger = structlog.get_logger(__name__)


class InventoryBackend(Protocol):
    """Narrow create/list/query interface consumed by the engine."""

    def list_categories(self) -> list[dict]: ...

    def create_category(self, name: str) -> dict: ...

    def list_suppliers(self) -> list[dict]: ...

    def create_supplier(self, name: str) -> dict: ...

    def list_products(self, supermarket_id: Optional[str] = None) -> list[dict]: ...

    def create_product(self, payload: dict) -> dict: ...

    def update_product(self, product_id: Any, payload: dict) -> dict: ...

    def create_order(self, payload: dict) -> dict: ...


# Transport failures that mean the backend is gone, not that it said no
UNREACHABLE_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    SupabaseConnectionError,
)


class SupabaseBackend:
    """
    InventoryBackend on Supabase.

    Raises:
        BackendUnavailableError: Connection could not be made
        DatabaseError: Any other failed query
    """

    CATEGORIES = "categories"
    SUPPLIERS = "suppliers"
    PRODUCTS = "products"
    ORDERS = "orders"
    ORDER_ITEMS = "order_items"

    def __init__(self, client=None):
        self._client = client

    @property
    def db(self):
        if self._client is None:
            try:
                self._client = get_supabase_client()
            except SupabaseConnectionError as e:
                raise BackendUnavailableError("connect", str(e)) from e
        return self._client

    def _run(self, operation: str, query):
        try:
            return query.execute()
        except UNREACHABLE_ERRORS as e:
            logger.error("backend_unreachable", operation=operation, error=str(e))
            raise BackendUnavailableError(operation, str(e)) from e
        except Exception as e:
            logger.error("backend_query_failed", operation=operation, error=str(e))
            raise DatabaseError(operation, str(e)) from e

    @staticmethod
    def _first(operation: str, result) -> dict:
        """First returned row; an insert that returns nothing counts as failed."""
        if not result.data:
            raise DatabaseError(operation, "no row returned")
        return result.data[0]

    # ===================
    # CATEGORIES / SUPPLIERS
    # ===================

    def list_categories(self) -> list[dict]:
        result = self._run(
            "list_categories",
            self.db.table(self.CATEGORIES).select("id,name").order("name")
        )
        return result.data or []

    def create_category(self, name: str) -> dict:
        result = self._run(
            "create_category",
            self.db.table(self.CATEGORIES).insert({"name": name})
        )
        logger.info("category_inserted", name=name)
        return self._first("create_category", result)

    def list_suppliers(self) -> list[dict]:
        result = self._run(
            "list_suppliers",
            self.db.table(self.SUPPLIERS).select("id,name").order("name")
        )
        return result.data or []

    def create_supplier(self, name: str) -> dict:
        result = self._run(
            "create_supplier",
            self.db.table(self.SUPPLIERS).insert({"name": name})
        )
        logger.info("supplier_inserted", name=name)
        return self._first("create_supplier", result)

    # ===================
    # PRODUCTS
    # ===================

    def list_products(self, supermarket_id: Optional[str] = None) -> list[dict]:
        query = self.db.table(self.PRODUCTS).select("*")
        if supermarket_id:
            query = query.eq("supermarket_id", supermarket_id)
        result = self._run("list_products", query)
        return result.data or []

    def create_product(self, payload: dict) -> dict:
        result = self._run(
            "create_product",
            self.db.table(self.PRODUCTS).insert(payload)
        )
        return self._first("create_product", result)

    def update_product(self, product_id: Any, payload: dict) -> dict:
        result = self._run(
            "update_product",
            self.db.table(self.PRODUCTS).update(payload).eq("id", product_id)
        )
        if not result.data:
            raise DatabaseError("update_product", f"no product with id {product_id}")
        return self._first("update_product", result)

    # ===================
    # ORDERS
    # ===================

    def create_order(self, payload: dict) -> dict:
        """Insert the order header, then its lines keyed by the new order id."""
        items = payload.get("items", [])
        header = {k: v for k, v in payload.items() if k != "items"}

        result = self._run(
            "create_order",
            self.db.table(self.ORDERS).insert(header)
        )
        order = self._first("create_order", result)

        if items:
            lines = [{**item, "order_id": order["id"]} for item in items]
            self._run(
                "create_order_items",
                self.db.table(self.ORDER_ITEMS).insert(lines)
            )

        return {**order, "items": items}


# Singleton instance for convenience
_backend: Optional[SupabaseBackend] = None

def get_backend() -> SupabaseBackend:
    """Get or create SupabaseBackend instance."""
    global _backend
    if _backend is None:
        _backend = SupabaseBackend()
    return _backend
