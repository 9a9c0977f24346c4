"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4


class ProductRowFactory:
    """
    Factory for product import rows, as they arrive from a spreadsheet.

    Usage:
        # Create with defaults
        row = ProductRowFactory.create()

        # Create with overrides
        row = ProductRowFactory.create(name="Milk", category="Dairy")

        # Drop a column entirely
        row = ProductRowFactory.create(expiry_date=None)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(cls, **overrides) -> dict:
        """
        Create a single product row dict.

        Keys overridden with None are removed from the row.
        """
        counter = cls._next_counter()
        row = {
            "name": f"Test Product {counter}",
            "category": "Dairy",
            "supplier": "Acme",
            "quantity": 10,
            "cost_price": 2.5,
            "selling_price": 3.99,
            "expiry_date": "2025-12-31",
        }
        row.update(overrides)
        return {k: v for k, v in row.items() if v is not None}

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple rows sharing the same overrides."""
        return [cls.create(**overrides) for _ in range(count)]


class OrderRowFactory:
    """
    Factory for order import rows.

    Usage:
        row = OrderRowFactory.create(items=[{"product": "Milk", "quantity": 2, "unit_price": 1.5}])
    """

    @classmethod
    def item(cls, product: str = "Milk 1L", quantity=2, unit_price=1.5) -> dict:
        return {"product": product, "quantity": quantity, "unit_price": unit_price}

    @classmethod
    def create(cls, items: Optional[list] = None, **overrides) -> dict:
        row = {
            "customer_name": "Jane Doe",
            "items": items if items is not None else [cls.item()],
        }
        row.update(overrides)
        return row


class ProductRecordFactory:
    """
    Factory for products as stored on the backend.

    Usage:
        record = ProductRecordFactory.create(supermarket_id="store-a")
        records = ProductRecordFactory.create_batch(3, supermarket_id="store-a")
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        supermarket_id: str = "store-a",
        **overrides
    ) -> dict:
        """
        Create a single stored product dict.

        Args:
            id: Product UUID (auto-generated if not provided)
            supermarket_id: Owning store
            **overrides: Any other product field

        Returns:
            Product dict matching the products table
        """
        counter = cls._next_counter()
        now = datetime.now(timezone.utc).isoformat()

        record = {
            "id": id or str(uuid4()),
            "name": f"Stored Product {counter}",
            "category_id": 1,
            "supplier_id": 7,
            "supermarket_id": supermarket_id,
            "quantity": 20,
            "price": 3.99,
            "cost_price": 2.5,
            "selling_price": 3.99,
            "expiry_date": "2025-12-31",
            "min_stock_level": 5,
            "halal_certified": True,
            "barcode": f"99000{counter:07d}",
            "created_at": now,
            "updated_at": now,
        }
        record.update(overrides)
        return record

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple stored products."""
        return [cls.create(**overrides) for _ in range(count)]
