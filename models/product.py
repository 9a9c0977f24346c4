"""
Product schemas for backend payloads and stored records.
"""

from pydantic import ConfigDict, Field
from typing import Optional
from datetime import date

from models.base import BaseSchema, TimestampMixin, EntityId


DEFAULT_MIN_STOCK_LEVEL = 5


class ProductPayload(BaseSchema):
    """
    Canonical product shape accepted by the backend create endpoint.

    All references are resolved identifiers. ``supermarket_id`` always comes
    from the caller, never from the imported row.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    category_id: EntityId = Field(..., description="Resolved category identifier")
    supplier_id: EntityId = Field(..., description="Resolved supplier identifier")
    supermarket_id: str = Field(..., min_length=1, description="Owning store identifier")
    quantity: float = Field(..., ge=0, description="Units in stock")
    price: float = Field(0, ge=0, description="Display price")
    cost_price: Optional[float] = Field(None, ge=0, description="Purchase cost")
    selling_price: Optional[float] = Field(None, ge=0, description="Shelf price")
    expiry_date: date = Field(..., description="Expiry date")
    min_stock_level: int = Field(
        DEFAULT_MIN_STOCK_LEVEL,
        ge=0,
        description="Reorder threshold"
    )
    halal_certified: bool = Field(True, description="Certification flag")
    halal_certification_body: Optional[str] = Field(None, description="Certifying body")
    brand: Optional[str] = None
    weight: Optional[str] = None
    origin: Optional[str] = None
    barcode: Optional[str] = Field(None, description="Left empty for backend generation")
    description: Optional[str] = None
    location: Optional[str] = Field(None, description="Shelf or storage location")


class ProductRecord(ProductPayload, TimestampMixin):
    """
    Product as stored on the backend.

    Columns without a field here are kept in ``model_extra`` so a copy can
    carry them across.
    """

    model_config = ConfigDict(extra="allow")

    id: EntityId = Field(..., description="Product identifier")

    def to_payload(self, **overrides) -> ProductPayload:
        """Strip identity and timestamps, optionally overriding fields."""
        data = self.model_dump(include=set(ProductPayload.model_fields))
        data.update(overrides)
        return ProductPayload(**data)

    def copy_fields(self, **overrides) -> dict:
        """
        Backend columns for a copy of this product.

        Everything except ``id`` and the timestamps, including columns
        the payload schema does not model.
        """
        extra = self.model_extra or {}
        return {**extra, **self.to_payload(**overrides).model_dump(mode="json")}
