"""
Order schemas for imported sales orders.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema


class OrderChannel(str, Enum):
    """Sales channel an order came from."""
    SHOPIFY = "SHOPIFY"
    AMAZON = "AMAZON"
    DARAZ = "DARAZ"
    POS = "POS"
    MANUAL = "MANUAL"
    WEBSITE = "WEBSITE"


class OrderStatus(str, Enum):
    """Order lifecycle status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class OrderItemPayload(BaseSchema):
    """Single order line."""

    product: str = Field(..., min_length=1, description="Product reference as sent by the channel")
    quantity: float = Field(..., description="Units ordered")
    unit_price: float = Field(..., description="Price per unit")
    total_price: float = Field(..., description="quantity × unit_price")


class OrderPayload(BaseSchema):
    """
    Canonical order shape accepted by the backend create endpoint.

    Imported orders always start as PENDING in the caller's store.
    """

    supermarket_id: str = Field(..., min_length=1, description="Owning store identifier")
    channel: OrderChannel = Field(OrderChannel.POS, description="Sales channel")
    status: OrderStatus = Field(OrderStatus.PENDING, description="Initial status")
    external_order_id: Optional[str] = Field(None, description="Order id on the source channel")
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    items: list[OrderItemPayload] = Field(..., min_length=1)
    total_amount: float = Field(..., description="Sum of item totals")
