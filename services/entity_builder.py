"""
Entity builder: turns validated rows and resolved references into backend payloads.

Builders are pure. They never read the row's own store column; the payload
store is always the store the caller imports into.
"""

from typing import Any, Optional

from models.imports import ImportKind, ReferenceKind, ResolvedReference
from models.order import OrderChannel, OrderItemPayload, OrderPayload, OrderStatus
from models.product import DEFAULT_MIN_STOCK_LEVEL, ProductPayload
from services.row_adapter import is_blank
from utils.text_utils import clean_text


FALSE_STRINGS = {"false", "0", "no", "n"}


def display_price(values: dict[str, Any]) -> float:
    """Explicit price, else selling price, else cost price, else 0."""
    for name in ("price", "selling_price", "cost_price"):
        value = values.get(name)
        if value is not None:
            return round(float(value), 2)
    return 0.0


def coerce_certified(value: Any) -> bool:
    """
    Certification flag from a spreadsheet cell.

    True unless explicitly false: False, 0, or "false"/"0"/"no"/"n" in any
    case. Blank cells count as not given.
    """
    if is_blank(value):
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() not in FALSE_STRINGS


def _round_price(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(float(value), 2)


class ProductBuilder:
    """Build ProductPayload from a validated product row."""

    kind = ImportKind.PRODUCT

    def __init__(self, default_min_stock_level: int = DEFAULT_MIN_STOCK_LEVEL):
        self.default_min_stock_level = default_min_stock_level

    def build(
        self,
        values: dict[str, Any],
        refs: dict[ReferenceKind, ResolvedReference],
        store_id: str
    ) -> ProductPayload:
        min_stock = values.get("min_stock_level")

        return ProductPayload(
            name=values["name"],
            category_id=refs[ReferenceKind.CATEGORY].id,
            supplier_id=refs[ReferenceKind.SUPPLIER].id,
            supermarket_id=store_id,
            quantity=values["quantity"],
            price=display_price(values),
            cost_price=_round_price(values.get("cost_price")),
            selling_price=_round_price(values.get("selling_price")),
            expiry_date=values["expiry_date"],
            min_stock_level=self.default_min_stock_level if min_stock is None else min_stock,
            halal_certified=coerce_certified(values.get("halal_certified")),
            halal_certification_body=values.get("halal_certification_body"),
            brand=values.get("brand"),
            weight=values.get("weight"),
            origin=values.get("origin"),
            barcode=values.get("barcode"),
            description=values.get("description"),
            location=values.get("location"),
        )


class OrderBuilder:
    """Build OrderPayload from a validated order row."""

    kind = ImportKind.ORDER

    def __init__(self, channel: OrderChannel = OrderChannel.POS):
        self.channel = OrderChannel(channel)

    def build(
        self,
        values: dict[str, Any],
        refs: dict[ReferenceKind, ResolvedReference],
        store_id: str
    ) -> OrderPayload:
        items = [
            OrderItemPayload(
                product=item["product"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                total_price=round(item["quantity"] * item["unit_price"], 2),
            )
            for item in values["items"]
        ]

        return OrderPayload(
            supermarket_id=store_id,
            channel=self.channel,
            status=OrderStatus.PENDING,
            external_order_id=values.get("external_order_id"),
            customer_name=clean_text(values.get("customer_name")),
            customer_email=values.get("customer_email"),
            customer_phone=values.get("customer_phone"),
            notes=values.get("notes"),
            items=items,
            total_amount=round(sum(i.total_price for i in items), 2),
        )
