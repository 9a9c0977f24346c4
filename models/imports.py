"""
Bulk import schemas: candidate rows, resolved references and the import report.
"""

from dataclasses import dataclass, field
from pydantic import BaseModel, Field, model_validator
from typing import Any, Optional, Union
from enum import Enum

from config.settings import Settings
from models.base import FrozenSchema, EntityId
from models.order import OrderChannel, OrderPayload
from models.product import ProductPayload


class ImportKind(str, Enum):
    """Target entity of an import batch."""
    PRODUCT = "product"
    ORDER = "order"


class ReferenceKind(str, Enum):
    """Free-text references that resolve to backend entities."""
    CATEGORY = "category"
    SUPPLIER = "supplier"


class RowStage(str, Enum):
    """Per-row import state machine. FAILED and SUCCEEDED are terminal."""
    PENDING = "pending"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    BUILDING = "building"
    CREATING = "creating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class CandidateRow:
    """One raw record from a row source, numbered from 1."""
    index: int
    values: dict[str, Any] = field(default_factory=dict)


class ResolvedReference(FrozenSchema):
    """A category or supplier name mapped to its backend identifier."""

    kind: ReferenceKind
    name: str
    id: EntityId
    created: bool = False


class ImportOptions(BaseModel):
    """Caller switches for one import call."""

    create_missing_categories: bool = True
    create_missing_suppliers: bool = True
    channel: OrderChannel = Field(OrderChannel.POS, description="Channel stamped on imported orders")

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "ImportOptions":
        """Build options from configured defaults."""
        data = {
            "create_missing_categories": settings.create_missing_categories,
            "create_missing_suppliers": settings.create_missing_suppliers,
            "channel": settings.default_order_channel,
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)

    def allows_create(self, kind: ReferenceKind) -> bool:
        if kind == ReferenceKind.CATEGORY:
            return self.create_missing_categories
        return self.create_missing_suppliers


class RowResult(FrozenSchema):
    """Outcome of one row."""

    row_index: int
    success: bool
    entity: Optional[Union[ProductPayload, OrderPayload]] = None
    entity_id: Optional[EntityId] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class ImportReport(FrozenSchema):
    """
    Consolidated outcome of an import batch.

    ``successful`` and ``failed`` are derived from ``results`` by
    ``from_results``; the validator rejects any report where
    successful + failed != total != len(results).
    """

    kind: ImportKind
    store_id: str
    total: int
    successful: int
    failed: int
    new_categories: tuple[ResolvedReference, ...] = ()
    new_suppliers: tuple[ResolvedReference, ...] = ()
    results: tuple[RowResult, ...] = ()
    cancelled: bool = False

    @model_validator(mode="after")
    def counts_match_results(self) -> "ImportReport":
        if self.successful + self.failed != self.total or self.total != len(self.results):
            raise ValueError("report counts do not match row results")
        return self

    @classmethod
    def from_results(
        cls,
        kind: ImportKind,
        store_id: str,
        results: list[RowResult],
        new_categories: Optional[list[ResolvedReference]] = None,
        new_suppliers: Optional[list[ResolvedReference]] = None,
        cancelled: bool = False,
    ) -> "ImportReport":
        successful = sum(1 for r in results if r.success)
        return cls(
            kind=kind,
            store_id=store_id,
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            new_categories=tuple(new_categories or ()),
            new_suppliers=tuple(new_suppliers or ()),
            results=tuple(results),
            cancelled=cancelled,
        )

    @property
    def summary(self) -> str:
        """Short text for the caller's banner."""
        return f"{self.successful} succeeded, {self.failed} failed"


class RowPreview(FrozenSchema):
    """Validation outcome of one row in a dry run."""

    row_index: int
    valid: bool
    errors: list[str] = Field(default_factory=list)


class ImportPreview(FrozenSchema):
    """Dry-run result: validation plus references that would be created."""

    kind: ImportKind
    total: int
    valid: int
    invalid: int
    rows: list[RowPreview] = Field(default_factory=list)
    unknown_categories: list[str] = Field(default_factory=list)
    unknown_suppliers: list[str] = Field(default_factory=list)


# ===================
# API REQUESTS
# ===================

class ProductImportRequest(BaseModel):
    """Body of a product import call."""

    store_id: str = Field(..., description="Store every product is created in")
    rows: list[Any] = Field(default_factory=list, description="Row objects in input order")
    create_missing_categories: Optional[bool] = None
    create_missing_suppliers: Optional[bool] = None


class OrderImportRequest(BaseModel):
    """Body of an order import call."""

    store_id: str = Field(..., description="Store every order is created in")
    rows: list[Any] = Field(default_factory=list, description="Order objects in input order")
    channel: Optional[OrderChannel] = None


class ImportPreviewRequest(BaseModel):
    """Body of a dry-run call."""

    rows: list[Any] = Field(default_factory=list)
