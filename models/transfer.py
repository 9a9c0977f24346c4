"""
Multi-store transfer schemas.
"""

from pydantic import BaseModel, Field
from typing import Any, Optional
from enum import Enum

from models.base import FrozenSchema, EntityId


class TransferAction(str, Enum):
    """How products change stores."""
    COPY = "copy"
    MOVE = "move"


class StoreContext(BaseModel):
    """Stores the caller is allowed to write to."""

    store_ids: list[str] = Field(default_factory=list)

    def can_access(self, store_id: str) -> bool:
        return store_id in self.store_ids

    def inaccessible(self, store_ids: list[str]) -> list[str]:
        return [s for s in store_ids if not self.can_access(s)]


class TransferRequest(BaseModel):
    """
    Copy or move a set of products from one store to another.

    Preconditions are checked by the distributor, not here, so that a bad
    request surfaces as InvalidTransferError.
    """

    action: TransferAction
    product_ids: set[str] = Field(default_factory=set)
    source_store_id: str
    target_store_id: str


class TransferItemResult(FrozenSchema):
    """Outcome for one product of a transfer."""

    product_id: str
    success: bool
    new_product_id: Optional[EntityId] = None
    error: Optional[str] = None


class TransferResult(FrozenSchema):
    """Outcome of a transfer request."""

    action: TransferAction
    source_store_id: str
    target_store_id: str
    total: int
    successful: int
    failed: int
    results: list[TransferItemResult] = Field(default_factory=list)

    @classmethod
    def from_results(
        cls,
        request: TransferRequest,
        results: list[TransferItemResult]
    ) -> "TransferResult":
        successful = sum(1 for r in results if r.success)
        return cls(
            action=request.action,
            source_store_id=request.source_store_id,
            target_store_id=request.target_store_id,
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=list(results),
        )


class StoreCreationResult(FrozenSchema):
    """Outcome of persisting a product in one store."""

    store_id: str
    success: bool
    canonical: bool = False
    product_id: Optional[EntityId] = None
    error: Optional[str] = None


class DistributionResult(FrozenSchema):
    """Outcome of creating one product in several stores at once."""

    canonical_store_id: str
    canonical_id: Optional[EntityId] = None
    total: int
    successful: int
    failed: int
    results: list[StoreCreationResult] = Field(default_factory=list)


# ===================
# API REQUESTS
# ===================

class TransferCommand(TransferRequest):
    """Transfer request as received over HTTP, with the caller's store scope."""

    allowed_store_ids: Optional[list[str]] = Field(
        None,
        description="Stores the caller may write to; omitted means unrestricted"
    )

    def store_context(self) -> Optional[StoreContext]:
        if self.allowed_store_ids is None:
            return None
        return StoreContext(store_ids=self.allowed_store_ids)

    def to_request(self) -> TransferRequest:
        return TransferRequest(**self.model_dump(include=set(TransferRequest.model_fields)))


class DistributeRequest(BaseModel):
    """Create one new product in several stores."""

    product: dict[str, Any] = Field(..., description="Product fields, store excluded")
    store_ids: list[str] = Field(default_factory=list)
    allowed_store_ids: Optional[list[str]] = None

    def store_context(self) -> Optional[StoreContext]:
        if self.allowed_store_ids is None:
            return None
        return StoreContext(store_ids=self.allowed_store_ids)
