"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    FrozenSchema,
    TimestampMixin,
    EntityId,
)
from models.product import (
    DEFAULT_MIN_STOCK_LEVEL,
    ProductPayload,
    ProductRecord,
)
from models.order import (
    OrderChannel,
    OrderStatus,
    OrderItemPayload,
    OrderPayload,
)
from models.imports import (
    ImportKind,
    ReferenceKind,
    RowStage,
    CandidateRow,
    ResolvedReference,
    ImportOptions,
    RowResult,
    ImportReport,
    RowPreview,
    ImportPreview,
    ProductImportRequest,
    OrderImportRequest,
    ImportPreviewRequest,
)
from models.transfer import (
    TransferAction,
    StoreContext,
    TransferRequest,
    TransferItemResult,
    TransferResult,
    StoreCreationResult,
    DistributionResult,
    TransferCommand,
    DistributeRequest,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",
    "TimestampMixin",
    "EntityId",

    # Product
    "DEFAULT_MIN_STOCK_LEVEL",
    "ProductPayload",
    "ProductRecord",

    # Order
    "OrderChannel",
    "OrderStatus",
    "OrderItemPayload",
    "OrderPayload",

    # Import
    "ImportKind",
    "ReferenceKind",
    "RowStage",
    "CandidateRow",
    "ResolvedReference",
    "ImportOptions",
    "RowResult",
    "ImportReport",
    "RowPreview",
    "ImportPreview",
    "ProductImportRequest",
    "OrderImportRequest",
    "ImportPreviewRequest",

    # Transfer
    "TransferAction",
    "StoreContext",
    "TransferRequest",
    "TransferItemResult",
    "TransferResult",
    "StoreCreationResult",
    "DistributionResult",
    "TransferCommand",
    "DistributeRequest",
]
