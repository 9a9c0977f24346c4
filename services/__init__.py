"""
Business logic services.

Each service handles one stage of the import and distribution engine.
"""

from services.backend import InventoryBackend, SupabaseBackend, get_backend
from services.row_adapter import RowShape, adapt_row, detect_shape
from services.schema_validator import ValidationResult, get_validator, validate
from services.reference_resolver import ReferenceResolver
from services.entity_builder import OrderBuilder, ProductBuilder
from services.import_service import CancellationToken, ImportService, get_import_service
from services.store_distributor import StoreDistributor, get_store_distributor

__all__ = [
    "InventoryBackend",
    "SupabaseBackend",
    "get_backend",
    "RowShape",
    "adapt_row",
    "detect_shape",
    "ValidationResult",
    "get_validator",
    "validate",
    "ReferenceResolver",
    "OrderBuilder",
    "ProductBuilder",
    "CancellationToken",
    "ImportService",
    "get_import_service",
    "StoreDistributor",
    "get_store_distributor",
]
