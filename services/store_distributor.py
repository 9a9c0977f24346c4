"""
Store distributor: copy or move products between stores.

Copy creates an independent product in the target store; move only
rewrites ``supermarket_id`` and keeps the product's identity. Every
precondition is checked before the first write, then each product is
handled best effort, the same way the batch importer handles rows.
"""

from typing import Any, Optional, Union
import structlog

from pydantic import ValidationError as PydanticValidationError

from exceptions import (
    AppError,
    BackendUnavailableError,
    InvalidTransferError,
    ValidationError,
)
from models.product import ProductPayload, ProductRecord
from models.transfer import (
    DistributionResult,
    StoreContext,
    StoreCreationResult,
    TransferAction,
    TransferItemResult,
    TransferRequest,
    TransferResult,
)
from services.backend import InventoryBackend, get_backend

logger = structlog.get_logger(__name__)


ProductIndex = dict[str, Union[ProductRecord, dict]]


def _field(product: Union[ProductRecord, dict], name: str) -> Any:
    if isinstance(product, ProductRecord):
        return getattr(product, name, None)
    return product.get(name)


class StoreDistributor:
    """Multi-store product distribution."""

    def __init__(self, backend: Optional[InventoryBackend] = None):
        self.backend = backend if backend is not None else get_backend()

    # ===================
    # TRANSFER
    # ===================

    def transfer(
        self,
        request: TransferRequest,
        product_index: Optional[ProductIndex] = None,
        store_context: Optional[StoreContext] = None
    ) -> TransferResult:
        """
        Copy or move ``request.product_ids`` from source to target store.

        Args:
            request: Transfer request
            product_index: Already-loaded products keyed by id; loaded once
                from the backend for the source store when omitted
            store_context: Stores the caller may write to

        Returns:
            TransferResult with one entry per product, sorted by product id

        Raises:
            InvalidTransferError: Empty selection, same source and target,
                inaccessible store, or a product outside the source store
        """
        if not request.product_ids:
            raise InvalidTransferError("Select at least one product to transfer")
        if request.source_store_id == request.target_store_id:
            raise InvalidTransferError(
                "Source and target store must differ",
                details={"store_id": request.source_store_id}
            )
        if store_context is not None:
            denied = store_context.inaccessible([request.source_store_id, request.target_store_id])
            if denied:
                raise InvalidTransferError(
                    f"You don't have access to stores: {', '.join(denied)}",
                    details={"stores": denied}
                )

        index = self._index(product_index, request.source_store_id)
        products = self._check_ownership(request, index)

        logger.info(
            "transfer_started",
            action=request.action.value,
            products=len(products),
            source=request.source_store_id,
            target=request.target_store_id
        )

        if request.action == TransferAction.COPY:
            results = [self._copy_one(pid, p, request.target_store_id) for pid, p in products]
        else:
            results = [self._move_one(pid, p, request.target_store_id) for pid, p in products]

        result = TransferResult.from_results(request, results)

        logger.info(
            "transfer_completed",
            action=request.action.value,
            successful=result.successful,
            failed=result.failed
        )

        return result

    def _index(self, product_index: Optional[ProductIndex], source_store_id: str) -> ProductIndex:
        if product_index is None:
            rows = self.backend.list_products(supermarket_id=source_store_id)
            product_index = {row["id"]: row for row in rows}
        return {str(key): value for key, value in product_index.items()}

    def _check_ownership(
        self,
        request: TransferRequest,
        index: ProductIndex
    ) -> list[tuple[str, Union[ProductRecord, dict]]]:
        missing = []
        foreign = []
        products = []
        for product_id in sorted(str(p) for p in request.product_ids):
            product = index.get(product_id)
            if product is None:
                missing.append(product_id)
            elif str(_field(product, "supermarket_id")) != str(request.source_store_id):
                foreign.append(product_id)
            else:
                products.append((product_id, product))

        if missing or foreign:
            raise InvalidTransferError(
                "Products must belong to the source store",
                details={
                    "source_store_id": request.source_store_id,
                    "unknown": missing,
                    "other_store": foreign,
                }
            )
        return products

    def _copy_one(
        self,
        product_id: str,
        product: Union[ProductRecord, dict],
        target_store_id: str
    ) -> TransferItemResult:
        try:
            record = product if isinstance(product, ProductRecord) else ProductRecord(**product)
            data = record.copy_fields(supermarket_id=target_store_id)
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            logger.warning("product_copy_invalid", product_id=product_id, fields=fields)
            return TransferItemResult(
                product_id=product_id,
                success=False,
                error=f"Invalid product data: {', '.join(fields)}"
            )

        try:
            created = self.backend.create_product(data)
        except BackendUnavailableError:
            raise
        except AppError as e:
            logger.warning("product_copy_failed", product_id=product_id, error=e.message)
            return TransferItemResult(product_id=product_id, success=False, error=e.message)

        return TransferItemResult(
            product_id=product_id,
            success=True,
            new_product_id=created.get("id")
        )

    def _move_one(
        self,
        product_id: str,
        product: Union[ProductRecord, dict],
        target_store_id: str
    ) -> TransferItemResult:
        backend_id = _field(product, "id")
        if backend_id is None:
            backend_id = product_id
        try:
            self.backend.update_product(backend_id, {"supermarket_id": target_store_id})
        except BackendUnavailableError:
            raise
        except AppError as e:
            logger.warning("product_move_failed", product_id=product_id, error=e.message)
            return TransferItemResult(product_id=product_id, success=False, error=e.message)

        return TransferItemResult(
            product_id=product_id,
            success=True,
            new_product_id=backend_id
        )

    # ===================
    # ADD TO ALL STORES
    # ===================

    def distribute_new_product(
        self,
        payload: Union[ProductPayload, dict[str, Any]],
        store_ids: list[str],
        store_context: Optional[StoreContext] = None
    ) -> DistributionResult:
        """
        Persist one new product in several stores.

        The first store is canonical, the others receive copies. Each
        creation is independent; a failed store does not undo the others.

        Args:
            payload: Product fields; ``supermarket_id`` may be omitted and
                is overwritten per store
            store_ids: Target stores, first one canonical
            store_context: Stores the caller may write to

        Raises:
            InvalidTransferError: No stores, or a store outside the context
            ValidationError: Product fields do not form a valid product
        """
        unique_ids = list(dict.fromkeys(s for s in store_ids if s))
        if not unique_ids:
            raise InvalidTransferError("At least one store must be selected")
        if store_context is not None:
            denied = store_context.inaccessible(unique_ids)
            if denied:
                raise InvalidTransferError(
                    f"You don't have access to stores: {', '.join(denied)}",
                    details={"stores": denied}
                )

        canonical_store_id = unique_ids[0]
        if not isinstance(payload, ProductPayload):
            try:
                payload = ProductPayload(**{**payload, "supermarket_id": canonical_store_id})
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid product data",
                    code="INVALID_PRODUCT",
                    details={"errors": [
                        {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
                        for err in e.errors()
                    ]}
                ) from e

        results: list[StoreCreationResult] = []

        for store_id in unique_ids:
            canonical = store_id == canonical_store_id
            data = payload.model_copy(update={"supermarket_id": store_id}).model_dump(mode="json")
            try:
                created = self.backend.create_product(data)
            except BackendUnavailableError:
                raise
            except AppError as e:
                logger.warning("store_copy_failed", store_id=store_id, error=e.message)
                results.append(StoreCreationResult(
                    store_id=store_id,
                    success=False,
                    canonical=canonical,
                    error=e.message
                ))
                continue

            results.append(StoreCreationResult(
                store_id=store_id,
                success=True,
                canonical=canonical,
                product_id=created.get("id")
            ))

        successful = sum(1 for r in results if r.success)

        logger.info(
            "product_distributed",
            name=payload.name,
            stores=len(unique_ids),
            successful=successful
        )

        return DistributionResult(
            canonical_store_id=canonical_store_id,
            canonical_id=results[0].product_id,
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=results,
        )


# Singleton instance for convenience
_store_distributor: Optional[StoreDistributor] = None

def get_store_distributor() -> StoreDistributor:
    """Get or create StoreDistributor instance."""
    global _store_distributor
    if _store_distributor is None:
        _store_distributor = StoreDistributor()
    return _store_distributor
