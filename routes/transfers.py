"""
Multi-store transfer API routes.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.transfer import (
    DistributeRequest,
    DistributionResult,
    TransferCommand,
    TransferResult,
)
from services.store_distributor import get_store_distributor
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("", response_model=TransferResult)
async def transfer_products(command: TransferCommand):
    """
    Copy or move products from one store to another.

    Raises:
        422: Empty selection, same store twice, no access to a store,
             or a product that is not in the source store
    """
    try:
        distributor = get_store_distributor()
        return distributor.transfer(
            command.to_request(),
            store_context=command.store_context()
        )
    except Exception as e:
        return handle_error(e)


@router.post("/distribute", response_model=DistributionResult, status_code=201)
async def distribute_product(request: DistributeRequest):
    """
    Create one new product in every selected store.

    The first store holds the canonical product; each store is created
    independently.
    """
    try:
        distributor = get_store_distributor()
        return distributor.distribute_new_product(
            request.product,
            request.store_ids,
            store_context=request.store_context()
        )
    except Exception as e:
        return handle_error(e)
