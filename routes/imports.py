"""
Bulk import API routes.

Row-level failures never change the status code: a batch with failed rows
still returns 200 with the report. Only batch-level problems (missing
store, oversized batch, unreadable file, backend outage) return an error.
"""

from fastapi import APIRouter, Query, UploadFile, File, Form
from fastapi.responses import JSONResponse, Response
from typing import Optional
import structlog

from models.imports import (
    ImportKind,
    ImportOptions,
    ImportPreview,
    ImportPreviewRequest,
    ImportReport,
    OrderImportRequest,
    ProductImportRequest,
)
from services.import_service import get_import_service
from parsers.product_sheet_parser import parse_product_sheet, product_template_csv
from exceptions import AppError, BatchAbortedError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, BatchAbortedError):
        content = e.to_dict()
        content["report"] = e.report.model_dump(mode="json")
        return JSONResponse(status_code=e.status_code, content=content)
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
# PRODUCTS
# ===================

@router.post("/products", response_model=ImportReport)
async def import_products(request: ProductImportRequest):
    """
    Import product rows into one store.

    Categories and suppliers are matched by name and created when missing,
    unless the matching switch is turned off.
    """
    try:
        service = get_import_service()
        options = ImportOptions.from_settings(
            service.settings,
            create_missing_categories=request.create_missing_categories,
            create_missing_suppliers=request.create_missing_suppliers,
        )
        return service.import_batch(
            request.rows,
            ImportKind.PRODUCT,
            request.store_id,
            options=options
        )
    except Exception as e:
        return handle_error(e)


@router.post("/products/upload", response_model=ImportReport)
async def upload_products(
    file: UploadFile = File(...),
    store_id: str = Form(...),
    create_missing_categories: Optional[bool] = Form(None),
    create_missing_suppliers: Optional[bool] = Form(None)
):
    """
    Import products from an uploaded CSV or Excel sheet.

    Rows are numbered from 1 after the header, skipping blank lines.
    """
    logger.info(
        "product_upload_started",
        filename=file.filename,
        content_type=file.content_type,
        store_id=store_id
    )

    try:
        content = await file.read()
        rows = parse_product_sheet(content, file.filename)

        service = get_import_service()
        options = ImportOptions.from_settings(
            service.settings,
            create_missing_categories=create_missing_categories,
            create_missing_suppliers=create_missing_suppliers,
        )
        return service.import_batch(rows, ImportKind.PRODUCT, store_id, options=options)
    except Exception as e:
        return handle_error(e)


@router.post("/products/preview", response_model=ImportPreview)
async def preview_products(request: ImportPreviewRequest):
    """
    Dry run: validate rows and list categories and suppliers that would
    be created. Nothing is written.
    """
    try:
        service = get_import_service()
        return service.preview_batch(request.rows, ImportKind.PRODUCT)
    except Exception as e:
        return handle_error(e)


@router.get("/products/template")
async def download_product_template(
    filename: str = Query("product_import_template.csv", description="Download file name")
):
    """CSV template with the expected columns and one example row."""
    return Response(
        content=product_template_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


# ===================
# ORDERS
# ===================

@router.post("/orders", response_model=ImportReport)
async def import_orders(request: OrderImportRequest):
    """Import order rows into one store, stamped with one channel."""
    try:
        service = get_import_service()
        options = ImportOptions.from_settings(service.settings, channel=request.channel)
        return service.import_batch(
            request.rows,
            ImportKind.ORDER,
            request.store_id,
            options=options
        )
    except Exception as e:
        return handle_error(e)
