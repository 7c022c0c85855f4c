"""Products: CRUD, search, and bulk import (JSON rows, or a raw CSV or XLSX body)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from storefront.api.deps import get_db, get_import_reconciler
from storefront.core.config import settings
from storefront.core.exceptions import PayloadTooLargeError, ValidationError
from storefront.schemas.imports import ImportReport, ImportRequest
from storefront.schemas.product import ProductCreate, ProductPage, ProductResponse, ProductUpdate
from storefront.services import catalog_service
from storefront.services.import_parser import parse_csv, parse_xlsx
from storefront.services.import_reconciler import ImportReconciler

router = APIRouter()


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(data: ProductCreate, db: Session = Depends(get_db)):
    return catalog_service.create_product(db, data)


@router.get("", response_model=ProductPage)
def list_products(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    items, total = catalog_service.list_products(db, page, page_size)
    return {"items": items, "total": total}


@router.get("/search", response_model=list[ProductResponse])
def search_products(keyword: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return catalog_service.search_products(db, keyword)


@router.post("/import", response_model=ImportReport)
def import_products(data: ImportRequest, reconciler: ImportReconciler = Depends(get_import_reconciler)):
    """Import already-normalized rows. Partial success is reported, not raised."""
    return reconciler.import_batch(data.rows, source="json")


async def _read_upload(request: Request) -> bytes:
    """Read the raw request body, refusing anything over IMPORT_MAX_BYTES."""
    limit = settings.IMPORT_MAX_BYTES
    too_large = PayloadTooLargeError(f"Import file exceeds {limit} bytes")
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise too_large

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise too_large
    return bytes(body)


@router.post("/import/csv", response_model=ImportReport)
async def import_products_csv(request: Request, reconciler: ImportReconciler = Depends(get_import_reconciler)):
    """Import a CSV sent as the raw request body (text/csv, UTF-8)."""
    body = await _read_upload(request)
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("Import file must be UTF-8 encoded", field="file")
    rows = parse_csv(text)
    return await run_in_threadpool(reconciler.import_batch, rows, "csv")


@router.post("/import/xlsx", response_model=ImportReport)
async def import_products_xlsx(request: Request, reconciler: ImportReconciler = Depends(get_import_reconciler)):
    """Import an .xlsx workbook sent as the raw request body; the first sheet is read."""
    body = await _read_upload(request)
    rows = await run_in_threadpool(parse_xlsx, body)
    return await run_in_threadpool(reconciler.import_batch, rows, "xlsx")


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return catalog_service.get_product(db, product_id)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(product_id: int, data: ProductUpdate, db: Session = Depends(get_db)):
    return catalog_service.update_product(db, product_id, data)


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    return {"success": catalog_service.delete_product(db, product_id), "id": product_id}
