"""Inventory: stock levels with status for dashboards and restock planning."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_inventory_ledger
from storefront.schemas.product import StockLevel
from storefront.services.inventory_ledger import InventoryLedger

router = APIRouter()


@router.get("/report", response_model=list[StockLevel])
def stock_report(
    threshold: Optional[int] = Query(None, ge=0, description="Stock at or below this is reported as low"),
    ledger: InventoryLedger = Depends(get_inventory_ledger),
):
    return ledger.stock_report(threshold)


@router.get("/low-stock", response_model=list[StockLevel])
def low_stock(
    threshold: Optional[int] = Query(None, ge=0),
    ledger: InventoryLedger = Depends(get_inventory_ledger),
):
    """Products that are out of stock or low, for the dashboard alert banner."""
    return [row for row in ledger.stock_report(threshold) if row["status"] in ("out_of_stock", "low")]
