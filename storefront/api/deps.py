"""FastAPI dependencies: a DB session per request and the core components built on it.

Components are constructed explicitly from the request's session; tests
override `get_db` to point them at their own database.
"""
from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from storefront.db.session import SessionLocal
from storefront.services.category_guard import CategoryGuard
from storefront.services.import_reconciler import ImportReconciler
from storefront.services.inventory_ledger import InventoryLedger
from storefront.services.order_manager import OrderTransactionManager


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_order_manager(db: Session = Depends(get_db)) -> OrderTransactionManager:
    return OrderTransactionManager(db)


def get_inventory_ledger(db: Session = Depends(get_db)) -> InventoryLedger:
    return InventoryLedger(db)


def get_category_guard(db: Session = Depends(get_db)) -> CategoryGuard:
    return CategoryGuard(db)


def get_import_reconciler(db: Session = Depends(get_db)) -> ImportReconciler:
    return ImportReconciler(db)
