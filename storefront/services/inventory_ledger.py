"""Stock read/decrement. The only writer of Product.stock during order placement."""
import logging
from typing import Dict, List

from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.exceptions import InsufficientStockError, ProductNotFoundError, ValidationError
from storefront.db.repository import Repository
from storefront.models.product import Product

logger = logging.getLogger(__name__)


def stock_status(stock: int, low_threshold: int = None) -> str:
    """Classify a stock level: out_of_stock, low, normal or sufficient."""
    if low_threshold is None:
        low_threshold = settings.LOW_STOCK_THRESHOLD
    if stock <= 0:
        return "out_of_stock"
    if stock <= low_threshold:
        return "low"
    if stock <= 50:
        return "normal"
    return "sufficient"


class InventoryLedger:
    """
    Per-product stock ledger bound to one session.

    try_decrement never commits. Its writes belong to the caller's
    transaction, so a failure later in the same order rolls them back.

    Serialization of concurrent decrements on one product:
    - the product row is read with SELECT ... FOR UPDATE (PostgreSQL/MySQL);
    - the write is a guarded UPDATE (stock = stock - q WHERE stock >= q), so
      two writers can never both pass the check on the same stock value;
    - on SQLite, BEGIN IMMEDIATE serializes writer transactions.
    """

    def __init__(self, db: Session):
        self.db = db
        self.products = Repository(db, Product)

    def get_stock(self, product_id: int) -> int:
        product = self.products.find_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product.stock

    def try_decrement(self, product_id: int, quantity: int) -> Product:
        if quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {quantity}", field="quantity")

        product = self.products.find_by_id(product_id, for_update=True)
        if product is None:
            raise ProductNotFoundError(product_id)

        if product.stock < quantity:
            logger.info(
                f"[Inventory] Insufficient stock for product {product_id}: "
                f"requested={quantity}, available={product.stock}"
            )
            raise InsufficientStockError(product.id, product.name, quantity, product.stock)

        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Stock moved between the read and the write
            self.db.refresh(product)
            raise InsufficientStockError(product.id, product.name, quantity, product.stock)

        self.db.refresh(product)
        logger.debug(f"[Inventory] Product {product_id} stock -{quantity} -> {product.stock}")
        return product

    def stock_report(self, low_threshold: int = None) -> List[Dict]:
        """Current stock of every product with its stock status, lowest stock first."""
        rows = self.db.query(Product).order_by(Product.stock.asc(), Product.id.asc()).all()
        return [
            {
                "product_id": p.id,
                "name": p.name,
                "stock": p.stock,
                "status": stock_status(p.stock, low_threshold),
                "price": p.price,
                "category": p.category.name if p.category else None,
                "is_active": p.is_active,
            }
            for p in rows
        ]
