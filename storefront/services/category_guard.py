"""Referential-integrity guard for category deletion."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.audit import AuditLog
from storefront.core.exceptions import NotFoundError, ReferentialIntegrityError
from storefront.db.repository import Repository
from storefront.db.session import atomic
from storefront.models.category import Category
from storefront.models.product import Product

logger = logging.getLogger(__name__)


class CategoryGuard:
    """
    A category can be deleted only while no product references it.

    delete_category re-checks inside its own transaction with the category
    row locked (on PostgreSQL a concurrent product insert needs a key-share
    lock on that row, so it waits). The RESTRICT foreign key on
    products.category_id rejects the delete at the storage layer if a
    reference slips through anyway.
    """

    def __init__(self, db: Session):
        self.db = db
        self.categories = Repository(db, Category)
        self.products = Repository(db, Product)

    def can_delete(self, category_id: int) -> bool:
        """True when the category exists and no product references it."""
        if not self.categories.exists("id", category_id):
            return False
        return not self.products.exists("category_id", category_id)

    def delete_category(self, category_id: int) -> bool:
        try:
            with atomic(self.db):
                category = self.categories.find_by_id(category_id, for_update=True)
                if category is None:
                    raise NotFoundError("Category", category_id)

                product_count = self.products.count("category_id", category_id)
                if product_count:
                    raise ReferentialIntegrityError(category_id, product_count)

                name = category.name
                try:
                    self.categories.delete(category)
                except IntegrityError as exc:
                    raise ReferentialIntegrityError(category_id) from exc
        except ReferentialIntegrityError as exc:
            AuditLog.log_rejected("delete", "category", category_id, exc.message)
            raise

        logger.info(f"[CategoryGuard] Deleted category '{name}' (id={category_id})")
        AuditLog.log_action("delete", "category", category_id, changes={"name": name})
        return True
