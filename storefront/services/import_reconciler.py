"""
Bulk catalog import with row-scoped failure isolation.

Every row is its own transaction: a failing row is rolled back (including a
category it would have created) and recorded in the report, and the batch
moves on. Rows that succeeded before or after it are unaffected.
"""
import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from storefront.core.audit import AuditLog
from storefront.core.exceptions import StorefrontError
from storefront.db.repository import Repository
from storefront.db.session import atomic
from storefront.models.product import Product
from storefront.schemas.imports import ImportReport, ImportRow
from storefront.services.category_resolver import CategoryResolver
from storefront.services.validation import (
    non_negative_int,
    optional_text,
    positive_price,
    require_text,
)

logger = logging.getLogger(__name__)


class ImportReconciler:
    def __init__(self, db: Session, resolver: Optional[CategoryResolver] = None):
        self.db = db
        self.resolver = resolver or CategoryResolver(db)
        self.products = Repository(db, Product)

    def import_batch(self, rows: Sequence[ImportRow], source: str = "rows") -> ImportReport:
        report = ImportReport()
        for row_number, row in enumerate(rows, start=1):
            try:
                with atomic(self.db):
                    product = self._import_row(row)
                    product_id = product.id
            except StorefrontError as exc:
                report.record_failure(row_number, exc.message)
                logger.warning(f"[Import] Row {row_number} failed: {exc.message}")
            except Exception as exc:
                report.record_failure(row_number, str(exc) or type(exc).__name__)
                logger.error(f"[Import] Row {row_number} failed unexpectedly: {exc}", exc_info=True)
            else:
                report.record_success()
                logger.debug(f"[Import] Row {row_number} imported as product {product_id}")

        logger.info(f"[Import] Batch done: imported={report.imported}, failed={report.failed}")
        AuditLog.log_import(report.imported, report.failed, source=source)
        return report

    def _import_row(self, row: ImportRow) -> Product:
        # Validate the whole row before touching storage
        name = require_text(row.name, "name", 100)
        category_name = require_text(row.category_name, "category_name", 50)
        price = positive_price(row.price)
        stock = non_negative_int(row.stock if row.stock is not None else 0)
        description = optional_text(row.description, "description")
        image = optional_text(row.image, "image")

        category = self.resolver.resolve_or_create(category_name)
        return self.products.insert(
            Product(
                name=name,
                description=description,
                price=price,
                stock=stock,
                image=image,
                category_id=category.id,
                is_active=True,
            )
        )
