"""Find-or-create categories by name for the catalog import."""
import logging

from sqlalchemy.orm import Session

from storefront.db.repository import Repository
from storefront.models.category import Category
from storefront.services.validation import require_text

logger = logging.getLogger(__name__)


class CategoryResolver:
    """
    Exact-name lookup, then create. Writes are flushed into the caller's
    transaction, so a category created for a row that later fails is rolled
    back with that row.

    Names are not unique at the storage layer: two concurrent imports that
    both introduce the same new name can each create one. Within one batch
    rows run sequentially and each sees the categories earlier rows committed.
    """

    def __init__(self, db: Session):
        self.db = db
        self.categories = Repository(db, Category)

    def resolve_or_create(self, name: str) -> Category:
        name = require_text(name, "category_name", 50)
        category = self.categories.find_by_field("name", name)
        if category is not None:
            return category

        category = self.categories.insert(Category(name=name, description="", is_active=True))
        logger.info(f"[Import] Created category '{name}' (id={category.id})")
        return category
