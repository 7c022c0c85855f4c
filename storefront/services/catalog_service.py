"""Category and product CRUD. Category deletion lives in CategoryGuard."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from storefront.core.audit import AuditLog
from storefront.core.config import settings
from storefront.core.exceptions import NotFoundError
from storefront.db.repository import Repository
from storefront.db.session import atomic
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.category import CategoryCreate, CategoryUpdate
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.validation import (
    non_negative_int,
    optional_text,
    positive_price,
    require_text,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# CATEGORIES
# ==============================================================================

def get_category(db: Session, category_id: int) -> Category:
    category = Repository(db, Category).find_by_id(category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.created_at.desc(), Category.id.desc()).all()


def create_category(db: Session, data: CategoryCreate) -> Category:
    name = require_text(data.name, "name", 50)
    with atomic(db):
        category = Repository(db, Category).insert(
            Category(name=name, description=optional_text(data.description), is_active=data.is_active)
        )
        category_id = category.id
    AuditLog.log_action("create", "category", category_id, changes={"name": name})
    return get_category(db, category_id)


def update_category(db: Session, category_id: int, data: CategoryUpdate) -> Category:
    values = data.model_dump(exclude_unset=True)
    if "name" in values:
        values["name"] = require_text(values["name"], "name", 50)
    if "description" in values:
        values["description"] = optional_text(values["description"])
    if values.get("is_active", True) is None:
        values.pop("is_active")

    repo = Repository(db, Category)
    with atomic(db):
        category = repo.find_by_id(category_id, for_update=True)
        if category is None:
            raise NotFoundError("Category", category_id)
        repo.update(category, **values)
    AuditLog.log_action("update", "category", category_id, changes=values)
    return get_category(db, category_id)


# ==============================================================================
# PRODUCTS
# ==============================================================================

def get_product(db: Session, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.id == product_id)
        .first()
    )
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def list_products(db: Session, page: int = 1, page_size: Optional[int] = None) -> Tuple[List[Product], int]:
    """Newest first. Returns (products on this page, total product count)."""
    page = max(page, 1)
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    page_size = min(max(page_size, 1), settings.MAX_PAGE_SIZE)

    total = db.query(Product).count()
    items = (
        db.query(Product)
        .options(joinedload(Product.category))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return items, total


def products_by_category(db: Session, category_id: int) -> List[Product]:
    get_category(db, category_id)
    return (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.category_id == category_id)
        .order_by(Product.id)
        .all()
    )


def search_products(db: Session, keyword: str) -> List[Product]:
    """Substring match on name or description."""
    keyword = (keyword or "").strip()
    if not keyword:
        return []
    pattern = f"%{keyword}%"
    return (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(or_(Product.name.like(pattern), Product.description.like(pattern)))
        .order_by(Product.id)
        .all()
    )


def create_product(db: Session, data: ProductCreate) -> Product:
    name = require_text(data.name, "name", 100)
    price = positive_price(data.price)
    stock = non_negative_int(data.stock)

    with atomic(db):
        category = Repository(db, Category).find_by_id(data.category_id)
        if category is None:
            raise NotFoundError("Category", data.category_id)
        product = Repository(db, Product).insert(
            Product(
                name=name,
                description=optional_text(data.description),
                price=price,
                stock=stock,
                image=optional_text(data.image),
                category_id=category.id,
                is_active=data.is_active,
            )
        )
        product_id = product.id
    AuditLog.log_action("create", "product", product_id, changes={"name": name, "stock": stock})
    return get_product(db, product_id)


def update_product(db: Session, product_id: int, data: ProductUpdate) -> Product:
    values = data.model_dump(exclude_unset=True)
    if "name" in values:
        values["name"] = require_text(values["name"], "name", 100)
    if "price" in values:
        values["price"] = positive_price(values["price"])
    if "stock" in values:
        values["stock"] = non_negative_int(values["stock"])
    for field in ("description", "image"):
        if field in values:
            values[field] = optional_text(values[field])
    for field in ("is_active", "category_id"):
        if field in values and values[field] is None:
            values.pop(field)

    repo = Repository(db, Product)
    with atomic(db):
        product = repo.find_by_id(product_id, for_update=True)
        if product is None:
            raise NotFoundError("Product", product_id)
        if "category_id" in values and not Repository(db, Category).exists("id", values["category_id"]):
            raise NotFoundError("Category", values["category_id"])
        repo.update(product, **values)
    AuditLog.log_action("update", "product", product_id, changes=values)
    return get_product(db, product_id)


def delete_product(db: Session, product_id: int) -> bool:
    """Existing order items keep their snapshot of this product."""
    repo = Repository(db, Product)
    with atomic(db):
        product = repo.find_by_id(product_id, for_update=True)
        if product is None:
            raise NotFoundError("Product", product_id)
        name = product.name
        repo.delete(product)
    logger.info(f"[Catalog] Deleted product '{name}' (id={product_id})")
    AuditLog.log_action("delete", "product", product_id, changes={"name": name})
    return True
