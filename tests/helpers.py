"""Seeding and inspection helpers shared by the tests."""
from decimal import Decimal

from storefront.db.session import atomic
from storefront.models import Category, Product


def add_category(db, name="Beverages", description=None) -> int:
    with atomic(db):
        category = Category(name=name, description=description, is_active=True)
        db.add(category)
        db.flush()
        category_id = category.id
    return category_id


def add_product(db, category_id, name="Green Tea", price="12.50", stock=10, **extra) -> int:
    with atomic(db):
        product = Product(
            name=name,
            price=Decimal(price),
            stock=stock,
            category_id=category_id,
            is_active=True,
            **extra,
        )
        db.add(product)
        db.flush()
        product_id = product.id
    return product_id


def stock_of(session_factory, product_id) -> int:
    """Read stock through a fresh session so no cached state can leak in."""
    session = session_factory()
    try:
        return session.get(Product, product_id).stock
    finally:
        session.close()


def count_rows(session_factory, model, **criteria) -> int:
    session = session_factory()
    try:
        return session.query(model).filter_by(**criteria).count()
    finally:
        session.close()
