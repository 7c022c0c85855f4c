from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.order import Order, OrderItem, ORDER_STATUSES
from storefront.models.user import User

__all__ = ["Category", "Product", "Order", "OrderItem", "ORDER_STATUSES", "User"]
