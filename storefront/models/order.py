"""
Order and OrderItem.

Order status flow: pending -> processing -> shipped -> delivered, with
cancelled reachable from any state. Only membership in ORDER_STATUSES is enforced.

OrderItem copies product name/price/image at purchase time and keeps
product_id as a plain integer (no foreign key), so orders keep rendering
after the product is edited or deleted.
"""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.db.base import Base

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_no = Column(String(50), nullable=False, unique=True)
    customer_name = Column(String(50), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    address = Column(String(255), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)  # sum of item subtotals, fixed at creation
    status = Column(String(20), nullable=False, default="pending")
    remark = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Items are deleted explicitly before the order; the FK cascade is only a backstop
    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    product_name = Column(String(100), nullable=False)
    product_image = Column(String(255), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)  # unit price at purchase time
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
