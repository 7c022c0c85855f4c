"""
Order placement and lifecycle.

create_order is all-or-nothing: every stock decrement, the order row and its
items commit together in one transaction, and any failure rolls all of them
back, leaving stock exactly as it was before the call.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.core.audit import AuditLog
from storefront.core.config import settings
from storefront.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
)
from storefront.db.repository import Repository
from storefront.db.session import atomic
from storefront.models.order import Order, OrderItem
from storefront.services.inventory_ledger import InventoryLedger
from storefront.services.order_number import OrderNumberGenerator
from storefront.services.validation import (
    MONEY,
    optional_text,
    require_text,
    validate_order_lines,
    validate_status,
)

logger = logging.getLogger(__name__)


class OrderTransactionManager:
    def __init__(
        self,
        db: Session,
        ledger: Optional[InventoryLedger] = None,
        numbers: Optional[OrderNumberGenerator] = None,
    ):
        self.db = db
        self.ledger = ledger or InventoryLedger(db)
        self.numbers = numbers or OrderNumberGenerator()
        self.orders = Repository(db, Order)

    def create_order(
        self,
        customer_name: str,
        customer_phone: str,
        address: str,
        lines: Sequence[Any],
        remark: Optional[str] = None,
    ) -> Order:
        """Place an order.

        Args:
            lines: objects with `product_id` and `quantity` (e.g. OrderLineIn)

        Raises:
            ValidationError: blank customer fields, no lines, non-positive quantity
            NotFoundError: a line references a missing product
            InsufficientStockError: a line asks for more than the available stock
            PersistenceError: storage failure (including a repeated order number clash)
        """
        fields = {
            "customer_name": require_text(customer_name, "customer_name", 50),
            "customer_phone": require_text(customer_phone, "customer_phone", 20),
            "address": require_text(address, "address", 255),
            "remark": optional_text(remark),
        }
        validate_order_lines(lines)

        try:
            with atomic(self.db):
                total_amount = Decimal("0.00")
                snapshots: List[Dict[str, Any]] = []
                for line in lines:
                    product = self.ledger.try_decrement(line.product_id, line.quantity)
                    price = Decimal(product.price).quantize(MONEY)
                    subtotal = (price * line.quantity).quantize(MONEY)
                    total_amount += subtotal
                    snapshots.append({
                        "product_id": product.id,
                        "product_name": product.name,
                        "product_image": product.image,
                        "price": price,
                        "quantity": line.quantity,
                        "subtotal": subtotal,
                    })
                order = self._insert_order(fields, total_amount, snapshots)
                order_id, order_no = order.id, order.order_no
        except (NotFoundError, InsufficientStockError) as exc:
            AuditLog.log_rejected("create", "order", None, exc.message)
            raise

        logger.info(
            f"[OrderManager] Created order {order_no} (id={order_id}) with "
            f"{len(snapshots)} line(s), total {total_amount}"
        )
        AuditLog.log_action(
            "create",
            "order",
            order_id,
            changes={
                "order_no": order_no,
                "total_amount": total_amount,
                "lines": [(s["product_id"], s["quantity"]) for s in snapshots],
            },
        )
        return self.get_order(order_id)

    def _insert_order(self, fields: Dict[str, Any], total_amount: Decimal, snapshots: List[Dict[str, Any]]) -> Order:
        # The savepoint keeps this call's stock decrements when an order
        # number clash forces one regeneration.
        for attempt in (1, 2):
            order = Order(order_no=self.numbers.next(), total_amount=total_amount, status="pending", **fields)
            order.items = [OrderItem(**s) for s in snapshots]
            try:
                with self.db.begin_nested():
                    self.db.add(order)
                    self.db.flush()
                return order
            except IntegrityError as exc:
                if "order_no" not in str(exc.orig):
                    raise
                if attempt == 2:
                    raise PersistenceError("Could not allocate a unique order number") from exc
                logger.warning(f"[OrderManager] Order number {order.order_no} already taken, regenerating")

    def get_order(self, order_id: int) -> Order:
        order = (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.id == order_id)
            .first()
        )
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def get_order_by_number(self, order_no: str) -> Order:
        order = (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.order_no == order_no)
            .first()
        )
        if order is None:
            raise NotFoundError("Order", order_no)
        return order

    def list_orders(self, page: int = 1, page_size: Optional[int] = None) -> Tuple[List[Order], int]:
        """Newest first. Returns (orders on this page, total order count)."""
        page = max(page, 1)
        page_size = page_size or settings.DEFAULT_PAGE_SIZE
        page_size = min(max(page_size, 1), settings.MAX_PAGE_SIZE)

        total = self.db.query(Order).count()
        items = (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total

    def update_status(self, order_id: int, status: str) -> Order:
        """Set any of the five status tokens; transition order is not enforced."""
        with atomic(self.db):
            order = self.orders.find_by_id(order_id, for_update=True)
            if order is None:
                raise NotFoundError("Order", order_id)
            validate_status(status)
            previous = order.status
            self.orders.update(order, status=status)

        logger.info(f"[OrderManager] Order {order_id} status {previous} -> {status}")
        AuditLog.log_action("status_change", "order", order_id, changes={"from": previous, "to": status})
        return self.get_order(order_id)

    def delete_order(self, order_id: int) -> bool:
        """Delete an order and its items. Stock is not restored."""
        with atomic(self.db):
            order = self.orders.find_by_id(order_id, for_update=True)
            if order is None:
                raise NotFoundError("Order", order_id)
            order_no = order.order_no
            # Items first, then the order, in the same flush
            for item in list(order.items):
                self.db.delete(item)
            self.db.delete(order)
            self.db.flush()

        logger.info(f"[OrderManager] Deleted order {order_no} (id={order_id})")
        AuditLog.log_action("delete", "order", order_id, changes={"order_no": order_no})
        return True
