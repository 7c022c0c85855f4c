"""Input validation for the core, applied before any side effect begins.

Each function raises ValidationError naming the offending field, or returns
the cleaned value.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from storefront.core.exceptions import ValidationError
from storefront.models.order import ORDER_STATUSES

MONEY = Decimal("0.01")
# Column limits: Numeric(10, 2) for prices, 32-bit Integer for stock
MAX_PRICE = Decimal("99999999.99")
MAX_STOCK = 2**31 - 1


def require_text(value: Optional[str], field: str, max_length: Optional[int] = None) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} must not be empty", field=field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text, got {type(value).__name__}", field=field)
    cleaned = " ".join(value.split())
    if max_length is not None and len(cleaned) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", field=field)
    return cleaned


def optional_text(value: Optional[str], field: str = "value") -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text, got {type(value).__name__}", field=field)
    return value.strip() or None


def positive_price(value: Any, field: str = "price") -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required", field=field)
    try:
        price = Decimal(str(value))
        if not price.is_finite() or price <= 0:
            raise ValidationError(f"{field} must be greater than 0", field=field)
        if price > MAX_PRICE:
            raise ValidationError(f"{field} must be at most {MAX_PRICE}", field=field)
        price = price.quantize(MONEY)
        if price <= 0:
            raise ValidationError(f"{field} must be at least {MONEY}", field=field)
        return price
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field)


def non_negative_int(value: Any, field: str = "stock") -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, str):
        try:
            value = float(value.strip()) if "." in value else int(value.strip())
        except ValueError:
            raise ValidationError(f"{field} must be an integer, got {value!r}", field=field)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a whole number, got {value}", field=field)
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer, got {value!r}", field=field)
    if value < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    if value > MAX_STOCK:
        raise ValidationError(f"{field} must be at most {MAX_STOCK}", field=field)
    return value


def validate_order_lines(lines: Sequence[Any]) -> None:
    if not lines:
        raise ValidationError("Order must contain at least one line", field="items")
    for index, line in enumerate(lines, start=1):
        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"Line {index}: quantity must be an integer", field="quantity")
        if quantity <= 0:
            raise ValidationError(
                f"Line {index}: quantity must be positive, got {quantity}", field="quantity"
            )


def validate_status(status: Optional[str]) -> str:
    if status not in ORDER_STATUSES:
        raise ValidationError(
            f"Invalid order status {status!r}; expected one of {', '.join(ORDER_STATUSES)}",
            field="status",
        )
    return status
