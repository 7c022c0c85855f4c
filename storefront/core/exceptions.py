"""
Domain errors raised by the catalog/order core, and their HTTP mapping.

The core raises typed StorefrontError subclasses and never HTTPException.
Routes let them propagate; the handlers registered by
`register_exception_handlers` turn them into responses.

Persistence failures are logged with full detail internally and returned
to clients with a generic message.
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Malformed input: empty order, non-positive quantity, unknown status, missing field."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(StorefrontError):
    """A referenced product, category or order does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__("Product", product_id)


class InsufficientStockError(StorefrontError):
    """Requested quantity exceeds the product's available stock."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product '{product_name}' (id={product_id}): "
            f"requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class ReferentialIntegrityError(StorefrontError):
    """Category deletion blocked by products that still reference it."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, category_id: int, product_count: Optional[int] = None):
        if product_count:
            message = f"Category {category_id} still has {product_count} product(s) and cannot be deleted"
        else:
            message = f"Category {category_id} still has products and cannot be deleted"
        super().__init__(message)
        self.category_id = category_id
        self.product_count = product_count


class ConflictError(StorefrontError):
    """A unique value (e.g. a username) is already taken."""

    status_code = status.HTTP_409_CONFLICT


class PayloadTooLargeError(StorefrontError):
    """Uploaded import file exceeds the configured size limit."""

    status_code = 413


class PersistenceError(StorefrontError):
    """Underlying storage failure, not classified further."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class BusinessError:
    """HTTP responses for domain errors, with safe (non-leaky) messages."""

    @staticmethod
    def not_found(detail: str) -> HTTPException:
        logger.info(f"Not found: {detail}")
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation errors.

        OK to include specific details here since the caller caused the issue.
        Examples: "Order must contain at least one line", "Quantity must be positive"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        409 for business conflicts.
        Examples: insufficient stock, category still referenced by products.
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    @staticmethod
    def payload_too_large(detail: str) -> HTTPException:
        logger.info(f"Payload too large: {detail}")
        return HTTPException(status_code=413, detail=detail)

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.

        Never expose SQL errors or internal paths to callers.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )

    @classmethod
    def from_domain(cls, exc: StorefrontError) -> HTTPException:
        if isinstance(exc, PersistenceError):
            return cls.server_error(exc.__cause__ or exc)
        if isinstance(exc, NotFoundError):
            return cls.not_found(exc.message)
        if exc.status_code == status.HTTP_409_CONFLICT:
            return cls.conflict(exc.message)
        if exc.status_code == 413:
            return cls.payload_too_large(exc.message)
        return cls.bad_request(exc.message)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def handle_storefront_error(request: Request, exc: StorefrontError):
        http_exc = BusinessError.from_domain(exc)
        return JSONResponse(
            status_code=http_exc.status_code,
            content={"detail": http_exc.detail, "error": type(exc).__name__},
        )
