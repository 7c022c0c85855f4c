"""
Storefront Backend: catalog and order management API.

ARCHITECTURE:
- FastAPI routes: thin adapters, no business rules
- Core services: order placement, stock ledger, catalog import, category guard, users
- SQLAlchemy: single source of truth; every state change runs in one transaction

CONSISTENCY MODEL:
- Orders are all-or-nothing: stock decrements + order + items commit together
- Catalog import isolates failures per row
- Categories cannot be deleted while products reference them
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from storefront import __version__
from storefront.api.routes import categories, inventory, orders, products, users
from storefront.core.config import settings
from storefront.core.exceptions import register_exception_handlers
from storefront.db.init_db import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("storefront")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    logger.info("[*] Initializing database...")
    init_db()
    logger.info(f"[OK] Storefront {__version__} ready ({settings.ENVIRONMENT})")
    yield
    logger.info("[*] Storefront shutting down")


app = FastAPI(
    title="Storefront API",
    description="Categories, products, orders, users and bulk catalog import.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    max_age=600,  # Cache preflight for 10 minutes
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f} ms)")
    response.headers["X-Content-Type-Options"] = "nosniff"  # Prevent MIME sniffing
    response.headers["X-Frame-Options"] = "DENY"  # Prevent clickjacking
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.include_router(categories.router, prefix="/categories", tags=["categories"])
app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(orders.router, prefix="/orders", tags=["orders"])
app.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
app.include_router(users.router, prefix="/users", tags=["users"])


@app.get("/health")
def health():
    return {"status": "ok"}
