"""Create all tables. Run on app startup."""
import logging

from sqlalchemy.engine import Engine

from storefront.db.base import Base
from storefront.db.session import engine as default_engine
from storefront.models import category, product, order, user  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db(bind: Engine = None) -> None:
    bind = bind or default_engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"[DB] Schema ready on {bind.url.render_as_string(hide_password=True)}")
