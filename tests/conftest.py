"""
Pytest fixtures: a throwaway file-backed SQLite database per test.

File-backed (not in-memory) so that separate sessions, including the
per-request sessions of the TestClient and the threads of the concurrency
tests, each get their own connection like they do in production.
"""
import pytest
from fastapi.testclient import TestClient

import storefront.models  # noqa: F401 - register models
from storefront.api.deps import get_db
from storefront.db.base import Base
from storefront.db.session import build_engine, make_session_factory
from storefront.main import app

from helpers import add_category, add_product


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'storefront-test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: the lifespan would create tables on the default engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db):
    """Two categories, three products. Returns their ids by short name."""
    drinks = add_category(db, "Drinks")
    snacks = add_category(db, "Snacks")
    return {
        "drinks": drinks,
        "snacks": snacks,
        "tea": add_product(db, drinks, "Green Tea", "12.50", stock=10),
        "coffee": add_product(db, drinks, "Cold Brew", "19.99", stock=5),
        "chips": add_product(db, snacks, "Sea Salt Chips", "3.00", stock=0),
    }

