from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from shared.database import get_db, make_engine, make_session_factory
from shared.session_store import RedisSessionStore, VisitorSession
from store_service import dependencies
from store_service.models import Base
from store_service.repository import ProductRepository
from store_service.schemas import ProductSchema
from tests.fakes import FakeRedis


@pytest.fixture()
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture()
def products(db):
    """Three catalog products, committed: 10.00, 15.00 and 48.95."""
    repo = ProductRepository(db)
    created = [
        repo.create_product("Test Product 1", "Desc 1", Decimal("10.00"), "Watersports"),
        repo.create_product("Test Product 2", "Desc 2", Decimal("15.00"), "Soccer"),
        repo.create_product("Lifejacket", "Protective and fashionable", Decimal("48.95"), "Watersports"),
    ]
    db.commit()
    return [ProductSchema.model_validate(p) for p in created]


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def session_store(fake_redis):
    return RedisSessionStore(fake_redis)


@pytest.fixture()
def session(session_store):
    return VisitorSession(session_store, "test-session")


@pytest.fixture()
def client(session_factory, session_store):
    """API client wired to the in-memory database and fake Redis."""
    from store_service.main import app

    def override_get_db():
        yield from get_db(session_factory)

    app.dependency_overrides[dependencies.get_db] = override_get_db
    app.dependency_overrides[dependencies.get_session_store] = lambda: session_store
    yield TestClient(app)
    app.dependency_overrides.clear()
