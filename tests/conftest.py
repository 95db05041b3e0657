from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

import order_service.db.models as order_models
import product_service.db.models as product_models
import user_service.db.models as user_models
from order_service.db.session import Store
from order_service.schemas import OrderLineIn


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'shop.db'}"


@pytest.fixture
def engine(db_url):
    eng = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
        pool_size=5,
        max_overflow=0,
        pool_timeout=0.5,
    )
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    st = Store(engine)
    # owners first so the order tables find users/products already in place
    user_models.Base.metadata.create_all(engine)
    product_models.Base.metadata.create_all(engine)
    order_models.Base.metadata.create_all(engine)
    return st


@pytest.fixture
def sessions(store):
    return sessionmaker(bind=store.engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def make_product(sessions):
    def _make(name="Widget", price="9.99", stock_quantity=10):
        with sessions() as db:
            obj = product_models.Product(name=name, price=Decimal(price), stock_quantity=stock_quantity)
            db.add(obj)
            db.commit()
            return obj
    return _make


@pytest.fixture
def make_user(sessions):
    def _make(username="alice", email=None):
        with sessions() as db:
            obj = user_models.User(
                username=username,
                email=email or f"{username}@example.com",
                password_hash="x",
            )
            db.add(obj)
            db.commit()
            return obj
    return _make


@pytest.fixture
def count_rows(sessions):
    def _count(model):
        with sessions() as db:
            return db.execute(select(func.count()).select_from(model)).scalar_one()
    return _count


@pytest.fixture
def line():
    def _line(product_id, quantity, unit_price=None):
        return OrderLineIn(product_id=product_id, quantity=quantity, unit_price=unit_price)
    return _line


@pytest.fixture
def order_client(store):
    from order_service.api.deps import get_store
    from order_service.main import app

    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def product_client(sessions):
    from product_service.api.deps import get_db
    from product_service.main import app

    def _get_db():
        db = sessions()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_client(sessions):
    from user_service.api.deps import get_db
    from user_service.main import app

    def _get_db():
        db = sessions()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
