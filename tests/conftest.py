import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from itertools import count
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

from storefront.data.database import init_db, make_engine, make_session_factory  # noqa: E402
from storefront.data.models import (  # noqa: E402
    GuestModel,
    ProductModel,
    ProductVariantModel,
    UserModel,
)
from storefront.main import create_app  # noqa: E402
from storefront.services.payments import FakeGateway  # noqa: E402
from storefront.services.user_service import hash_password  # noqa: E402

_sku = count(1)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send_order_confirmation(self, order_id, user_id, total_amount):
        self.sent.append((order_id, user_id, total_amount))
        return True


@pytest.fixture()
def engine(tmp_path):
    # file backed so that threads get real, separate connections
    engine = make_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def app(engine, gateway, notifier):
    return create_app(engine=engine, gateway=gateway, notifier=notifier, create_tables=False)


@pytest.fixture()
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def app_client_factory(app):
    """A second browser on the same app, with its own cookie jar."""
    return lambda: TestClient(app)


def make_variant(db, price, sale_price=None, name="Nike Air Max 90", **product_fields):
    product = ProductModel(name=name, description=f"{name} sneaker", **product_fields)
    variant = ProductVariantModel(
        sku=f"TEST-{next(_sku):04d}",
        size="10",
        color="Black",
        price=Decimal(str(price)),
        sale_price=Decimal(str(sale_price)) if sale_price is not None else None,
        in_stock=10,
    )
    product.variants.append(variant)
    db.add(product)
    db.commit()
    return variant


def make_user(db, email="runner@example.com", password="swoosh-1234", name="Runner"):
    user = UserModel(name=name, email=email, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    return user


def make_guest(db, token="guest-token", expires_at=None):
    guest = GuestModel(
        session_token=token,
        expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=7),
    )
    db.add(guest)
    db.commit()
    return guest


@pytest.fixture()
def variants(db):
    """Three variants: A (100, sale 80), B (50), C (30)."""
    return [
        make_variant(db, 100, 80, name="Nike Air Force 1"),
        make_variant(db, 50, name="Nike Pegasus 41"),
        make_variant(db, 30, name="Nike Club Cap"),
    ]


def sessions_client(create=None, retrieve=None):
    """Stand-in for stripe.StripeClient exposing only checkout.sessions."""
    return SimpleNamespace(checkout=SimpleNamespace(sessions=SimpleNamespace(create=create, retrieve=retrieve)))


def fresh(db):
    """End the test session's transaction so reads see other connections' commits."""
    # every sqlite transaction here is BEGIN IMMEDIATE; an open one blocks other writers
    db.rollback()
    return db
