"""Shared pytest fixtures for the storefront tests."""

from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from cart import CartStore, get_cart_store
from forms import SignupForm
from identity import grant_role, sign_in, sign_up
from notifications import LocalOrderNotifier, get_notifier
from session import MemoryStore
from uploads import LocalFileStorage, get_file_storage


@pytest.fixture(autouse=True)
def mongo_db():
    """Point every collection at an in-memory mongomock database."""
    db = mongomock.MongoClient()["jd_jewellers_test"]
    database.set_db(db)
    yield db
    database.set_db(None)


@pytest.fixture
def cart_store():
    return CartStore(MemoryStore())


@pytest.fixture
def media_root(tmp_path):
    return tmp_path / "media"


@pytest.fixture
def client(cart_store, media_root):
    from main import app

    app.dependency_overrides[get_cart_store] = lambda: cart_store
    app.dependency_overrides[get_notifier] = lambda: LocalOrderNotifier()
    app.dependency_overrides[get_file_storage] = lambda: LocalFileStorage(media_root, "/media")
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(mongo_db):
    """Insert a product and return it the way the catalog serves it."""
    counter = {"n": 0}
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _make(**overrides):
        counter["n"] += 1
        doc = {
            "name": f"Kundan Necklace {counter['n']}",
            "description": "Handcrafted",
            "price": 1500.0,
            "currency": "INR",
            "category": "necklace",
            "stock": 10,
            "size": None,
            "image_url": "https://example.com/necklace.jpg",
            "created_at": base + timedelta(minutes=counter["n"]),
            "updated_at": base + timedelta(minutes=counter["n"]),
        }
        doc.update(overrides)
        inserted = mongo_db["products"].insert_one(doc)
        return database.to_str_id(mongo_db["products"].find_one({"_id": inserted.inserted_id}))

    return _make


def _account(name, email, password="secret123"):
    form = SignupForm(
        name=name,
        email=email,
        password=password,
        confirm_password=password,
        accepted_terms=True,
    )
    user = sign_up(form)
    return user, sign_in(email, password)


@pytest.fixture
def customer_headers(mongo_db):
    _, token = _account("Priya Shopper", "priya@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(mongo_db):
    user, token = _account("Store Admin", "admin@example.com")
    grant_role(user["id"], "admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def valid_customer():
    return {
        "name": "Asha Verma",
        "phone": "9876543210",
        "email": "asha@example.com",
        "street": "12 MG Road, Indiranagar",
        "city": "Bengaluru",
        "district": "Bengaluru Urban",
        "state": "Karnataka",
        "pin": "560001",
    }
