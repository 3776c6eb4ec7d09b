# tests/conftest.py
import os
import sys
import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

# ensure project root is importable (storefront/ and scripts/)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from storefront.config import settings  # noqa: E402
from storefront.core.security import create_access_token, hash_password  # noqa: E402
from storefront.database import FileBackedDB  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models.user import User  # noqa: E402
from storefront.services.order_queries import OrderQueryService  # noqa: E402
from storefront.services.order_status import OrderStatusEngine  # noqa: E402
from storefront.services.order_store import OrderStore  # noqa: E402
from scripts.create_admin import create_admin  # noqa: E402


@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """
    Point settings at an isolated data directory for every test. The app lifespan
    reads settings.DATA_DIR when the client starts, so each test gets fresh tables.
    """
    data_dir = tmp_path / "data"
    monkeypatch.setattr(settings, "DATA_DIR", data_dir)
    return data_dir


@pytest.fixture
def db(temp_data_dir):
    database = FileBackedDB(
        temp_data_dir, {"users": settings.USERS_FILE, "orders": settings.ORDERS_FILE}
    ).connect()
    yield database
    database.disconnect()


@pytest.fixture
def store(db):
    return OrderStore(db)


@pytest.fixture
def engine(store):
    return OrderStatusEngine(store)


@pytest.fixture
def queries(store):
    return OrderQueryService(store)


@pytest.fixture
def client(temp_data_dir):
    with TestClient(app) as c:
        yield c


def auth_header(user_id: str):
    return {"Authorization": f"Bearer {create_access_token(subject=str(user_id))}"}


@pytest.fixture
def make_user(db):
    """
    Create a user row directly in the file-backed DB.
    Usage: user = make_user(is_admin=True) -> {"id", "username", "password", "headers", "row"}
    """
    def _fn(username=None, password="secret123", is_admin=False):
        username = username or f"user_{uuid.uuid4().hex[:8]}"
        email = f"{username}@example.com"
        if is_admin:
            row = create_admin(db, username, email, password)
        else:
            user = User(
                username=username,
                email=email,
                hashed_password=hash_password(password),
                created_at=datetime.now(timezone.utc),
            )
            row = db.create_record("users", user.to_dict(), id_field="id")
        return {
            "id": row["id"],
            "username": username,
            "password": password,
            "headers": auth_header(row["id"]),
            "row": row,
        }
    return _fn


@pytest.fixture
def shopper(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(username="admin", password="adminpass", is_admin=True)


@pytest.fixture
def order_payload():
    """
    Build a checkout body in the storefront frontend's camelCase shape.
    Usage: body = order_payload(items=[...], total=200)
    """
    def _fn(items=None, total=None):
        if items is None:
            items = [{"name": "Gold Ring", "qty": 2, "price": 100.0, "product": "p-ring", "image": "/img/ring.jpg"}]
        if total is None:
            total = sum(it["qty"] * it["price"] for it in items)
        return {
            "orderItems": items,
            "shippingAddress": {"address": "12 Bazaar Road", "city": "Karachi", "postalCode": "74000", "country": "PK"},
            "paymentMethod": "Cash on Delivery",
            "totalPrice": total,
        }
    return _fn


@pytest.fixture
def place_order(queries):
    """
    Create an order through the query service. Usage: order = place_order(owner_id, total_amount=150.0)
    """
    def _fn(owner_id="owner-1", items=None, total_amount=200.0):
        if items is None:
            items = [{"name": "Ring", "quantity": 2, "unit_price": 100.0}]
        return queries.create_order(
            owner_id=owner_id,
            line_items=items,
            shipping_address={"address": "1 Mall Road", "city": "Lahore", "postal_code": "54000", "country": "PK"},
            payment_method="Card",
            total_amount=total_amount,
        )
    return _fn
