# tests/conftest.py
import json
import os
import sys
import uuid

import pytest
from fastapi.testclient import TestClient

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from storefront.api.routes.auth import _create_access_token  # noqa: E402
from storefront.config import settings  # noqa: E402
from storefront.core.security import hash_password  # noqa: E402
from storefront.database import db as file_db  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.services.cart_engine import CartEngine  # noqa: E402


@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """
    Every test gets its own data directory; the DB, cart store and cart locks
    all resolve their paths from settings.DATA_DIR on each call.
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(settings, "DATA_DIR", data_dir)
    monkeypatch.setattr(settings, "LOCK_TIMEOUT", 5.0)
    yield data_dir


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def engine():
    return CartEngine()


@pytest.fixture
def make_product():
    """
    Create a catalog row and return it.
    Usage: p = make_product(name="Shirt", price=20.0)
    """
    def _fn(name="Test Shirt", price=20.0, sizes=("S", "M", "L"), image_url="https://img.example/shirt.jpg", product_id=None):
        images = [{"url": image_url, "altText": name}] if image_url else []
        return file_db.create_record(
            "products",
            {
                "id": product_id or uuid.uuid4().hex,
                "name": name,
                "price": price,
                "sizes": json.dumps(list(sizes)),
                "images": json.dumps(images),
            },
            id_field="id",
        )
    return _fn


@pytest.fixture
def auth_header():
    """
    Helper that returns a callable building a Bearer header with a signed token for a user id.
    Usage: hdr = auth_header(user_id)
    """
    def _h(user_id: str):
        return {"Authorization": f"Bearer {_create_access_token(subject=str(user_id))}"}
    return _h


@pytest.fixture
def temp_user():
    """
    Create a user directly in the file-backed DB.
    Returns {"row": <user_row>, "password": <plain_password>, "id": ...}
    """
    password = "testpass"
    suffix = os.urandom(4).hex()
    user = file_db.create_record(
        "users",
        {"username": f"user_{suffix}", "email": f"user_{suffix}@example.test", "password_hash": hash_password(password)},
        id_field="id",
    )
    return {"row": user, "password": password, "id": user["id"]}
