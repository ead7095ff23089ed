# tests/conftest.py
import copy

import pytest
from werkzeug.security import generate_password_hash

from licensestore import create_app
from licensestore.errors import BackendUnavailable
from licensestore.extensions import db
from licensestore.model import User
from licensestore.services.record_store import RecordStore

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "JWT_SECRET_KEY": "test-secret-key-long-enough-for-hs256-signing",
    "POCKETBASE_URL": "",
    "PAYPAL_CLIENT_ID": "",
    "PAYPAL_SECRET": "",
    "LOG_LEVEL": "WARNING",
}

BASE_PAYLOAD = {
    "items": [
        {
            "id": "office-2021-pro",
            "name": "Office 2021 Professional Plus",
            "variant": {"id": "lifetime", "name": "Lifetime license"},
            "price": 49.99,
            "originalPrice": 99.99,
            "quantity": 1,
        },
    ],
    "info": {
        "name": "Dana Smith",
        "email": "dana@example.com",
        "whatsapp": "+15550100",
        "discountCode": "",
    },
    "subtotal": 49.99,
    "total": 49.99,
    "customer_device_hash": "dev-9f2c1a",
    "cart_ref": "CART-1001",
}

SECOND_ITEM = {
    "id": "windows-11-pro",
    "name": "Windows 11 Pro",
    "variant": {"id": "retail", "name": "Retail key"},
    "price": 19.5,
    "originalPrice": 39.0,
    "quantity": 2,
}


class InMemoryRecordStore(RecordStore):
    """Record store fake that counts calls and can be told to fail."""

    def __init__(self):
        self.records = {}
        self.calls = {"find_first": 0, "create": 0, "update": 0, "get": 0, "list_records": 0}
        self.updates = []
        self.fail_on = set()
        self._next_id = 1

    def _hit(self, name):
        self.calls[name] += 1
        if name in self.fail_on:
            raise BackendUnavailable(f"{name} failed")

    @property
    def total_calls(self):
        return sum(self.calls.values())

    def _matches(self, record, filters):
        return all(record.get(k) == v for k, v in filters.items())

    def find_first(self, filters):
        self._hit("find_first")
        for record in self.records.values():
            if self._matches(record, filters):
                return copy.deepcopy(record)
        return None

    def create(self, data):
        self._hit("create")
        record_id = f"rec{self._next_id:04d}"
        self._next_id += 1
        self.records[record_id] = {"id": record_id, **copy.deepcopy(data)}
        return copy.deepcopy(self.records[record_id])

    def update(self, record_id, data):
        self._hit("update")
        self.updates.append((record_id, copy.deepcopy(data)))
        if record_id not in self.records:
            raise BackendUnavailable(f"record {record_id} not found")
        self.records[record_id].update(copy.deepcopy(data))
        return copy.deepcopy(self.records[record_id])

    def get(self, record_id):
        self._hit("get")
        record = self.records.get(record_id)
        return copy.deepcopy(record) if record else None

    def list_records(self, filters, page=1, per_page=20):
        self._hit("list_records")
        matched = [r for r in reversed(list(self.records.values())) if self._matches(r, filters)]
        start = (page - 1) * per_page
        return copy.deepcopy(matched[start:start + per_page]), len(matched)


@pytest.fixture
def make_payload():
    def _make(**overrides):
        payload = copy.deepcopy(BASE_PAYLOAD)
        payload.update(copy.deepcopy(overrides))
        return payload
    return _make


@pytest.fixture
def second_item():
    return copy.deepcopy(SECOND_ITEM)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def sql_app():
    """App wired to its own SQL record store (no remote store configured)."""
    app = create_app(TEST_CONFIG)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app(sql_app, store):
    sql_app.extensions["record_store_factory"] = lambda: store
    return sql_app


@pytest.fixture
def client(app):
    return app.test_client()


def _create_user(app, email, password, role):
    with app.app_context():
        user = User(email=email, name=email.split("@")[0],
                    password_hash=generate_password_hash(password), role=role)
        db.session.add(user)
        db.session.commit()
        return user.id


def _login(client, email, password):
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()["data"]


@pytest.fixture
def admin_login(app, client):
    _create_user(app, "admin@example.com", "s3cret-pass", "admin")
    return _login(client, "admin@example.com", "s3cret-pass")


@pytest.fixture
def admin_headers(admin_login):
    return {"Authorization": f"Bearer {admin_login['token']}"}


@pytest.fixture
def user_headers(app, client):
    _create_user(app, "staff@example.com", "staff-pass", "user")
    data = _login(client, "staff@example.com", "staff-pass")
    return {"Authorization": f"Bearer {data['token']}"}
