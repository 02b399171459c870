import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from config import Settings, get_settings
from errors import TransportFailure
from mailer import Mailer


class RecordingMailer(Mailer):
    name = "recording"

    def __init__(self):
        self.sent = []

    def send_email(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})


class FailingMailer(Mailer):
    name = "failing"

    def __init__(self):
        self.attempts = 0

    def send_email(self, to, subject, html):
        self.attempts += 1
        raise TransportFailure("SMTP connection refused")


@pytest.fixture
def db():
    mock_db = mongomock.MongoClient()["storefront_test"]
    database.ensure_indexes(mock_db)
    return mock_db


@pytest.fixture
def settings():
    return Settings(owner_email="owner@shop.test", email_from="hello@shop.test", order_prefix="CC")


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def failing_mailer():
    return FailingMailer()


def add_product(db, product_id, stock, price=1500.0, name=None, **extra):
    doc = {
        "product_id": product_id,
        "name": name or product_id.replace("-", " ").title(),
        "price": price,
        "stock": stock,
        "is_active": True,
        "main_image": f"https://img.test/{product_id}.jpg",
        "created_at": database.utcnow(),
    }
    doc.update(extra)
    db["product"].insert_one(doc)
    return doc


def order_payload(items, email="Ayesha@Example.com", subtotal=None, delivery=200.0):
    line_items = [
        {
            "product_id": product_id,
            "name": product_id.replace("-", " ").title(),
            "price": price,
            "quantity": quantity,
            "image": f"https://img.test/{product_id}.jpg",
            "color": "Black",
            "size": "",
        }
        for product_id, quantity, price in items
    ]
    if subtotal is None:
        subtotal = sum(quantity * price for _, quantity, price in items)
    return {
        "customer": {
            "email": email,
            "first_name": "Ayesha",
            "last_name": "Khan",
            "phone": "+92 300 0000000",
            "address": "12 Mall Road",
            "city": "Lahore",
            "province": "Punjab",
            "postal_code": "54000",
        },
        "items": line_items,
        "pricing": {"subtotal": subtotal, "delivery_charge": delivery, "total": subtotal + delivery},
    }


@pytest.fixture
def make_client(db, settings):
    from main import app, get_db, get_mailer

    def _make(mailer):
        app.dependency_overrides[get_db] = lambda: db
        app.dependency_overrides[get_mailer] = lambda: mailer
        app.dependency_overrides[get_settings] = lambda: settings
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, mailer):
    return make_client(mailer)
