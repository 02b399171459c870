import pytest

from conftest import add_product, order_payload


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


# ---------- orders ----------

def test_checkout_returns_envelope(client, db, mailer):
    add_product(db, "classic-cap", stock=4)
    response = client.post("/api/orders", json=order_payload([("classic-cap", 2, 900.0)]))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["order_number"].startswith("CC")
    assert "id" in body["data"] and "_id" not in body["data"]
    assert db["product"].find_one({"product_id": "classic-cap"})["stock"] == 2
    assert len(mailer.sent) == 2


def test_checkout_insufficient_stock_is_400(client, db):
    add_product(db, "classic-cap", stock=1)
    response = client.post("/api/orders", json=order_payload([("classic-cap", 2, 900.0)]))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["data"] == {"product_id": "classic-cap", "available": 1}


def test_malformed_checkout_is_400(client):
    payload = order_payload([("classic-cap", 1, 900.0)], email="not-an-email")
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert any(e["field"] == "customer.email" for e in body["data"]["errors"])


def test_unknown_order_is_404(client):
    response = client.get("/api/orders/CC00000000001")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Order not found"}


def test_status_update_flow(client, db):
    add_product(db, "classic-cap", stock=4)
    number = client.post("/api/orders", json=order_payload([("classic-cap", 1, 900.0)])).json()["data"]["order_number"]

    response = client.put(f"/api/orders/{number}", json={"status": "shipped"})
    assert response.status_code == 200
    assert response.json()["message"] == "Order status updated successfully"
    assert response.json()["data"]["status"] == "shipped"

    response = client.put(f"/api/orders/{number}", json={"status": "pending"})
    assert response.status_code == 400
    assert "reverse" in response.json()["message"]


def test_my_orders_by_email(client, db):
    add_product(db, "classic-cap", stock=4)
    client.post("/api/orders", json=order_payload([("classic-cap", 1, 900.0)]))
    response = client.get("/api/orders/myorders", params={"email": "AYESHA@example.com"})
    assert response.json()["count"] == 1


# ---------- coupons ----------

@pytest.fixture
def coupon_id(client):
    response = client.post("/api/coupons", json={
        "code": "save10",
        "discount_type": "percentage",
        "discount_value": 10,
        "min_purchase": 3000,
        "usage_limit": 5,
        "expiry_date": "2099-01-01T00:00:00Z",
    })
    assert response.status_code == 201
    assert response.json()["data"]["code"] == "SAVE10"
    return response.json()["data"]["id"]


def test_validate_below_minimum_reports_amount(client, coupon_id):
    response = client.post("/api/coupons/validate", json={"code": "save10", "order_total": 1000})
    assert response.status_code == 400
    body = response.json()
    assert body["data"] == {"min_purchase": 3000}
    assert body["message"] == "Minimum purchase of Rs 3,000 required"


def test_validate_by_path(client, coupon_id):
    response = client.get("/api/coupons/validate/Save10", params={"order_total": 5000})
    assert response.status_code == 200
    assert response.json()["data"]["discount"] == 500


def test_check_active_and_apply(client, coupon_id):
    assert client.get("/api/coupons/check-active").json()["has_active_coupons"] is True
    response = client.post("/api/coupons/apply", json={"code": "SAVE10"})
    assert response.json()["data"]["used_count"] == 1


def test_duplicate_coupon_is_409(client, coupon_id):
    response = client.post("/api/coupons", json={"code": "SAVE10", "discount_type": "fixed", "discount_value": 1})
    assert response.status_code == 409


def test_coupon_toggle_and_bad_id(client, coupon_id):
    assert client.patch(f"/api/coupons/{coupon_id}/toggle").json()["data"]["is_active"] is False
    assert client.get("/api/coupons/not-an-id").status_code == 400


# ---------- catalog ----------

@pytest.fixture
def category_id(client):
    response = client.post("/api/categories", json={"name": "Leather Bags", "image": "https://img.test/bags.jpg"})
    assert response.status_code == 201
    assert response.json()["data"]["slug"] == "leather-bags"
    return response.json()["data"]["id"]


@pytest.fixture
def product(client, category_id):
    response = client.post("/api/products", json={
        "product_id": "tote-bag",
        "name": "Tote Bag",
        "price": 4500,
        "category": category_id,
        "main_image": "https://img.test/tote.jpg",
        "stock": 7,
    })
    assert response.status_code == 201
    return response.json()["data"]


def test_product_carries_category_name(product, category_id):
    assert product["category"] == category_id
    assert product["category_name"] == "Leather Bags"


def test_product_lookup_by_slug_and_id(client, product):
    assert client.get("/api/products/tote-bag").json()["data"]["id"] == product["id"]
    assert client.get(f"/api/products/by-id/{product['id']}").json()["data"]["product_id"] == "tote-bag"
    assert client.get("/api/products/by-id/tote-bag").status_code == 400
    assert client.get("/api/products/missing-bag").status_code == 404


def test_product_id_clashing_with_route_rejected(client, category_id, db):
    response = client.post("/api/products", json={
        "product_id": "hot",
        "name": "Hot Sauce",
        "price": 300,
        "category": category_id,
        "main_image": "https://img.test/sauce.jpg",
    })
    assert response.status_code == 400
    assert "reserved" in response.json()["message"]
    assert db["product"].count_documents({}) == 0


def test_category_counts_and_guarded_delete(client, product, category_id):
    assert client.get("/api/categories/leather-bags").json()["data"]["products_count"] == 1

    response = client.delete(f"/api/categories/by-id/{category_id}")
    assert response.status_code == 409
    assert response.json()["data"] == {"products_count": 1}

    client.delete("/api/products/tote-bag")
    assert client.delete(f"/api/categories/by-id/{category_id}").status_code == 200


def test_category_rename_updates_slug_and_products(client, product, category_id):
    response = client.put(f"/api/categories/by-id/{category_id}", json={"name": "Travel Bags"})
    assert response.json()["data"]["slug"] == "travel-bags"
    assert client.get("/api/products/tote-bag").json()["data"]["category_name"] == "Travel Bags"


def test_hero_image_toggle(client):
    image_id = client.post("/api/hero-images", json={"image": "https://img.test/hero.jpg"}).json()["data"]["id"]
    assert client.patch(f"/api/hero-images/{image_id}/toggle-status").json()["data"]["is_active"] is False
    assert client.get("/api/hero-images").json()["data"] == []
    assert len(client.get("/api/hero-images/admin").json()["data"]) == 1


# ---------- newsletter ----------

def test_newsletter_subscribe_cycle(client):
    first = client.post("/api/newsletter/subscribe", json={"email": "Fan@Example.com"})
    assert first.status_code == 201
    assert first.json()["data"]["email"] == "fan@example.com"

    assert client.post("/api/newsletter/subscribe", json={"email": "fan@example.com"}).status_code == 409
    assert client.post("/api/newsletter/unsubscribe", json={"email": "fan@example.com"}).status_code == 200

    again = client.post("/api/newsletter/subscribe", json={"email": "fan@example.com"})
    assert again.status_code == 200
    assert "reactivated" in again.json()["message"]


def test_unsubscribe_unknown_email(client):
    response = client.post("/api/newsletter/unsubscribe", json={"email": "ghost@example.com"})
    assert response.status_code == 404


# ---------- contacts ----------

CONTACT = {"name": "Bilal", "email": "bilal@example.com", "subject": "Sizing", "message": "Does M fit?"}


def test_contact_submit_survives_mail_failure(make_client, failing_mailer, db):
    client = make_client(failing_mailer)
    response = client.post("/api/contacts", json=CONTACT)
    assert response.status_code == 201
    assert response.json()["data"]["status"] == "new"
    assert failing_mailer.attempts == 1
    assert db["contact"].count_documents({}) == 1


def test_contact_reply_failure_is_502_and_not_recorded(make_client, failing_mailer, db):
    client = make_client(failing_mailer)
    contact_id = client.post("/api/contacts", json=CONTACT).json()["data"]["id"]

    response = client.post(f"/api/contacts/{contact_id}/reply", json={"reply_message": "Yes it does"})
    assert response.status_code == 502
    stored = db["contact"].find_one({})
    assert stored["status"] == "new"
    assert stored["replied"] is False


def test_contact_read_and_reply(client, mailer):
    contact_id = client.post("/api/contacts", json=CONTACT).json()["data"]["id"]
    assert client.get(f"/api/contacts/{contact_id}").json()["data"]["status"] == "read"

    response = client.post(f"/api/contacts/{contact_id}/reply", json={"reply_message": "Yes it does"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "replied"
    assert mailer.sent[-1]["subject"] == "Re: Sizing"

    stats = client.get("/api/contacts/stats").json()["data"]
    assert stats["total"] == 1
    assert stats["replied"] == 1


# ---------- settings ----------

def test_general_settings_defaults_then_update(client):
    assert client.get("/api/settings/general").json()["data"]["currency"] == "PKR"
    client.put("/api/settings/general", json={"shipping_fee": 250})
    data = client.get("/api/settings/general").json()["data"]
    assert data["shipping_fee"] == 250
    assert data["currency"] == "PKR"


def test_faq_crud(client):
    faq_id = client.post("/api/settings/faqs", json={"question": "COD?", "answer": "Yes"}).json()["data"]["id"]
    assert client.put(f"/api/settings/faqs/{faq_id}", json={"answer": "Yes, nationwide"}).json()["data"]["answer"] \
        == "Yes, nationwide"
    assert client.delete(f"/api/settings/faqs/{faq_id}").status_code == 200
    assert client.get(f"/api/settings/faqs/{faq_id}").status_code == 404
