import datetime

import pytest

from eaststore import db, routes
from eaststore.models import Payment


def _create_preorder(client, preorder_data):
    response = client.post("/api/preorder", json=preorder_data)
    assert response.status_code == 201
    return response.get_json()["data"]


@pytest.mark.parametrize("method, url", [
    ("get", "/api/preorder"),
    ("patch", "/api/preorder/1"),
    ("delete", "/api/preorder/1"),
    ("get", "/api/payments"),
    ("patch", "/api/payments/1"),
    ("get", "/api/payments/export"),
    ("get", "/api/admin/stats"),
    ("get", "/api/messages"),
    ("post", "/api/products"),
    ("post", "/api/size-cards"),
    ("put", "/api/size-cards/1"),
    ("delete", "/api/artworks/1"),
    ("put", "/api/admin/credentials"),
])
def test_admin_routes_require_login(client, method, url):
    response = getattr(client, method)(url, json={})
    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_login_logout(client, admin):
    bad = client.post("/api/auth/login", json={"username": "admin", "password": "salah"})
    assert bad.status_code == 401

    good = client.post("/api/auth/login", json={"username": "ADMIN", "password": "rahasia-test"})
    assert good.status_code == 200
    assert client.get("/api/auth/check").get_json()["authenticated"] is True

    client.post("/api/auth/logout")
    assert client.get("/api/auth/check").status_code == 401


def test_public_product_listing(client, product):
    listing = client.get("/api/products").get_json()
    assert listing["count"] == 1
    assert listing["data"][0]["slug"] == "kaos-east-classic"

    detail = client.get("/api/products/kaos-east-classic")
    assert detail.status_code == 200
    assert detail.get_json()["data"]["price_idr"] == 125000
    assert client.get("/api/products/tidak-ada").status_code == 404


def test_preorder_validation_errors(client, preorder_data):
    preorder_data["customer_phone"] = "12345"
    response = client.post("/api/preorder", json=preorder_data)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Nomor telepon tidak valid"

    preorder_data.update(customer_phone="081234567890", product_id=777)
    assert client.post("/api/preorder", json=preorder_data).status_code == 404


def test_preorder_payment_lifecycle(admin_client, preorder_data):
    preorder = _create_preorder(admin_client, preorder_data)
    assert preorder["total_price"] == 250000
    assert preorder["status"] == "unconfirmed"
    assert preorder["payment_id"] is None

    listing = admin_client.get("/api/preorder").get_json()
    assert listing["count"] == 1
    assert listing["data"][0]["product"]["title"] == "Kaos East Classic"

    confirm = admin_client.patch(f"/api/preorder/{preorder['id']}", json={"status": "confirmed"})
    assert confirm.status_code == 200
    assert confirm.get_json()["data"]["status"] == "confirmed"

    again = admin_client.patch(f"/api/preorder/{preorder['id']}", json={"status": "confirmed"})
    assert again.status_code == 409
    assert Payment.query.count() == 1

    payments = admin_client.get("/api/payments").get_json()
    payment = payments["data"][0]
    assert payment["amount_cents"] == 25000000
    assert payment["paid_amount_cents"] == 0
    assert payment["status"] == "pending"
    assert payment["preorder"]["id"] == preorder["id"]
    assert payments["stats"]["totalBelumLunas"] == 1

    partial = admin_client.patch(f"/api/payments/{payment['id']}", json={"paid_amount_cents": 1000000})
    assert partial.status_code == 200
    assert partial.get_json()["data"]["remaining_cents"] == 24000000

    full = admin_client.patch(f"/api/payments/{payment['id']}", json={"paid_amount_cents": 25000000})
    assert full.get_json()["data"]["lunas"] is True
    stats = admin_client.get("/api/payments").get_json()["stats"]
    assert stats["totalBelumLunas"] == 0
    assert stats["totalSisaCents"] == 0

    deleted = admin_client.delete(f"/api/preorder/{preorder['id']}")
    assert deleted.status_code == 200
    assert Payment.query.count() == 0
    assert admin_client.get(f"/api/preorder/{preorder['id']}").status_code == 404


def test_confirm_errors(admin_client, preorder_data):
    preorder = _create_preorder(admin_client, preorder_data)

    missing = admin_client.patch(f"/api/preorder/{preorder['id']}", json={})
    assert missing.status_code == 400
    assert missing.get_json()["message"] == "Status harus diisi"

    invalid = admin_client.patch(f"/api/preorder/{preorder['id']}", json={"status": "shipped"})
    assert invalid.status_code == 400

    assert admin_client.patch("/api/preorder/999", json={"status": "confirmed"}).status_code == 404


def test_payment_update_errors(admin_client, preorder_data):
    preorder = _create_preorder(admin_client, preorder_data)
    admin_client.patch(f"/api/preorder/{preorder['id']}", json={"status": "confirmed"})
    payment_id = Payment.query.one().id

    missing = admin_client.patch(f"/api/payments/{payment_id}", json={})
    assert missing.status_code == 400
    assert "harus diisi" in missing.get_json()["message"]

    too_much = admin_client.patch(f"/api/payments/{payment_id}", json={"paid_amount_cents": 25000001})
    assert too_much.status_code == 400
    assert "Rp 250.000" in too_much.get_json()["message"]

    negative = admin_client.patch(f"/api/payments/{payment_id}", json={"paid_amount_cents": -5})
    assert negative.status_code == 400

    assert admin_client.patch("/api/payments/999", json={"paid_amount_cents": 1}).status_code == 404
    assert admin_client.get("/api/payments").get_json()["data"][0]["paid_amount_cents"] == 0


def test_export_csv_download(admin_client, preorder_data, monkeypatch):
    monkeypatch.setattr(routes, "utcnow", lambda: datetime.datetime(2026, 10, 19, 10, 0))
    preorder = _create_preorder(admin_client, preorder_data)
    admin_client.patch(f"/api/preorder/{preorder['id']}", json={"status": "confirmed"})

    response = admin_client.get("/api/payments/export?search=budi")
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/csv; charset=utf-8"
    assert response.headers["Content-Disposition"] == "attachment; filename=payments_2026-10-19.csv"
    lines = response.get_data(as_text=True).split("\n")
    assert lines[1] == "Total Pesanan,1"
    assert lines[2] == "Total Pendapatan (IDR),Rp 250.000"
    assert lines[-1].split(",")[2] == '"Budi Santoso"'

    empty = admin_client.get("/api/payments/export?search=tidak-ada").get_data(as_text=True)
    assert empty.split("\n")[1] == "Total Pesanan,0"


def test_dashboard_stats_endpoint(admin_client, product):
    data = admin_client.get("/api/admin/stats").get_json()
    assert data == {"totalProducts": 1, "totalOrders": 0, "activeUsers": 1, "revenue": 0}


def test_product_admin_crud(admin_client):
    created = admin_client.post("/api/products", json={"title": "Hoodie Night", "price_idr": 275000, "status": "pre_order"})
    assert created.status_code == 201
    product_id = created.get_json()["data"]["id"]

    invalid = admin_client.post("/api/products", json={"title": "", "price_idr": 1})
    assert invalid.status_code == 400

    updated = admin_client.patch(f"/api/products/{product_id}", json={"title": "Hoodie Midnight"})
    assert updated.get_json()["data"]["slug"] == "hoodie-midnight"

    assert admin_client.delete(f"/api/products/{product_id}").status_code == 200
    assert admin_client.get("/api/products/hoodie-midnight").status_code == 404


def test_contact_messages(admin_client):
    sent = admin_client.post("/api/messages", json={
        "first_name": "Rina", "last_name": "Putri", "email": "rina@example.com",
        "subject": "Ukuran", "message": "Apakah ada ukuran XXL?",
    })
    assert sent.status_code == 201
    assert admin_client.post("/api/messages", json={"first_name": "Rina"}).status_code == 400

    inbox = admin_client.get("/api/messages").get_json()
    assert inbox["total"] == 1
    message_id = inbox["data"][0]["id"]
    assert admin_client.patch(f"/api/messages/{message_id}/read").get_json()["data"]["read"] is True
    assert admin_client.delete(f"/api/messages/{message_id}").status_code == 200


@pytest.mark.parametrize("body", [[1], "100", 42])
def test_non_object_json_body_is_rejected(admin_client, preorder_data, body):
    response = admin_client.post("/api/preorder", json=body)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Format data tidak valid"

    preorder = _create_preorder(admin_client, preorder_data)
    admin_client.patch(f"/api/preorder/{preorder['id']}", json={"status": "confirmed"})
    payment_id = Payment.query.one().id
    response = admin_client.patch(f"/api/payments/{payment_id}", json=body)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Format data tidak valid"

    assert admin_client.post("/api/auth/login", json=body).status_code == 400


def test_huge_ids_return_not_found(admin_client):
    huge = 10 ** 20
    assert admin_client.get(f"/api/preorder/{huge}").status_code == 404
    assert admin_client.patch(f"/api/preorder/{huge}", json={"status": "confirmed"}).status_code == 404
    assert admin_client.delete(f"/api/preorder/{huge}").status_code == 404
    assert admin_client.patch(f"/api/payments/{huge}", json={"paid_amount_cents": 1}).status_code == 404
    assert admin_client.delete(f"/api/products/{huge}").status_code == 404
    assert admin_client.get(f"/api/size-cards/{huge}").status_code == 404
    assert admin_client.get(f"/api/artworks/{huge}").status_code == 404

    response = admin_client.post("/api/preorder", json={
        "customer_name": "Budi", "customer_phone": "081234567890", "customer_address": "Bandung",
        "product_id": huge, "size": "L", "quantity": 1,
    })
    assert response.status_code == 404


@pytest.mark.parametrize("timezone, expected", [("Asia/Jakarta", "5/10/2026"), ("UTC", "4/10/2026")])
def test_export_csv_uses_configured_timezone(app, admin_client, preorder_data, timezone, expected):
    app.config["TIMEZONE"] = timezone
    preorder = _create_preorder(admin_client, preorder_data)
    admin_client.patch(f"/api/preorder/{preorder['id']}", json={"status": "confirmed"})
    payment = Payment.query.one()
    payment.created_at = datetime.datetime(2026, 10, 4, 20, 0)
    db.session.commit()

    lines = admin_client.get("/api/payments/export").get_data(as_text=True).split("\n")
    assert lines[-1].split(",")[-1] == expected


def test_size_card_routes(admin_client, client, product):
    created = admin_client.post("/api/size-cards", json={
        "name": "Kaos Reguler",
        "columns": ["Panjang", "Lebar Dada"],
        "rows": [{"size": "M", "measurements": {"panjang": 70, "lebar_dada": 50}}],
    })
    assert created.status_code == 201
    template = created.get_json()["data"]
    assert template["rows"][0]["measurements"]["panjang"] == 70

    duplicate = admin_client.post("/api/size-cards", json={"name": "Kaos Reguler"})
    assert duplicate.status_code == 409

    linked = admin_client.patch(f"/api/products/{product.id}", json={"size_card_template_id": template["id"]})
    assert linked.get_json()["data"]["size_card_template_id"] == template["id"]
    detail = client.get("/api/products/kaos-east-classic").get_json()["data"]
    assert detail["size_card"]["name"] == "Kaos Reguler"

    updated = admin_client.put(f"/api/size-cards/{template['id']}", json={
        "rows": [{"size": "L", "panjang": 72}, {"size": "XL", "panjang": 74}],
    })
    assert [row["size"] for row in updated.get_json()["data"]["rows"]] == ["L", "XL"]
    assert client.get("/api/size-cards").get_json()["count"] == 1

    assert admin_client.delete(f"/api/size-cards/{template['id']}").status_code == 200
    assert client.get(f"/api/size-cards/{template['id']}").status_code == 404
    assert client.get("/api/products/kaos-east-classic").get_json()["data"]["size_card"] is None


def test_artwork_routes(admin_client, client):
    created = admin_client.post("/api/artworks", json={"title": "Senja", "artist": "Dewi"})
    assert created.status_code == 201
    artwork_id = created.get_json()["data"]["id"]
    assert admin_client.post("/api/artworks", json={"title": "Senja"}).status_code == 400

    updated = admin_client.put(f"/api/artworks/{artwork_id}", json={"title": "Fajar", "artist": "Dewi"})
    assert updated.get_json()["data"]["title"] == "Fajar"
    assert client.get("/api/artworks").get_json()["data"][0]["title"] == "Fajar"

    assert admin_client.delete(f"/api/artworks/{artwork_id}").status_code == 200
    assert client.get(f"/api/artworks/{artwork_id}").status_code == 404


def test_admin_credentials_route(admin_client, client):
    wrong = admin_client.put("/api/admin/credentials", json={
        "current_password": "salah", "new_password": "RahasiaBaru9", "confirm_password": "RahasiaBaru9",
    })
    assert wrong.status_code == 400

    changed = admin_client.put("/api/admin/credentials", json={
        "current_password": "rahasia-test", "new_username": "pemilik",
        "new_password": "RahasiaBaru9", "confirm_password": "RahasiaBaru9",
    })
    assert changed.status_code == 200
    assert changed.get_json()["changes"] == ["username", "password"]
    assert admin_client.get("/api/auth/check").get_json()["user"]["username"] == "pemilik"

    admin_client.post("/api/auth/logout")
    assert client.post("/api/auth/login", json={"username": "admin", "password": "rahasia-test"}).status_code == 401
    assert client.post("/api/auth/login", json={"username": "pemilik", "password": "RahasiaBaru9"}).status_code == 200
