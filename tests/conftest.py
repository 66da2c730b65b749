import pytest

from eaststore import create_app, db
from eaststore.auth import create_admin_user
from eaststore.models import Product

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "rahasia-test"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return create_admin_user(ADMIN_USERNAME, ADMIN_PASSWORD, name="Admin Test")


@pytest.fixture
def admin_client(client, admin):
    response = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def product(app):
    product = Product(slug="kaos-east-classic", title="Kaos East Classic", price_idr=125000, status="pre_order")
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture
def preorder_data(product):
    return {
        "customer_name": "Budi Santoso",
        "customer_phone": "081234567890",
        "customer_address": "Jl. Merdeka No. 1, Bandung",
        "product_id": product.id,
        "size": "L",
        "quantity": 2,
    }
