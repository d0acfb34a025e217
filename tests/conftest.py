from datetime import date, datetime, timedelta

import pytest

from cocoacycle.app.backend import auth as auth_backend
from cocoacycle.app.config import Config
from cocoacycle.app.extensions import db
from cocoacycle.app.factory import create_app
from cocoacycle.app.models import CycleProduct, Product, PurchaseCycle, Season

PASSWORD = "Secret123"


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CORS_ORIGINS = []


def _seed() -> dict:
    customer = auth_backend.sign_up(
        "cliente@test.com", PASSWORD, {"display_name": "Cliente Teste", "whatsapp": "11988887777"}
    ).user
    admin = auth_backend.sign_up("admin@test.com", PASSWORD, {"display_name": "Admin"}).user
    admin.is_admin = True

    season = Season(name="Inverno", start_date=date(2026, 6, 1), end_date=date(2026, 8, 31), is_active=True)
    db.session.add(season)
    db.session.flush()

    barra = Product(
        name="Barra 70%",
        description="Amargo intenso",
        attributes={"categoria": ["Barra"], "dietary": ["vegano"], "cacau": ["70%"]},
        season_id=season.id,
    )
    bombom = Product(
        name="Bombom de Maracujá",
        description="Recheio de fruta",
        attributes={"categoria": ["Bombom", "Recheado"], "dietary": ["vegano", "sem glúten"]},
        image_url="https://img.test/bombom.png",
    )
    ovo = Product(name="Ovo Trufado", description="Páscoa", attributes={"categoria": ["Ovo de Páscoa"]})
    db.session.add_all([barra, bombom, ovo])

    now = datetime.utcnow()
    active = PurchaseCycle(
        name="Ciclo de Inverno",
        description="Encomendas abertas",
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=10),
        is_active=True,
    )
    old = PurchaseCycle(
        name="Ciclo Antigo",
        start_date=now - timedelta(days=60),
        end_date=now - timedelta(days=30),
        is_active=False,
    )
    db.session.add_all([active, old])
    db.session.flush()

    cp_barra = CycleProduct(cycle_id=active.id, product_id=barra.id, product_name_snapshot=barra.name, price_in_cycle_cents=2990)
    cp_bombom = CycleProduct(
        cycle_id=active.id,
        product_id=bombom.id,
        product_name_snapshot=bombom.name,
        price_in_cycle_cents=4500,
        display_image_url=bombom.image_url,
    )
    cp_ovo = CycleProduct(
        cycle_id=active.id,
        product_id=ovo.id,
        product_name_snapshot=ovo.name,
        price_in_cycle_cents=13990,
        is_available_in_cycle=False,
    )
    cp_old = CycleProduct(cycle_id=old.id, product_id=barra.id, product_name_snapshot=barra.name, price_in_cycle_cents=2790)
    db.session.add_all([cp_barra, cp_bombom, cp_ovo, cp_old])
    db.session.commit()

    return {
        "customer_id": customer.id,
        "admin_id": admin.id,
        "season_id": season.id,
        "barra_id": barra.id,
        "bombom_id": bombom.id,
        "ovo_id": ovo.id,
        "active_cycle_id": active.id,
        "old_cycle_id": old.id,
        "cp_barra": cp_barra.id,
        "cp_bombom": cp_bombom.id,
        "cp_ovo": cp_ovo.id,
        "cp_old": cp_old.id,
    }


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        app.config["SEED"] = _seed()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def seed(app):
    return app.config["SEED"]


@pytest.fixture()
def client(app):
    return app.test_client()


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture()
def customer_client(app):
    c = app.test_client()
    assert login(c, "cliente@test.com").status_code == 200
    return c


@pytest.fixture()
def admin_client(app):
    c = app.test_client()
    assert login(c, "admin@test.com").status_code == 200
    return c


