from cocoacycle.app.extensions import db
from cocoacycle.app.models import CartItem, CycleProduct, Product, PurchaseCycle


def test_admin_routes_require_login(client):
    r = client.get("/api/admin/products")
    assert r.status_code == 401


def test_admin_routes_forbid_customers(customer_client):
    r = customer_client.get("/api/admin/products")
    assert r.status_code == 403
    assert r.json["error"]["code"] == "forbidden"


# --- Seasons ---

def test_season_crud(admin_client):
    r = admin_client.post("/api/admin/seasons", json={"name": "Páscoa", "start_date": "2027-03-01", "end_date": "2027-04-20"})
    assert r.status_code == 201
    season_id = r.json["id"]
    assert r.json["is_active"] is False
    assert r.json["start_date"] == "2027-03-01"

    r = admin_client.patch(f"/api/admin/seasons/{season_id}", json={"is_active": True})
    assert r.json["is_active"] is True

    names = [s["name"] for s in admin_client.get("/api/admin/seasons").json["items"]]
    assert names[0] == "Páscoa"

    assert admin_client.delete(f"/api/admin/seasons/{season_id}").status_code == 204
    assert admin_client.get(f"/api/admin/seasons/{season_id}").status_code == 404


def test_season_requires_dates_in_order(admin_client):
    r = admin_client.post("/api/admin/seasons", json={"name": "X", "start_date": "2027-04-01", "end_date": "2027-03-01"})
    assert r.status_code == 400
    assert r.json["error"]["message"] == "Start date must be before end date"

    r = admin_client.post("/api/admin/seasons", json={"name": "X"})
    assert r.status_code == 400
    assert r.json["error"]["message"] == "Start and end dates are required"


def test_deleting_season_detaches_products(app, admin_client, seed):
    assert admin_client.delete(f"/api/admin/seasons/{seed['season_id']}").status_code == 204
    with app.app_context():
        assert db.session.get(Product, seed["barra_id"]).season_id is None


# --- Products ---

def test_product_options(admin_client):
    r = admin_client.get("/api/admin/products/options")
    assert "Bombom" in r.json["categoria"]
    assert "N/A" in r.json["peso"]
    assert r.json["seasons"][0]["name"] == "Inverno"


def test_create_product_normalises_attributes(admin_client, seed):
    r = admin_client.post(
        "/api/admin/products",
        json={
            "name": "Tablete 55%",
            "description": "Meio amargo",
            "season_id": seed["season_id"],
            "attributes": {"categoria": ["Tablete"], "peso": "N/A", "cacau": "55%", "sabor": " Baunilha "},
        },
    )
    assert r.status_code == 201
    assert r.json["attributes"] == {"categoria": ["Tablete"], "cacau": ["55%"], "sabor": ["Baunilha"]}
    assert r.json["season_name"] == "Inverno"
    assert r.json["image_url"].startswith("https://placehold.co/")


def test_create_product_validation(admin_client):
    r = admin_client.post("/api/admin/products", json={"name": "", "description": "x"})
    assert r.status_code == 400
    assert r.json["error"]["message"] == "Product name is required"

    r = admin_client.post("/api/admin/products", json={"name": "A", "description": "x", "attributes": {"categoria": ["Pizza"]}})
    assert r.status_code == 400

    r = admin_client.post("/api/admin/products", json={"name": "A", "description": "x", "season_id": 999})
    assert r.status_code == 400


def test_create_product_available_in_active_cycle(admin_client, seed):
    r = admin_client.post("/api/admin/products", json={"name": "Gotas", "description": "Para confeitaria", "is_available": True})
    assert r.status_code == 201
    cp = r.json["active_cycle_product"]
    assert cp["cycle_id"] == seed["active_cycle_id"]
    assert cp["product_name_snapshot"] == "Gotas"
    assert cp["price_in_cycle_cents"] == 0


def test_list_products_filtered_by_season(admin_client, seed):
    r = admin_client.get(f"/api/admin/products?season_id={seed['season_id']}")
    assert [p["name"] for p in r.json["items"]] == ["Barra 70%"]
    assert len(admin_client.get("/api/admin/products").json["items"]) == 3


def test_update_product_keeps_cycle_snapshot(admin_client, seed):
    r = admin_client.patch(f"/api/admin/products/{seed['barra_id']}", json={"name": "Barra 70% Nova"})
    assert r.status_code == 200
    assert r.json["name"] == "Barra 70% Nova"
    assert r.json["description"] == "Amargo intenso"

    rows = admin_client.get(f"/api/admin/purchase-cycles/{seed['active_cycle_id']}/products").json["items"]
    barra = next(cp for cp in rows if cp["product_id"] == seed["barra_id"])
    assert barra["product_name_snapshot"] == "Barra 70%"
    assert barra["master_product_name"] == "Barra 70% Nova"


def test_delete_product_removes_cycle_products(app, admin_client, customer_client, seed):
    customer_client.post("/api/cart/items", json={"cycle_product_id": seed["cp_barra"], "quantity": 1})
    assert admin_client.delete(f"/api/admin/products/{seed['barra_id']}").status_code == 204
    with app.app_context():
        assert CycleProduct.query.filter_by(product_id=seed["barra_id"]).count() == 0
        assert CartItem.query.count() == 0


def test_availability_toggle(admin_client, seed):
    url = f"/api/admin/products/{seed['ovo_id']}/availability"
    assert admin_client.get(url).json["is_available"] is False

    r = admin_client.put(url, json={"is_available": True})
    assert r.json["is_available"] is True
    assert admin_client.get(f"/api/admin/products/{seed['ovo_id']}").json["is_available_in_active_cycle"] is True


def test_availability_without_active_cycle(app, admin_client, seed):
    with app.app_context():
        PurchaseCycle.query.update({"is_active": False})
        db.session.commit()

    r = admin_client.put(f"/api/admin/products/{seed['barra_id']}/availability", json={"is_available": True})
    assert r.status_code == 200
    assert r.json["is_available"] is False
    assert r.json["cycle_product"] is None


# --- Purchase cycles ---

def test_create_active_cycle_deactivates_others(app, admin_client, seed):
    r = admin_client.post(
        "/api/admin/purchase-cycles",
        json={
            "name": "Ciclo de Páscoa",
            "description": "Ovos",
            "start_date": "2027-03-01T00:00:00Z",
            "end_date": "2027-04-01T00:00:00Z",
            "is_active": True,
        },
    )
    assert r.status_code == 201
    assert r.json["is_active"] is True

    with app.app_context():
        active = PurchaseCycle.query.filter_by(is_active=True).all()
        assert [c.id for c in active] == [r.json["id"]]


def test_activate_existing_cycle(app, admin_client, seed):
    r = admin_client.patch(f"/api/admin/purchase-cycles/{seed['old_cycle_id']}", json={"is_active": True})
    assert r.status_code == 200
    with app.app_context():
        assert PurchaseCycle.query.filter_by(is_active=True).count() == 1
        assert db.session.get(PurchaseCycle, seed["active_cycle_id"]).is_active is False


def test_cycle_validation(admin_client, seed):
    r = admin_client.post(
        "/api/admin/purchase-cycles",
        json={"name": " ", "start_date": "2027-03-01T00:00:00Z", "end_date": "2027-04-01T00:00:00Z"},
    )
    assert r.json["error"]["message"] == "Cycle name is required"

    r = admin_client.patch(
        f"/api/admin/purchase-cycles/{seed['active_cycle_id']}",
        json={"end_date": "2000-01-01T00:00:00Z"},
    )
    assert r.status_code == 400
    assert r.json["error"]["message"] == "Start date must be before end date"


def test_cycles_listed_newest_first(admin_client, seed):
    ids = [c["id"] for c in admin_client.get("/api/admin/purchase-cycles").json["items"]]
    assert ids == [seed["active_cycle_id"], seed["old_cycle_id"]]


def test_delete_cycle(app, admin_client, seed):
    assert admin_client.delete(f"/api/admin/purchase-cycles/{seed['old_cycle_id']}").status_code == 204
    with app.app_context():
        assert db.session.get(CycleProduct, seed["cp_old"]) is None


def test_delete_cycle_with_orders_conflicts(admin_client, customer_client, seed):
    customer_client.post("/api/cart/items", json={"cycle_product_id": seed["cp_barra"], "quantity": 1})
    customer_client.post("/api/checkout")
    r = admin_client.delete(f"/api/admin/purchase-cycles/{seed['active_cycle_id']}")
    assert r.status_code == 409


# --- Cycle products ---

def test_available_products_excludes_cycle_members(admin_client, seed):
    r = admin_client.get(f"/api/admin/purchase-cycles/{seed['old_cycle_id']}/available-products")
    assert [p["name"] for p in r.json["items"]] == ["Bombom de Maracujá", "Ovo Trufado"]

    r = admin_client.get(f"/api/admin/purchase-cycles/{seed['old_cycle_id']}/available-products?q=ovo")
    assert [p["name"] for p in r.json["items"]] == ["Ovo Trufado"]


def test_add_product_to_cycle(admin_client, seed):
    r = admin_client.post(
        f"/api/admin/purchase-cycles/{seed['old_cycle_id']}/products",
        json={"product_id": seed["bombom_id"], "price": "42,50"},
    )
    assert r.status_code == 201
    assert r.json["price_in_cycle_cents"] == 4250
    assert r.json["price_display"] == "R$ 42,50"
    assert r.json["product_name_snapshot"] == "Bombom de Maracujá"
    assert r.json["display_image_url"] == "https://img.test/bombom.png"


def test_add_duplicate_product_to_cycle_conflicts(admin_client, seed):
    r = admin_client.post(
        f"/api/admin/purchase-cycles/{seed['active_cycle_id']}/products",
        json={"product_id": seed["barra_id"], "price": 10},
    )
    assert r.status_code == 409


def test_negative_price_rejected(admin_client, seed):
    r = admin_client.post(
        f"/api/admin/purchase-cycles/{seed['old_cycle_id']}/products",
        json={"product_id": seed["bombom_id"], "price": -1},
    )
    assert r.status_code == 400
    assert r.json["error"]["message"] == "Price cannot be negative"


def test_update_and_delete_cycle_product(admin_client, seed):
    r = admin_client.patch(f"/api/admin/cycle-products/{seed['cp_barra']}", json={"price": "31.00", "is_available_in_cycle": False})
    assert r.status_code == 200
    assert r.json["price_in_cycle_cents"] == 3100
    assert r.json["is_available_in_cycle"] is False

    assert admin_client.patch(f"/api/admin/cycle-products/{seed['cp_barra']}", json={}).status_code == 400
    assert admin_client.delete(f"/api/admin/cycle-products/{seed['cp_barra']}").status_code == 204
    assert admin_client.delete(f"/api/admin/cycle-products/{seed['cp_barra']}").status_code == 404
