import pytest


@pytest.fixture()
def placed_order(customer_client, seed):
    customer_client.post("/api/cart/items", json={"cycle_product_id": seed["cp_barra"], "quantity": 2})
    return customer_client.post("/api/checkout").json


def test_dashboard_without_orders(admin_client, seed):
    r = admin_client.get("/api/admin/dashboard")
    assert r.status_code == 200
    assert r.json["active_cycle"]["id"] == seed["active_cycle_id"]
    assert r.json["pending_orders_count"] == 0
    assert r.json["total_sales_active_cycle_cents"] == 0


def test_dashboard_counts_pending_and_paid(admin_client, placed_order):
    r = admin_client.get("/api/admin/dashboard")
    assert r.json["pending_orders_count"] == 1
    assert r.json["total_sales_active_cycle_cents"] == 0

    admin_client.patch(f"/api/admin/orders/{placed_order['id']}", json={"order_status": "Payment Confirmed", "payment_status": "Paid"})
    r = admin_client.get("/api/admin/dashboard")
    assert r.json["pending_orders_count"] == 0
    assert r.json["total_sales_active_cycle_cents"] == 5980
    assert r.json["total_sales_active_cycle_display"] == "R$ 59,80"


def test_dashboard_without_active_cycle(admin_client, seed):
    admin_client.patch(f"/api/admin/purchase-cycles/{seed['active_cycle_id']}", json={"is_active": False})
    r = admin_client.get("/api/admin/dashboard")
    assert r.json["active_cycle"] is None
    assert r.json["pending_orders_count"] == 0


def test_list_orders_with_filters(admin_client, placed_order, seed):
    r = admin_client.get("/api/admin/orders")
    assert [o["id"] for o in r.json["items"]] == [placed_order["id"]]
    assert r.json["items"][0]["cycle_name"] == "Ciclo de Inverno"

    assert admin_client.get(f"/api/admin/orders?cycle_id={seed['old_cycle_id']}").json["items"] == []
    assert len(admin_client.get("/api/admin/orders", query_string={"status": "Pending Payment"}).json["items"]) == 1
    assert admin_client.get("/api/admin/orders?status=Completed").json["items"] == []


def test_order_detail_includes_customer(admin_client, placed_order):
    r = admin_client.get(f"/api/admin/orders/{placed_order['id']}")
    assert r.status_code == 200
    assert r.json["customer"]["email"] == "cliente@test.com"
    assert r.json["items"][0]["quantity"] == 2


def test_update_order_status_and_notes(admin_client, customer_client, placed_order):
    r = admin_client.patch(
        f"/api/admin/orders/{placed_order['id']}",
        json={"order_status": "Pronto para Retirada", "admin_notes": "  Retirar sexta  "},
    )
    assert r.status_code == 200
    assert r.json["order_status"] == "Pronto para Retirada"
    assert r.json["payment_status"] == "Unpaid"
    assert r.json["admin_notes"] == "Retirar sexta"

    mine = customer_client.get(f"/api/orders/{placed_order['id']}").json
    assert mine["order_status_label"] == "Pronto para Retirada"


def test_update_order_rejects_unknown_status(admin_client, placed_order):
    r = admin_client.patch(f"/api/admin/orders/{placed_order['id']}", json={"order_status": "Shipped"})
    assert r.status_code == 400
    r = admin_client.patch(f"/api/admin/orders/{placed_order['id']}", json={"payment_status": "Maybe"})
    assert r.status_code == 400
    r = admin_client.patch(f"/api/admin/orders/{placed_order['id']}", json={})
    assert r.status_code == 400


def test_update_missing_order(admin_client):
    r = admin_client.patch("/api/admin/orders/999", json={"order_status": "Completed"})
    assert r.status_code == 404


def test_order_statuses(admin_client):
    r = admin_client.get("/api/admin/orders/statuses")
    values = [s["value"] for s in r.json["order_statuses"]]
    assert values[0] == "Pending Payment"
    assert "Cancelled" in values
    assert {"value": "Paid", "label": "Pago"} in r.json["payment_statuses"]


def test_customers_exclude_admins_by_default(admin_client):
    emails = [p["email"] for p in admin_client.get("/api/admin/customers").json["items"]]
    assert emails == ["cliente@test.com"]

    emails = [p["email"] for p in admin_client.get("/api/admin/customers?include_admins=true").json["items"]]
    assert set(emails) == {"cliente@test.com", "admin@test.com"}


def test_update_order_rejects_non_string_notes(admin_client, placed_order):
    r = admin_client.patch(f"/api/admin/orders/{placed_order['id']}", json={"admin_notes": 42})
    assert r.status_code == 400
    assert r.json["error"]["details"]["field"] == "admin_notes"


def test_cycle_product_snapshot_must_be_text(admin_client, seed):
    r = admin_client.post(
        f"/api/admin/purchase-cycles/{seed['old_cycle_id']}/products",
        json={"product_id": seed["bombom_id"], "price": 10, "product_name_snapshot": 7},
    )
    assert r.status_code == 400


def test_cycle_dates_have_display_strings(admin_client, seed):
    r = admin_client.get(f"/api/admin/purchase-cycles/{seed['active_cycle_id']}")
    assert len(r.json["start_date_display"]) == len("01/01/2026 00:00")
    r = admin_client.get(f"/api/admin/seasons/{seed['season_id']}")
    assert r.json["start_date_display"] == "01/06/2026"
    assert r.json["end_date_display"] == "31/08/2026"
