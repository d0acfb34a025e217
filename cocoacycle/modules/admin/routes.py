"""Admin console endpoints, mounted under /api/admin."""

from __future__ import annotations

from flask import Blueprint, request

from cocoacycle.app.backend import store
from cocoacycle.app.common.auth import admin_required
from cocoacycle.app.common.errors import validation_error
from cocoacycle.app.common.formatting import ORDER_STATUS_LABELS, PAYMENT_STATUS_LABELS
from cocoacycle.app.common.json import display_money, ok
from cocoacycle.app.common.serializers import (
    cycle_product_to_dict,
    cycle_to_dict,
    order_to_dict,
    product_to_dict,
    profile_to_dict,
    season_to_dict,
)
from cocoacycle.app.common.validation import (
    CACAU_OPTIONS,
    CATEGORIA_OPTIONS,
    DIETARY_OPTIONS,
    PESO_OPTIONS,
    UNIDADE_OPTIONS,
    get_json,
    parse_bool,
    parse_int,
    parse_price_cents,
    require_fields,
    validate_cycle_payload,
    validate_product_payload,
    validate_season_payload,
)
from cocoacycle.app.models import ORDER_STATUSES, PAYMENT_STATUSES

bp = Blueprint("admin", __name__)


@admin_required
def _check_admin():
    return None


@bp.before_request
def _require_admin():
    # CORS preflight carries no session cookie.
    if request.method != "OPTIONS":
        _check_admin()


def _int_arg(name: str):
    raw = request.args.get(name)
    return parse_int(raw, name) if raw not in (None, "") else None


def _optional_str(data, key: str):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        validation_error(f"{key} must be a string", field=key)
    return value.strip() or None


# --- Dashboard ---

@bp.get("/dashboard")
def dashboard():
    """GET /api/admin/dashboard - Active cycle, pending orders and paid sales."""
    metrics = store.fetch_active_cycle_metrics()
    cycle = metrics["active_cycle"]
    total = metrics["total_sales_active_cycle_cents"]
    return {
        "active_cycle": cycle_to_dict(cycle) if cycle else None,
        "pending_orders_count": metrics["pending_orders_count"],
        "total_sales_active_cycle_cents": total,
        "total_sales_active_cycle_display": display_money(total),
    }, 200


# --- Seasons ---

@bp.get("/seasons")
def list_seasons():
    """GET /api/admin/seasons - All seasons, newest first."""
    return {"items": [season_to_dict(s) for s in store.fetch_seasons()]}, 200


@bp.post("/seasons")
def create_season():
    """POST /api/admin/seasons - Create a season."""
    season = store.create_season(validate_season_payload(get_json()))
    return season_to_dict(season), 201


@bp.get("/seasons/<int:season_id>")
def get_season(season_id: int):
    """GET /api/admin/seasons/<id>"""
    return season_to_dict(store.fetch_season(season_id)), 200


@bp.patch("/seasons/<int:season_id>")
def update_season(season_id: int):
    """PATCH /api/admin/seasons/<id> - Partial update."""
    current = store.fetch_season(season_id)
    values = validate_season_payload(get_json(), current=current, partial=True)
    return season_to_dict(store.update_season(season_id, values)), 200


@bp.delete("/seasons/<int:season_id>")
def delete_season(season_id: int):
    """DELETE /api/admin/seasons/<id> - Products of the season are kept, detached."""
    store.delete_season(season_id)
    return ok(status=204)


# --- Master products ---

@bp.get("/products/options")
def product_options():
    """Vocabulary for the product form selects."""
    return {
        "categoria": CATEGORIA_OPTIONS,
        "dietary": DIETARY_OPTIONS,
        "peso": PESO_OPTIONS,
        "cacau": CACAU_OPTIONS,
        "unidade": UNIDADE_OPTIONS,
        "seasons": [{"id": s.id, "name": s.name} for s in store.fetch_seasons()],
    }, 200


@bp.get("/products")
def list_products():
    """GET /api/admin/products - Master products (optional season_id filter)."""
    products = store.fetch_admin_products(season_id=_int_arg("season_id"))
    return {"items": [product_to_dict(p) for p in products]}, 200


@bp.post("/products")
def create_product():
    """POST /api/admin/products - Create a master product.

    With `is_available`, the product is also offered in the active cycle.
    """
    data = get_json()
    values = validate_product_payload(data)
    product = store.create_product(values)

    body = product_to_dict(product)
    if "is_available" in data:
        cp = store.set_product_availability_in_active_cycle(product.id, parse_bool(data["is_available"], "is_available"))
        body["active_cycle_product"] = cycle_product_to_dict(cp) if cp else None
    return body, 201


@bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    """GET /api/admin/products/<id>"""
    body = product_to_dict(store.fetch_product(product_id))
    body["is_available_in_active_cycle"] = store.fetch_product_availability_in_active_cycle(product_id)
    return body, 200


@bp.patch("/products/<int:product_id>")
def update_product(product_id: int):
    """PATCH /api/admin/products/<id> - Partial update; cycle snapshots are untouched."""
    values = validate_product_payload(get_json(), partial=True)
    return product_to_dict(store.update_product(product_id, values)), 200


@bp.delete("/products/<int:product_id>")
def delete_product(product_id: int):
    """DELETE /api/admin/products/<id> - Also removes it from every cycle."""
    store.delete_product(product_id)
    return ok(status=204)


@bp.get("/products/<int:product_id>/availability")
def get_availability(product_id: int):
    """GET /api/admin/products/<id>/availability"""
    return {
        "product_id": product_id,
        "is_available": store.fetch_product_availability_in_active_cycle(product_id),
    }, 200


@bp.put("/products/<int:product_id>/availability")
def set_availability(product_id: int):
    """PUT /api/admin/products/<id>/availability - Toggle in the active cycle."""
    data = get_json()
    require_fields(data, ["is_available"])
    cp = store.set_product_availability_in_active_cycle(product_id, parse_bool(data["is_available"], "is_available"))
    return {
        "product_id": product_id,
        "is_available": bool(cp and cp.is_available_in_cycle),
        "cycle_product": cycle_product_to_dict(cp) if cp else None,
    }, 200


# --- Purchase cycles ---

@bp.get("/purchase-cycles")
def list_cycles():
    """GET /api/admin/purchase-cycles - Newest start first."""
    return {"items": [cycle_to_dict(c) for c in store.fetch_purchase_cycles()]}, 200


@bp.post("/purchase-cycles")
def create_cycle():
    """POST /api/admin/purchase-cycles - Activating one closes the others."""
    cycle = store.create_purchase_cycle(validate_cycle_payload(get_json()))
    return cycle_to_dict(cycle), 201


@bp.get("/purchase-cycles/<int:cycle_id>")
def get_cycle(cycle_id: int):
    """GET /api/admin/purchase-cycles/<id>"""
    return cycle_to_dict(store.fetch_purchase_cycle(cycle_id)), 200


@bp.patch("/purchase-cycles/<int:cycle_id>")
def update_cycle(cycle_id: int):
    """PATCH /api/admin/purchase-cycles/<id>"""
    current = store.fetch_purchase_cycle(cycle_id)
    values = validate_cycle_payload(get_json(), current=current, partial=True)
    return cycle_to_dict(store.update_purchase_cycle(cycle_id, values)), 200


@bp.delete("/purchase-cycles/<int:cycle_id>")
def delete_cycle(cycle_id: int):
    """DELETE /api/admin/purchase-cycles/<id> - Refused once the cycle has orders."""
    store.delete_purchase_cycle(cycle_id)
    return ok(status=204)


# --- Cycle products ---

@bp.get("/purchase-cycles/<int:cycle_id>/products")
def list_cycle_products(cycle_id: int):
    """GET /api/admin/purchase-cycles/<id>/products"""
    rows = store.fetch_cycle_products_with_details(cycle_id)
    return {"items": [cycle_product_to_dict(cp) for cp in rows]}, 200


@bp.get("/purchase-cycles/<int:cycle_id>/available-products")
def list_products_not_in_cycle(cycle_id: int):
    """GET /api/admin/purchase-cycles/<id>/available-products - Products not yet offered (q filters by name)."""
    products = store.fetch_master_products_not_in_cycle(cycle_id, search=request.args.get("q"))
    return {"items": [product_to_dict(p) for p in products]}, 200


@bp.post("/purchase-cycles/<int:cycle_id>/products")
def add_cycle_product(cycle_id: int):
    """POST /api/admin/purchase-cycles/<id>/products - Offer a product at a cycle price."""
    data = get_json()
    require_fields(data, ["product_id", "price"])

    cp = store.create_cycle_product(
        cycle_id,
        parse_int(data["product_id"], "product_id"),
        parse_price_cents(data["price"]),
        is_available_in_cycle=parse_bool(data.get("is_available_in_cycle", True), "is_available_in_cycle"),
        product_name_snapshot=_optional_str(data, "product_name_snapshot"),
        display_image_url=_optional_str(data, "display_image_url"),
    )
    return cycle_product_to_dict(cp), 201


@bp.patch("/cycle-products/<int:cycle_product_id>")
def update_cycle_product(cycle_product_id: int):
    """PATCH /api/admin/cycle-products/<id> - Price, availability or image."""
    data = get_json()
    values = {}
    if "price" in data:
        values["price_in_cycle_cents"] = parse_price_cents(data["price"])
    if "is_available_in_cycle" in data:
        values["is_available_in_cycle"] = parse_bool(data["is_available_in_cycle"], "is_available_in_cycle")
    if "display_image_url" in data:
        values["display_image_url"] = _optional_str(data, "display_image_url")
    if not values:
        validation_error("Nothing to update", allowed=["price", "is_available_in_cycle", "display_image_url"])
    return cycle_product_to_dict(store.update_cycle_product(cycle_product_id, values)), 200


@bp.delete("/cycle-products/<int:cycle_product_id>")
def delete_cycle_product(cycle_product_id: int):
    """DELETE /api/admin/cycle-products/<id>"""
    store.delete_cycle_product(cycle_product_id)
    return ok(status=204)


# --- Orders ---

@bp.get("/orders/statuses")
def order_statuses():
    """GET /api/admin/orders/statuses - Status values with pt-BR labels."""
    return {
        "order_statuses": [{"value": s, "label": ORDER_STATUS_LABELS.get(s, s)} for s in ORDER_STATUSES],
        "payment_statuses": [{"value": s, "label": PAYMENT_STATUS_LABELS.get(s, s)} for s in PAYMENT_STATUSES],
    }, 200


@bp.get("/orders")
def list_orders():
    """GET /api/admin/orders - All orders (cycle_id, status filters)."""
    orders = store.fetch_admin_orders(
        cycle_id=_int_arg("cycle_id"),
        order_status=request.args.get("status") or None,
    )
    return {"items": [order_to_dict(o, include_items=False) for o in orders]}, 200


@bp.get("/orders/<int:order_id>")
def get_order(order_id: int):
    """GET /api/admin/orders/<id> - Order with items and customer."""
    order = store.fetch_order(order_id)
    body = order_to_dict(order)
    body["customer"] = profile_to_dict(order.user) if order.user else None
    return body, 200


@bp.patch("/orders/<int:order_id>")
def update_order(order_id: int):
    """PATCH /api/admin/orders/<id> - Order/payment status and admin notes."""
    data = get_json()
    if not any(k in data for k in ("order_status", "payment_status", "admin_notes")):
        validation_error("Nothing to update", allowed=["order_status", "payment_status", "admin_notes"])
    admin_notes = data.get("admin_notes")
    if admin_notes is not None and not isinstance(admin_notes, str):
        validation_error("admin_notes must be a string", field="admin_notes")
    order = store.update_order_status(
        order_id,
        order_status=data.get("order_status"),
        payment_status=data.get("payment_status"),
        admin_notes=admin_notes,
    )
    return order_to_dict(order), 200


# --- Customers ---

@bp.get("/customers")
def list_customers():
    """GET /api/admin/customers - Customer profiles (include_admins=true for all)."""
    include_admins = parse_bool(request.args.get("include_admins", "false"), "include_admins")
    return {"items": [profile_to_dict(p) for p in store.fetch_admin_users(include_admins=include_admins)]}, 200
