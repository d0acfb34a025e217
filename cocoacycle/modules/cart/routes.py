from __future__ import annotations

from flask import Blueprint, current_app

from cocoacycle.app.backend import store
from cocoacycle.app.common.auth import current_user, login_required
from cocoacycle.app.common.json import display_money, ok
from cocoacycle.app.common.serializers import cart_item_to_dict
from cocoacycle.app.common.validation import clamp_quantity, get_json, parse_int, parse_quantity, require_fields

bp = Blueprint("cart", __name__)


def _max_quantity() -> int:
    return current_app.config.get("MAX_CART_QUANTITY", 99)


def _cart_response(user_id: str):
    items = store.fetch_cart_items(user_id)
    total = sum(i.quantity * i.cycle_product.price_in_cycle_cents for i in items)
    return {
        "items": [cart_item_to_dict(i) for i in items],
        "item_count": sum(i.quantity for i in items),
        "total_cents": total,
        "total_display": display_money(total),
    }


@bp.get("/cart")
@login_required
def get_cart():
    return _cart_response(current_user().id), 200


@bp.post("/cart/items")
@login_required
def add_item():
    data = get_json()
    require_fields(data, ["cycle_product_id"])

    cycle_product_id = parse_int(data["cycle_product_id"], "cycle_product_id")
    qty = parse_quantity(data.get("quantity", 1), _max_quantity())

    user_id = current_user().id
    store.add_to_cart(user_id, cycle_product_id, qty)
    return _cart_response(user_id), 201


@bp.patch("/cart/items/<int:item_id>")
@login_required
def update_item(item_id: int):
    data = get_json()
    require_fields(data, ["quantity"])

    user_id = current_user().id
    store.update_cart_item_quantity(user_id, item_id, clamp_quantity(data["quantity"], _max_quantity()))
    return _cart_response(user_id), 200


@bp.delete("/cart/items/<int:item_id>")
@login_required
def remove_item(item_id: int):
    user_id = current_user().id
    store.remove_from_cart(user_id, item_id)
    return _cart_response(user_id), 200


@bp.delete("/cart")
@login_required
def clear():
    store.clear_cart(current_user().id)
    return ok(status=204)
