from __future__ import annotations

from flask import Blueprint

from cocoacycle.app.backend import store
from cocoacycle.app.common.auth import current_user, login_required
from cocoacycle.app.common.serializers import order_to_dict

bp = Blueprint("orders", __name__)


@bp.post("/checkout")
@login_required
def checkout():
    """POST /api/checkout - Place an order from the cart.

    The order lands in `Pending Payment`; payment is arranged with the shop.
    """
    order = store.process_checkout(current_user())
    return order_to_dict(order), 201


@bp.get("/orders")
@login_required
def list_orders():
    orders = store.fetch_user_orders(current_user().id)
    return {"items": [order_to_dict(o, include_items=False) for o in orders]}, 200


@bp.get("/orders/<int:order_id>")
@login_required
def get_order(order_id: int):
    return order_to_dict(store.fetch_user_order(current_user().id, order_id)), 200
