"""Model -> JSON dicts.

Dates go out as ISO strings, money as cents plus a display string.
"""

from __future__ import annotations

from typing import Any, Dict

from cocoacycle.app.backend.store import DisplayableProduct
from cocoacycle.app.common.formatting import (
    ORDER_STATUS_BADGES,
    PAYMENT_STATUS_BADGES,
    format_address,
    format_date_br,
    format_datetime_br,
    isoformat,
    order_status_label,
    payment_status_label,
)
from cocoacycle.app.common.json import display_money
from cocoacycle.app.models import CartItem, CycleProduct, Order, OrderItem, Product, Profile, PurchaseCycle, Season


def profile_to_dict(p: Profile) -> Dict[str, Any]:
    return {
        "id": p.id,
        "email": p.email,
        "display_name": p.display_name,
        "whatsapp": p.whatsapp,
        "is_admin": p.is_admin,
        "created_at": isoformat(p.created_at),
        "address_street": p.address_street,
        "address_number": p.address_number,
        "address_complement": p.address_complement,
        "address_neighborhood": p.address_neighborhood,
        "address_city": p.address_city,
        "address_state": p.address_state,
        "address_zip": p.address_zip,
        "address_display": format_address(p),
    }


def season_to_dict(s: Season) -> Dict[str, Any]:
    return {
        "id": s.id,
        "name": s.name,
        "start_date": isoformat(s.start_date),
        "end_date": isoformat(s.end_date),
        "start_date_display": format_date_br(s.start_date),
        "end_date_display": format_date_br(s.end_date),
        "is_active": s.is_active,
        "created_at": isoformat(s.created_at),
    }


def product_to_dict(p: Product) -> Dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "image_url": p.image_url,
        "attributes": p.attributes or {},
        "season_id": p.season_id,
        "season_name": p.season.name if p.season else None,
        "created_at": isoformat(p.created_at),
        "updated_at": isoformat(p.updated_at),
    }


def cycle_to_dict(c: PurchaseCycle) -> Dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "start_date": isoformat(c.start_date),
        "end_date": isoformat(c.end_date),
        "start_date_display": format_datetime_br(c.start_date),
        "end_date_display": format_datetime_br(c.end_date),
        "is_active": c.is_active,
        "created_at": isoformat(c.created_at),
    }


def cycle_product_to_dict(cp: CycleProduct) -> Dict[str, Any]:
    return {
        "id": cp.id,
        "cycle_id": cp.cycle_id,
        "product_id": cp.product_id,
        "product_name_snapshot": cp.product_name_snapshot,
        "price_in_cycle_cents": cp.price_in_cycle_cents,
        "price_display": display_money(cp.price_in_cycle_cents),
        "is_available_in_cycle": cp.is_available_in_cycle,
        "display_image_url": cp.display_image_url,
        "master_product_name": cp.product.name if cp.product else None,
    }


def displayable_to_dict(dp: DisplayableProduct) -> Dict[str, Any]:
    data = dp.to_dict()
    data["id"] = dp.cycle_product_id
    data["price_display"] = display_money(dp.price_cents)
    return data


def cart_item_to_dict(ci: CartItem) -> Dict[str, Any]:
    cp = ci.cycle_product
    line_total = cp.price_in_cycle_cents * ci.quantity
    return {
        "id": ci.id,
        "cycle_product_id": cp.id,
        "cycle_id": cp.cycle_id,
        "name": cp.product_name_snapshot,
        "image_url": cp.display_image_url,
        "quantity": ci.quantity,
        "price_cents": cp.price_in_cycle_cents,
        "price_display": display_money(cp.price_in_cycle_cents),
        "line_total_cents": line_total,
        "line_total_display": display_money(line_total),
        "is_available_in_cycle": cp.is_available_in_cycle,
    }


def order_item_to_dict(i: OrderItem) -> Dict[str, Any]:
    return {
        "id": i.id,
        "product_id": i.product_id,
        "cycle_product_id": i.cycle_product_id,
        "product_name": i.product_name,
        "quantity": i.quantity,
        "price_at_purchase_cents": i.price_at_purchase_cents,
        "price_at_purchase_display": display_money(i.price_at_purchase_cents),
        "line_item_total_cents": i.line_item_total_cents,
        "line_item_total_display": display_money(i.line_item_total_cents),
    }


def order_to_dict(o: Order, include_items: bool = True) -> Dict[str, Any]:
    data = {
        "id": o.id,
        "order_number": o.order_number,
        "user_id": o.user_id,
        "customer_name_snapshot": o.customer_name_snapshot,
        "customer_whatsapp_snapshot": o.customer_whatsapp_snapshot,
        "cycle_id": o.cycle_id,
        "cycle_name": o.cycle.name if o.cycle else None,
        "order_total_cents": o.order_total_cents,
        "order_total_display": display_money(o.order_total_cents),
        "order_status": o.order_status,
        "order_status_label": order_status_label(o.order_status),
        "order_status_badge": ORDER_STATUS_BADGES.get(o.order_status, "default"),
        "payment_status": o.payment_status,
        "payment_status_label": payment_status_label(o.payment_status),
        "payment_status_badge": PAYMENT_STATUS_BADGES.get(o.payment_status, "default"),
        "order_date": isoformat(o.order_date),
        "order_date_display": format_datetime_br(o.order_date),
        "admin_notes": o.admin_notes,
    }
    if include_items:
        data["items"] = [order_item_to_dict(i) for i in o.items]
    return data
