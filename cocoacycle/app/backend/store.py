"""Relational data shim.

Every read and write the storefront and the admin console make goes through
these functions. Lookups that miss raise ``ApiError`` (404/409) through the
helpers in ``common.errors``; database failures are rolled back and surfaced
as ``StoreError``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from cocoacycle.app.common.errors import ApiError, conflict, not_found, validation_error
from cocoacycle.app.common.formatting import format_order_number
from cocoacycle.app.extensions import db
from cocoacycle.app.models import (
    OPEN_ORDER_STATUSES,
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    CartItem,
    CycleProduct,
    Order,
    OrderItem,
    Product,
    Profile,
    PurchaseCycle,
    Season,
)

logger = logging.getLogger(__name__)


class StoreError(ApiError):
    def __init__(self, message: str = "The data store rejected the request"):
        super().__init__(500, "store_error", message)


def _commit() -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Store commit failed")
        raise StoreError() from exc


def _apply(obj: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        setattr(obj, key, value)


def _placeholder_image() -> str:
    return current_app.config.get("PLACEHOLDER_IMAGE_URL", "")


# --- Seasons ---

def fetch_seasons() -> List[Season]:
    return Season.query.order_by(Season.start_date.desc(), Season.id.desc()).all()


def fetch_active_seasons() -> List[Season]:
    return Season.query.filter_by(is_active=True).order_by(Season.start_date.asc()).all()


def fetch_season(season_id: int) -> Season:
    season = db.session.get(Season, season_id)
    if not season:
        not_found("Season")
    return season


def create_season(values: Dict[str, Any]) -> Season:
    season = Season(**values)
    db.session.add(season)
    _commit()
    logger.info("Season %s created (%s)", season.id, season.name)
    return season


def update_season(season_id: int, values: Dict[str, Any]) -> Season:
    season = fetch_season(season_id)
    _apply(season, values)
    _commit()
    return season


def delete_season(season_id: int) -> None:
    season = fetch_season(season_id)
    Product.query.filter_by(season_id=season.id).update({"season_id": None})
    db.session.delete(season)
    _commit()
    logger.info("Season %s deleted", season_id)


# --- Master products ---

def fetch_admin_products(season_id: Optional[int] = None) -> List[Product]:
    q = Product.query
    if season_id is not None:
        q = q.filter_by(season_id=season_id)
    return q.order_by(Product.name.asc(), Product.id.asc()).all()


def fetch_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        not_found("Product")
    return product


def _check_season(values: Dict[str, Any]) -> None:
    season_id = values.get("season_id")
    if season_id is not None and not db.session.get(Season, season_id):
        validation_error("Season does not exist", field="season_id")


def create_product(values: Dict[str, Any]) -> Product:
    _check_season(values)
    if not values.get("image_url"):
        values = {**values, "image_url": _placeholder_image()}
    product = Product(**values)
    db.session.add(product)
    _commit()
    logger.info("Product %s created (%s)", product.id, product.name)
    return product


def update_product(product_id: int, values: Dict[str, Any]) -> Product:
    product = fetch_product(product_id)
    _check_season(values)
    _apply(product, values)
    product.updated_at = datetime.utcnow()
    _commit()
    return product


def delete_product(product_id: int) -> None:
    product = fetch_product(product_id)
    db.session.delete(product)
    _commit()
    logger.info("Product %s deleted", product_id)


def fetch_product_availability_in_active_cycle(product_id: int) -> bool:
    fetch_product(product_id)
    cycle = fetch_active_purchase_cycle()
    if not cycle:
        return False
    cp = CycleProduct.query.filter_by(cycle_id=cycle.id, product_id=product_id).first()
    return bool(cp and cp.is_available_in_cycle)


def set_product_availability_in_active_cycle(product_id: int, is_available: bool) -> Optional[CycleProduct]:
    """Toggle availability in the open cycle, adding the product to it if needed.

    Returns None when no cycle is active.
    """
    product = fetch_product(product_id)
    cycle = fetch_active_purchase_cycle()
    if not cycle:
        logger.info("No active cycle; availability for product %s not recorded", product_id)
        return None

    cp = CycleProduct.query.filter_by(cycle_id=cycle.id, product_id=product.id).first()
    if cp:
        cp.is_available_in_cycle = is_available
    else:
        cp = CycleProduct(
            cycle_id=cycle.id,
            product_id=product.id,
            product_name_snapshot=product.name,
            price_in_cycle_cents=0,
            is_available_in_cycle=is_available,
            display_image_url=product.image_url,
        )
        db.session.add(cp)
    _commit()
    return cp


# --- Purchase cycles ---

def fetch_purchase_cycles() -> List[PurchaseCycle]:
    return PurchaseCycle.query.order_by(PurchaseCycle.start_date.desc(), PurchaseCycle.id.desc()).all()


def fetch_purchase_cycle(cycle_id: int) -> PurchaseCycle:
    cycle = db.session.get(PurchaseCycle, cycle_id)
    if not cycle:
        not_found("Purchase cycle")
    return cycle


def fetch_active_purchase_cycle() -> Optional[PurchaseCycle]:
    return (
        PurchaseCycle.query.filter_by(is_active=True)
        .order_by(PurchaseCycle.start_date.desc(), PurchaseCycle.id.desc())
        .first()
    )


def fetch_active_purchase_cycle_title() -> str:
    cycle = fetch_active_purchase_cycle()
    if cycle:
        return cycle.name
    return current_app.config.get("STOREFRONT_DEFAULT_TITLE", "Nossos Chocolates")


def _deactivate_other_cycles(cycle_id: Optional[int]) -> None:
    q = PurchaseCycle.query.filter(PurchaseCycle.is_active.is_(True))
    if cycle_id is not None:
        q = q.filter(PurchaseCycle.id != cycle_id)
    q.update({"is_active": False}, synchronize_session="fetch")


def create_purchase_cycle(values: Dict[str, Any]) -> PurchaseCycle:
    cycle = PurchaseCycle(**values)
    if cycle.is_active:
        _deactivate_other_cycles(None)
    db.session.add(cycle)
    _commit()
    logger.info("Purchase cycle %s created (%s, active=%s)", cycle.id, cycle.name, cycle.is_active)
    return cycle


def update_purchase_cycle(cycle_id: int, values: Dict[str, Any]) -> PurchaseCycle:
    cycle = fetch_purchase_cycle(cycle_id)
    if values.get("is_active"):
        _deactivate_other_cycles(cycle.id)
    _apply(cycle, values)
    _commit()
    return cycle


def delete_purchase_cycle(cycle_id: int) -> None:
    cycle = fetch_purchase_cycle(cycle_id)
    if Order.query.filter_by(cycle_id=cycle.id).first():
        conflict("Cycles with orders cannot be deleted")
    db.session.delete(cycle)
    _commit()
    logger.info("Purchase cycle %s deleted", cycle_id)


# --- Cycle products ---

def fetch_cycle_products_with_details(cycle_id: int) -> List[CycleProduct]:
    fetch_purchase_cycle(cycle_id)
    return (
        CycleProduct.query.filter_by(cycle_id=cycle_id)
        .order_by(CycleProduct.product_name_snapshot.asc(), CycleProduct.id.asc())
        .all()
    )


def fetch_master_products_not_in_cycle(cycle_id: int, search: Optional[str] = None) -> List[Product]:
    fetch_purchase_cycle(cycle_id)
    in_cycle = db.session.query(CycleProduct.product_id).filter(CycleProduct.cycle_id == cycle_id)
    q = Product.query.filter(Product.id.notin_(in_cycle))
    if search:
        q = q.filter(Product.name.ilike(f"%{search}%"))
    return q.order_by(Product.name.asc()).all()


def fetch_cycle_product(cycle_product_id: int) -> CycleProduct:
    cp = db.session.get(CycleProduct, cycle_product_id)
    if not cp:
        not_found("Cycle product")
    return cp


def create_cycle_product(
    cycle_id: int,
    product_id: int,
    price_in_cycle_cents: int,
    is_available_in_cycle: bool = True,
    product_name_snapshot: Optional[str] = None,
    display_image_url: Optional[str] = None,
) -> CycleProduct:
    cycle = fetch_purchase_cycle(cycle_id)
    product = fetch_product(product_id)
    if CycleProduct.query.filter_by(cycle_id=cycle.id, product_id=product.id).first():
        conflict("Product is already in this cycle", product_id=product.id)

    cp = CycleProduct(
        cycle_id=cycle.id,
        product_id=product.id,
        product_name_snapshot=product_name_snapshot or product.name,
        price_in_cycle_cents=price_in_cycle_cents,
        is_available_in_cycle=is_available_in_cycle,
        display_image_url=display_image_url or product.image_url,
    )
    db.session.add(cp)
    _commit()
    logger.info("Product %s added to cycle %s at %s cents", product.id, cycle.id, price_in_cycle_cents)
    return cp


def update_cycle_product(cycle_product_id: int, values: Dict[str, Any]) -> CycleProduct:
    cp = fetch_cycle_product(cycle_product_id)
    _apply(cp, values)
    _commit()
    return cp


def delete_cycle_product(cycle_product_id: int) -> None:
    cp = fetch_cycle_product(cycle_product_id)
    db.session.delete(cp)
    _commit()


# --- Storefront ---

@dataclass
class DisplayableProduct:
    cycle_product_id: int
    cycle_id: int
    product_id: int
    name: str
    description: str
    price_cents: int
    image_url: str
    is_available_in_cycle: bool
    season_id: Optional[int] = None
    attributes: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_displayable(cp: CycleProduct) -> DisplayableProduct:
    product = cp.product
    return DisplayableProduct(
        cycle_product_id=cp.id,
        cycle_id=cp.cycle_id,
        product_id=cp.product_id,
        name=cp.product_name_snapshot,
        description=product.description if product else "",
        price_cents=cp.price_in_cycle_cents,
        image_url=cp.display_image_url or (product.image_url if product else None) or _placeholder_image(),
        is_available_in_cycle=cp.is_available_in_cycle,
        season_id=product.season_id if product else None,
        attributes=dict(product.attributes or {}) if product else {},
    )


def fetch_active_purchase_cycle_products() -> List[DisplayableProduct]:
    cycle = fetch_active_purchase_cycle()
    if not cycle:
        return []
    rows = (
        CycleProduct.query.filter_by(cycle_id=cycle.id, is_available_in_cycle=True)
        .order_by(CycleProduct.id.asc())
        .all()
    )
    return [to_displayable(cp) for cp in rows]


# --- Cart ---

def fetch_cart_items(user_id: str) -> List[CartItem]:
    return CartItem.query.filter_by(user_id=user_id).order_by(CartItem.id.asc()).all()


def _fetch_cart_item(user_id: str, cart_item_id: int) -> CartItem:
    item = CartItem.query.filter_by(id=cart_item_id, user_id=user_id).first()
    if not item:
        not_found("Cart item")
    return item


def _check_orderable(cp: CycleProduct) -> None:
    if not cp.cycle or not cp.cycle.is_active:
        conflict("This product's purchase cycle is closed", cycle_product_id=cp.id)
    if not cp.is_available_in_cycle:
        conflict("Product is unavailable in this cycle", cycle_product_id=cp.id)


def add_to_cart(user_id: str, cycle_product_id: int, quantity: int) -> CartItem:
    cp = fetch_cycle_product(cycle_product_id)
    _check_orderable(cp)
    max_qty = current_app.config.get("MAX_CART_QUANTITY", 99)

    item = CartItem.query.filter_by(user_id=user_id, cycle_product_id=cp.id).first()
    if item:
        item.quantity = min(item.quantity + quantity, max_qty)
    else:
        item = CartItem(user_id=user_id, cycle_product_id=cp.id, quantity=min(quantity, max_qty))
        db.session.add(item)
    _commit()
    return item


def update_cart_item_quantity(user_id: str, cart_item_id: int, quantity: int) -> CartItem:
    item = _fetch_cart_item(user_id, cart_item_id)
    item.quantity = quantity
    _commit()
    return item


def remove_from_cart(user_id: str, cart_item_id: int) -> None:
    item = _fetch_cart_item(user_id, cart_item_id)
    db.session.delete(item)
    _commit()


def clear_cart(user_id: str) -> int:
    removed = CartItem.query.filter_by(user_id=user_id).delete()
    _commit()
    return removed


# --- Orders ---

def process_checkout(user: Profile) -> Order:
    """Turn the user's cart into a Pending Payment order for the active cycle."""
    items = fetch_cart_items(user.id)
    if not items:
        conflict("Cart is empty")

    cycle = fetch_active_purchase_cycle()
    if not cycle:
        conflict("No purchase cycle is open")

    stale = [
        i.id
        for i in items
        if i.cycle_product.cycle_id != cycle.id or not i.cycle_product.is_available_in_cycle
    ]
    if stale:
        conflict("Some cart items are no longer available", cart_item_ids=stale)

    try:
        order = Order(
            user_id=user.id,
            customer_name_snapshot=user.display_name,
            customer_whatsapp_snapshot=user.whatsapp or None,
            cycle_id=cycle.id,
            order_status="Pending Payment",
            payment_status="Unpaid",
        )
        db.session.add(order)
        db.session.flush()  # assigns order.id
        order.order_number = format_order_number(order.id)

        total = 0
        for ci in items:
            cp = ci.cycle_product
            line_total = cp.price_in_cycle_cents * ci.quantity
            total += line_total
            db.session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=cp.product_id,
                    cycle_product_id=cp.id,
                    product_name=cp.product_name_snapshot,
                    quantity=ci.quantity,
                    price_at_purchase_cents=cp.price_in_cycle_cents,
                    line_item_total_cents=line_total,
                )
            )
        order.order_total_cents = total

        CartItem.query.filter_by(user_id=user.id).delete()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Checkout failed for user %s", user.id)
        raise StoreError("Could not create order") from exc

    logger.info("Order %s placed by %s (%s cents)", order.order_number, user.id, order.order_total_cents)
    return order


def fetch_user_orders(user_id: str) -> List[Order]:
    return Order.query.filter_by(user_id=user_id).order_by(Order.order_date.desc(), Order.id.desc()).all()


def fetch_user_order(user_id: str, order_id: int) -> Order:
    order = Order.query.filter_by(id=order_id, user_id=user_id).first()
    if not order:
        not_found("Order")
    return order


def fetch_admin_orders(cycle_id: Optional[int] = None, order_status: Optional[str] = None) -> List[Order]:
    q = Order.query
    if cycle_id is not None:
        q = q.filter_by(cycle_id=cycle_id)
    if order_status:
        q = q.filter_by(order_status=order_status)
    return q.order_by(Order.order_date.desc(), Order.id.desc()).all()


def fetch_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        not_found("Order")
    return order


def update_order_status(
    order_id: int,
    order_status: Optional[str] = None,
    payment_status: Optional[str] = None,
    admin_notes: Optional[str] = None,
) -> Order:
    if order_status is not None and order_status not in ORDER_STATUSES:
        validation_error("Unknown order status", allowed=list(ORDER_STATUSES))
    if payment_status is not None and payment_status not in PAYMENT_STATUSES:
        validation_error("Unknown payment status", allowed=list(PAYMENT_STATUSES))

    order = fetch_order(order_id)
    if order_status is not None:
        order.order_status = order_status
    if payment_status is not None:
        order.payment_status = payment_status
    if admin_notes is not None:
        order.admin_notes = admin_notes.strip() or None
    _commit()
    logger.info("Order %s now %s / %s", order.order_number, order.order_status, order.payment_status)
    return order


# --- Customers & dashboard ---

def fetch_admin_users(include_admins: bool = False) -> List[Profile]:
    q = Profile.query
    if not include_admins:
        q = q.filter(Profile.is_admin.is_(False))
    return q.order_by(Profile.created_at.desc()).all()


def fetch_active_cycle_metrics() -> Dict[str, Any]:
    cycle = fetch_active_purchase_cycle()
    if not cycle:
        return {"active_cycle": None, "pending_orders_count": 0, "total_sales_active_cycle_cents": 0}

    pending = Order.query.filter(
        Order.cycle_id == cycle.id,
        Order.order_status.in_(OPEN_ORDER_STATUSES),
    ).count()
    paid_total = (
        db.session.query(func.coalesce(func.sum(Order.order_total_cents), 0))
        .filter(Order.cycle_id == cycle.id, Order.payment_status == "Paid")
        .scalar()
    )
    return {
        "active_cycle": cycle,
        "pending_orders_count": pending,
        "total_sales_active_cycle_cents": int(paid_total or 0),
    }
