from __future__ import annotations

from datetime import datetime
from sqlalchemy import UniqueConstraint, Index

from cocoacycle.app.extensions import db


ORDER_STATUSES = (
    "Pending Payment",
    "Payment Confirmed",
    "Preparing",
    "Pronto para Retirada",
    "Completed",
    "Cancelled",
)
PAYMENT_STATUSES = ("Unpaid", "Paid", "Refunded")

# Orders still waiting on the shop (dashboard "pending" counter).
OPEN_ORDER_STATUSES = ("Pending Payment", "Preparing")


class AuthUser(db.Model):
    """Credential record owned by the authentication provider."""

    __tablename__ = "auth_users"

    id = db.Column(db.String(36), primary_key=True)  # UUID
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    user_metadata = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.String(36), db.ForeignKey("auth_users.id", ondelete="CASCADE"), primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    display_name = db.Column(db.String(120), nullable=False)
    whatsapp = db.Column(db.String(20), nullable=False, default="")
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    address_street = db.Column(db.String(255), nullable=True)
    address_number = db.Column(db.String(20), nullable=True)
    address_complement = db.Column(db.String(120), nullable=True)
    address_neighborhood = db.Column(db.String(120), nullable=True)
    address_city = db.Column(db.String(120), nullable=True)
    address_state = db.Column(db.String(2), nullable=True)  # UF, e.g. SP
    address_zip = db.Column(db.String(9), nullable=True)  # CEP

    cart_items = db.relationship("CartItem", backref="user", lazy=True, cascade="all, delete-orphan")
    orders = db.relationship("Order", backref="user", lazy=True)


class Season(db.Model):
    __tablename__ = "seasons"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    products = db.relationship("Product", backref="season", lazy=True)


class Product(db.Model):
    """Master catalog entry. Prices live on CycleProduct."""

    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.String(1024), nullable=True)
    attributes = db.Column(db.JSON, nullable=False, default=dict)  # {"categoria": ["Barra"], "peso": ["100g"]}
    season_id = db.Column(db.Integer, db.ForeignKey("seasons.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    cycle_products = db.relationship("CycleProduct", backref="product", lazy=True, cascade="all, delete-orphan")


class PurchaseCycle(db.Model):
    __tablename__ = "purchase_cycles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    cycle_products = db.relationship("CycleProduct", backref="cycle", lazy=True, cascade="all, delete-orphan")


class CycleProduct(db.Model):
    """Per-cycle offering of a master product (price, availability, display snapshot)."""

    __tablename__ = "cycle_products"

    id = db.Column(db.Integer, primary_key=True)
    cycle_id = db.Column(db.Integer, db.ForeignKey("purchase_cycles.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name_snapshot = db.Column(db.String(255), nullable=False)
    price_in_cycle_cents = db.Column(db.Integer, nullable=False, default=0)
    is_available_in_cycle = db.Column(db.Boolean, nullable=False, default=True)
    display_image_url = db.Column(db.String(1024), nullable=True)

    cart_items = db.relationship("CartItem", backref="cycle_product", lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("cycle_id", "product_id", name="uq_cycle_products_cycle_product"),
    )


class CartItem(db.Model):
    __tablename__ = "cart_items"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    cycle_product_id = db.Column(db.Integer, db.ForeignKey("cycle_products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "cycle_product_id", name="uq_cart_items_user_cycle_product"),
    )


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(20), nullable=True, unique=True)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    customer_name_snapshot = db.Column(db.String(120), nullable=False)
    customer_whatsapp_snapshot = db.Column(db.String(20), nullable=True)
    cycle_id = db.Column(db.Integer, db.ForeignKey("purchase_cycles.id"), nullable=True, index=True)

    order_total_cents = db.Column(db.Integer, nullable=False, default=0)
    order_status = db.Column(db.String(30), nullable=False, default="Pending Payment")
    payment_status = db.Column(db.String(20), nullable=False, default="Unpaid")
    order_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    admin_notes = db.Column(db.Text, nullable=True)

    cycle = db.relationship("PurchaseCycle", lazy="joined")
    items = db.relationship("OrderItem", backref="order", lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_orders_cycle_status", "cycle_id", "order_status"),
    )


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    # Plain references: order history outlives catalog edits and deletions.
    product_id = db.Column(db.Integer, nullable=False)
    cycle_product_id = db.Column(db.Integer, nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_purchase_cents = db.Column(db.Integer, nullable=False)
    line_item_total_cents = db.Column(db.Integer, nullable=False)
