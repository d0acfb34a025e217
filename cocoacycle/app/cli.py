from __future__ import annotations

from datetime import date, datetime, timedelta

import click
from flask import Blueprint

from cocoacycle.app.backend import auth as auth_backend
from cocoacycle.app.extensions import db
from cocoacycle.app.models import AuthUser, CycleProduct, Product, Profile, PurchaseCycle, Season

cli_bp = Blueprint("cli", __name__)

SEED_PASSWORD = "Password123!"

SEED_PRODUCTS = [
    # name, description, attributes, season index, active price, previous price
    (
        "Barra 70% Cacau",
        "Chocolate amargo de origem única, notas de frutas vermelhas.",
        {"categoria": ["Barra"], "dietary": ["vegano", "sem lactose"], "peso": ["100g"], "cacau": ["70%"], "unidade": ["unidade"]},
        0,
        2990,
        2790,
    ),
    (
        "Bombom de Maracujá",
        "Bombom ao leite recheado com ganache de maracujá.",
        {"categoria": ["Bombom", "Recheado"], "peso": ["20g"], "cacau": ["Ao Leite"], "sabor": ["Maracujá"], "unidade": ["caixa"]},
        0,
        4500,
        None,
    ),
    (
        "Ovo de Páscoa Trufado",
        "Casca ao leite com trufa de avelã.",
        {"categoria": ["Ovo de Páscoa", "Especial"], "peso": ["400g"], "cacau": ["45%"], "unidade": ["unidade"]},
        1,
        13990,
        None,
    ),
    (
        "Drageado de Amêndoas",
        "Amêndoas torradas cobertas com chocolate 55%.",
        {"categoria": ["Drageado"], "dietary": ["sem glúten"], "peso": ["150g"], "cacau": ["55%"], "unidade": ["pacote"]},
        None,
        3200,
        3000,
    ),
]


def _ensure_account(email: str, display_name: str, is_admin: bool = False) -> Profile:
    auth_user = AuthUser.query.filter_by(email=email).first()
    if not auth_user:
        result = auth_backend.sign_up(email, SEED_PASSWORD, {"display_name": display_name, "whatsapp": "11999990000"})
        if not result.ok:
            raise click.ClickException(result.error)
        profile = result.user
    else:
        profile = db.session.get(Profile, auth_user.id)

    if is_admin and not profile.is_admin:
        profile.is_admin = True
        auth_user = db.session.get(AuthUser, profile.id)
        auth_user.user_metadata = {**(auth_user.user_metadata or {}), "is_admin": True}
        db.session.commit()
    return profile


@cli_bp.cli.command("seed")
def seed_data() -> None:
    """Seed minimal dev data.

    Safe to run multiple times; it will no-op if data exists.
    """
    _ensure_account("admin@example.com", "Admin", is_admin=True)
    _ensure_account("user@example.com", "Cliente Demo")

    if Season.query.count() == 0:
        year = date.today().year
        db.session.add_all([
            Season(name=f"Inverno {year}", start_date=date(year, 6, 1), end_date=date(year, 8, 31), is_active=True),
            Season(name=f"Páscoa {year}", start_date=date(year, 3, 1), end_date=date(year, 4, 30), is_active=False),
        ])
        db.session.commit()

    if Product.query.count() == 0 and PurchaseCycle.query.count() == 0:
        seasons = Season.query.order_by(Season.id.asc()).all()
        now = datetime.utcnow()
        previous = PurchaseCycle(
            name="Ciclo Anterior",
            description="Encomendas encerradas.",
            start_date=now - timedelta(days=45),
            end_date=now - timedelta(days=15),
            is_active=False,
        )
        active = PurchaseCycle(
            name="Ciclo de Inverno",
            description="Encomendas abertas até o fim do mês.",
            start_date=now - timedelta(days=7),
            end_date=now + timedelta(days=21),
            is_active=True,
        )
        db.session.add_all([previous, active])
        db.session.flush()

        for name, description, attributes, season_idx, price, previous_price in SEED_PRODUCTS:
            product = Product(
                name=name,
                description=description,
                attributes=attributes,
                season_id=seasons[season_idx].id if season_idx is not None and season_idx < len(seasons) else None,
            )
            db.session.add(product)
            db.session.flush()
            db.session.add(CycleProduct(cycle_id=active.id, product_id=product.id, product_name_snapshot=name, price_in_cycle_cents=price))
            if previous_price is not None:
                db.session.add(
                    CycleProduct(cycle_id=previous.id, product_id=product.id, product_name_snapshot=name, price_in_cycle_cents=previous_price)
                )
        db.session.commit()

    print(f"Seed complete. Logins: admin@example.com / user@example.com ({SEED_PASSWORD})")


@cli_bp.cli.command("make-admin")
@click.argument("email")
def make_admin(email: str) -> None:
    """Grant the admin role to an existing account."""
    auth_user = AuthUser.query.filter_by(email=email.strip().lower()).first()
    if not auth_user:
        raise click.ClickException(f"No account for {email}")
    profile = db.session.get(Profile, auth_user.id)
    if not profile:
        raise click.ClickException(f"No profile for {email}; sign in once first")
    profile.is_admin = True
    auth_user.user_metadata = {**(auth_user.user_metadata or {}), "is_admin": True}
    db.session.commit()
    print(f"{email} is now an admin")
