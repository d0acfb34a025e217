from __future__ import annotations

from flask import Blueprint, request

from cocoacycle.app.backend import store
from cocoacycle.app.common.errors import not_found
from cocoacycle.app.common.serializers import displayable_to_dict, season_to_dict
from cocoacycle.app.common.validation import parse_int
from cocoacycle.modules.catalog.filters import DEFAULT_SORT, SORT_OPTIONS, facet_values, filter_products, sort_products

bp = Blueprint("catalog", __name__)


@bp.get("/storefront")
def storefront():
    """GET /api/storefront - Header data for the open purchase cycle."""
    cycle = store.fetch_active_purchase_cycle()
    return {
        "title": store.fetch_active_purchase_cycle_title(),
        "description": cycle.description if cycle else None,
        "cycle_id": cycle.id if cycle else None,
        "is_open": cycle is not None,
        "seasons": [season_to_dict(s) for s in store.fetch_active_seasons()],
    }, 200


@bp.get("/products")
def list_products():
    """GET /api/products - Products of the active cycle.

    Query params:
      - q: matches name or description
      - category: one `categoria` value
      - attribute: dietary attribute (repeatable, all must match)
      - season_id
      - sort: name-asc|name-desc|price-asc|price-desc
    """
    season_id = request.args.get("season_id")
    sort = request.args.get("sort") or DEFAULT_SORT

    products = store.fetch_active_purchase_cycle_products()
    filtered = filter_products(
        products,
        search=request.args.get("q"),
        category=request.args.get("category") or None,
        attributes=request.args.getlist("attribute"),
        season_id=parse_int(season_id, "season_id") if season_id else None,
    )
    items = sort_products(filtered, sort)

    return {
        "items": [displayable_to_dict(p) for p in items],
        "facets": {
            "categories": facet_values(products, "categoria"),
            "dietary_attributes": facet_values(products, "dietary"),
        },
        "sort": sort if sort in SORT_OPTIONS else DEFAULT_SORT,
        "count": len(items),
    }, 200


@bp.get("/products/<int:cycle_product_id>")
def get_product(cycle_product_id: int):
    """GET /api/products/<id> - One product of the active cycle."""
    for p in store.fetch_active_purchase_cycle_products():
        if p.cycle_product_id == cycle_product_id:
            return displayable_to_dict(p), 200
    not_found("Product")
