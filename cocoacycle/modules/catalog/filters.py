"""In-memory filtering and sorting of the storefront list."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from cocoacycle.app.backend.store import DisplayableProduct

SORT_OPTIONS = ("name-asc", "name-desc", "price-asc", "price-desc")
DEFAULT_SORT = "name-asc"


def _values(product: DisplayableProduct, key: str) -> List[str]:
    return list(product.attributes.get(key) or [])


def facet_values(products: Iterable[DisplayableProduct], key: str) -> List[str]:
    seen = set()
    for p in products:
        seen.update(_values(p, key))
    return sorted(seen, key=str.lower)


def filter_products(
    products: Sequence[DisplayableProduct],
    search: Optional[str] = None,
    category: Optional[str] = None,
    attributes: Sequence[str] = (),
    season_id: Optional[int] = None,
) -> List[DisplayableProduct]:
    """Every given criterion must match; dietary attributes are AND-ed."""
    needle = (search or "").strip().lower()
    result = []
    for p in products:
        if needle and needle not in p.name.lower() and needle not in (p.description or "").lower():
            continue
        if category and category not in _values(p, "categoria"):
            continue
        if attributes and not set(attributes).issubset(_values(p, "dietary")):
            continue
        if season_id is not None and p.season_id != season_id:
            continue
        result.append(p)
    return result


def sort_products(products: Sequence[DisplayableProduct], sort: Optional[str] = None) -> List[DisplayableProduct]:
    sort = sort if sort in SORT_OPTIONS else DEFAULT_SORT
    field, direction = sort.split("-")
    reverse = direction == "desc"
    if field == "price":
        return sorted(products, key=lambda p: (p.price_cents, p.name.lower()), reverse=reverse)
    return sorted(products, key=lambda p: p.name.lower(), reverse=reverse)
