from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from flask import request

from cocoacycle.app.common.errors import abort_json, validation_error

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]{2,}$")
UF_REGEX = re.compile(r"^[A-Z]{2}$")
CEP_REGEX = re.compile(r"^\d{5}-?\d{3}$")
WHATSAPP_REGEX = re.compile(r"^\d{10,13}$")

# Admin product form vocabulary
CATEGORIA_OPTIONS = ["Barra", "Tablete", "Pastilhas", "Granel", "Gotas", "Recheado", "Drageado", "Bombom", "Ovo de Páscoa", "Especial"]
DIETARY_OPTIONS = ["vegano", "sem glúten", "sem lactose", "KOSHER", "ZERO AÇÚCAR", "Orgânico"]
PESO_OPTIONS = [
    "N/A", "10g", "20g", "25g", "30g", "40g", "50g", "70g", "80g", "90g", "100g", "120g", "130g",
    "150g", "170g", "180g", "200g", "250g", "300g", "400g", "500g", "1kg",
]
CACAU_OPTIONS = [
    "N/A", "Branco", "Ao Leite", "30%", "35%", "40%", "45%", "50%", "55%", "60%", "65%", "70%",
    "75%", "80%", "85%", "90%", "99%", "100%",
]
UNIDADE_OPTIONS = ["unidade", "caixa", "pacote", "display", "kg", "kit"]

# Largest price a cycle product accepts, in cents (R$ 1.000.000,00).
MAX_PRICE_CENTS = 100_000_000

MULTI_VALUED_ATTRIBUTES = {"categoria": CATEGORIA_OPTIONS, "dietary": DIETARY_OPTIONS}
SINGLE_VALUED_ATTRIBUTES = {"peso": PESO_OPTIONS, "cacau": CACAU_OPTIONS, "unidade": UNIDADE_OPTIONS}
FREE_TEXT_ATTRIBUTES = ("sabor",)

PROFILE_FIELDS = (
    "display_name",
    "whatsapp",
    "address_street",
    "address_number",
    "address_complement",
    "address_neighborhood",
    "address_city",
    "address_state",
    "address_zip",
)


def get_json() -> Dict[str, Any]:
    if not request.is_json:
        abort_json(400, "invalid_json", "Request must be application/json")
    data = request.get_json(silent=True)
    if data is None or not isinstance(data, dict):
        abort_json(400, "invalid_json", "Malformed JSON body")
    return data


def require_fields(data: Dict[str, Any], fields: Iterable[str]) -> None:
    missing = [f for f in fields if f not in data]
    if missing:
        abort_json(400, "validation_error", "Missing required fields", {"missing": missing})


# --- Scalars ---

def parse_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no", "off", ""):
        return False
    if isinstance(value, int):
        return bool(value)
    validation_error(f"{field} must be a boolean", field=field)


def parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        validation_error(f"{field} must be an integer", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        validation_error(f"{field} must be an integer", field=field)


def parse_price_cents(value: Any, field: str = "price") -> int:
    """Accept 139.90, "139.90" or "139,90" (BRL) and return cents."""
    if isinstance(value, bool) or value is None:
        validation_error(f"{field} must be a number", field=field)
    raw = str(value).strip().replace("R$", "").strip()
    if "," in raw:
        raw = raw.replace(".", "").replace(",", ".")
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        validation_error(f"{field} must be a number", field=field)
    if not amount.is_finite():
        validation_error(f"{field} must be a number", field=field)
    if amount < 0:
        validation_error("Price cannot be negative", field=field)
    try:
        cents = int((amount * 100).quantize(Decimal("1")))
    except InvalidOperation:
        validation_error("Price is too large", field=field)
    if cents > MAX_PRICE_CENTS:
        validation_error("Price is too large", field=field, max_cents=MAX_PRICE_CENTS)
    return cents


def parse_iso_datetime(value: Any, field: str) -> datetime:
    """Parse an ISO 8601 timestamp into a naive UTC datetime."""
    if not isinstance(value, str) or not value.strip():
        validation_error(f"{field} is required", field=field)
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        validation_error(f"{field} must be an ISO 8601 date/time", field=field)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_iso_date(value: Any, field: str) -> date:
    if isinstance(value, str) and "T" in value:
        return parse_iso_datetime(value, field).date()
    if not isinstance(value, str) or not value.strip():
        validation_error(f"{field} is required", field=field)
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        validation_error(f"{field} must be an ISO 8601 date", field=field)


def clamp_quantity(value: Any, max_quantity: int) -> int:
    """Cart quantity inputs snap into 1..max instead of failing."""
    if isinstance(value, bool):
        return 1
    try:
        qty = Decimal(str(value).strip())
    except InvalidOperation:
        return 1
    if not qty.is_finite():
        return 1
    # 5.7 and "5.7" both truncate to 5
    return int(max(Decimal(1), min(qty, Decimal(max_quantity))))


def parse_quantity(value: Any, max_quantity: int) -> int:
    qty = parse_int(value, "quantity")
    if qty < 1 or qty > max_quantity:
        validation_error(f"Quantity must be between 1 and {max_quantity}", field="quantity")
    return qty


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return str(value).strip() or None


# --- Period forms (purchase cycles, seasons) ---

def _validate_period(data: Dict[str, Any], current: Any, parse, partial: bool, label: str) -> Dict[str, Any]:
    values: Dict[str, Any] = {}

    if not partial or "name" in data:
        name = str(data.get("name") or "").strip()
        if not name:
            validation_error(f"{label} name is required", field="name")
        values["name"] = name

    if not partial and ("start_date" not in data or "end_date" not in data):
        validation_error("Start and end dates are required", missing=[f for f in ("start_date", "end_date") if f not in data])
    if "start_date" in data:
        values["start_date"] = parse(data["start_date"], "start_date")
    if "end_date" in data:
        values["end_date"] = parse(data["end_date"], "end_date")

    start = values.get("start_date", getattr(current, "start_date", None))
    end = values.get("end_date", getattr(current, "end_date", None))
    if start is not None and end is not None and start >= end:
        validation_error("Start date must be before end date", field="start_date")

    if "is_active" in data:
        values["is_active"] = parse_bool(data["is_active"], "is_active")
    elif not partial:
        values["is_active"] = False

    return values


def validate_cycle_payload(data: Dict[str, Any], current: Any = None, partial: bool = False) -> Dict[str, Any]:
    values = _validate_period(data, current, parse_iso_datetime, partial, "Cycle")
    if not partial or "description" in data:
        values["description"] = _optional_text(data, "description")
    return values


def validate_season_payload(data: Dict[str, Any], current: Any = None, partial: bool = False) -> Dict[str, Any]:
    return _validate_period(data, current, parse_iso_date, partial, "Season")


# --- Product form ---

def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return list(value)
    validation_error("Attribute values must be strings or lists of strings")


def build_product_attributes(raw: Any) -> Dict[str, list]:
    """Normalise an attributes mapping against the admin vocabulary.

    Multi-valued keys keep every selected option, single-valued keys keep one
    value, "N/A" and blanks are dropped, unknown options are rejected.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        validation_error("attributes must be an object")

    unknown = sorted(set(raw) - set(MULTI_VALUED_ATTRIBUTES) - set(SINGLE_VALUED_ATTRIBUTES) - set(FREE_TEXT_ATTRIBUTES))
    if unknown:
        validation_error("Unknown product attributes", unknown=unknown)

    attributes: Dict[str, list] = {}

    for key, options in MULTI_VALUED_ATTRIBUTES.items():
        selected = []
        for v in _as_list(raw.get(key)):
            v = str(v).strip()
            if not v:
                continue
            if v not in options:
                validation_error(f"Invalid option for {key}", field=key, value=v)
            if v not in selected:
                selected.append(v)
        if selected:
            attributes[key] = selected

    for key, options in SINGLE_VALUED_ATTRIBUTES.items():
        values = [str(v).strip() for v in _as_list(raw.get(key)) if str(v).strip()]
        if len(values) > 1:
            validation_error(f"{key} takes a single value", field=key)
        if not values or values[0] == "N/A":
            continue
        if values[0] not in options:
            validation_error(f"Invalid option for {key}", field=key, value=values[0])
        attributes[key] = values

    for key in FREE_TEXT_ATTRIBUTES:
        values = [str(v).strip() for v in _as_list(raw.get(key)) if str(v).strip()]
        if values:
            attributes[key] = values[:1]

    return attributes


def validate_product_payload(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    values: Dict[str, Any] = {}

    for field, label in (("name", "Product name"), ("description", "Product description")):
        if not partial or field in data:
            text = str(data.get(field) or "").strip()
            if not text:
                validation_error(f"{label} is required", field=field)
            values[field] = text

    if not partial or "image_url" in data:
        values["image_url"] = _optional_text(data, "image_url")

    if not partial or "attributes" in data:
        values["attributes"] = build_product_attributes(data.get("attributes"))

    if "season_id" in data:
        values["season_id"] = None if data["season_id"] in (None, "") else parse_int(data["season_id"], "season_id")

    return values


# --- Accounts ---

def validate_email(email: Any) -> str:
    email = str(email or "").strip().lower()
    if not EMAIL_REGEX.match(email):
        validation_error("Invalid email format", field="email")
    return email


def validate_profile_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Profile/address form. Only keys present in `data` are returned."""
    values: Dict[str, Any] = {}
    for key in PROFILE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        values[key] = "" if value is None else str(value).strip()

    if "display_name" in values and not values["display_name"]:
        validation_error("Display name is required", field="display_name")

    whatsapp = values.get("whatsapp")
    if whatsapp:
        digits = re.sub(r"\D", "", whatsapp)
        if not WHATSAPP_REGEX.match(digits):
            validation_error("WhatsApp must have 10 to 13 digits", field="whatsapp")
        values["whatsapp"] = digits

    state = values.get("address_state")
    if state:
        state = state.upper()
        if not UF_REGEX.match(state):
            validation_error("State must be a two-letter UF", field="address_state")
        values["address_state"] = state

    zip_code = values.get("address_zip")
    if zip_code:
        if not CEP_REGEX.match(zip_code):
            validation_error("CEP must look like 01000-000", field="address_zip")
        digits = zip_code.replace("-", "")
        values["address_zip"] = f"{digits[:5]}-{digits[5:]}"

    # Empty address parts are stored as NULL; whatsapp stays a string.
    for key in PROFILE_FIELDS[2:]:
        if key in values and not values[key]:
            values[key] = None

    return values
