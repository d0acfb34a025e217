"""Display helpers shared by the storefront and the admin console."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

ORDER_STATUS_LABELS = {
    "Pending Payment": "Pagamento Pendente",
    "Payment Confirmed": "Pagamento Confirmado",
    "Preparing": "Em Preparação",
    "Pronto para Retirada": "Pronto para Retirada",
    "Completed": "Concluído",
    "Cancelled": "Cancelado",
}

ORDER_STATUS_BADGES = {
    "Pending Payment": "secondary",
    "Payment Confirmed": "default",
    "Preparing": "outline",
    "Pronto para Retirada": "outline",
    "Completed": "default",
    "Cancelled": "destructive",
}

PAYMENT_STATUS_LABELS = {
    "Unpaid": "Não Pago",
    "Paid": "Pago",
    "Refunded": "Reembolsado",
}

PAYMENT_STATUS_BADGES = {
    "Unpaid": "secondary",
    "Paid": "default",
    "Refunded": "destructive",
}

ADDRESS_PARTS = (
    "address_street",
    "address_number",
    "address_complement",
    "address_neighborhood",
    "address_city",
    "address_state",
    "address_zip",
)


def format_money(cents: int, symbol: str = "R$") -> str:
    """13990 -> 'R$ 139,90'; thousands use '.' (pt-BR)."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(int(cents)), 100)
    grouped = f"{whole:,}".replace(",", ".")
    return f"{sign}{symbol} {grouped},{frac:02d}"


def format_datetime_br(value: Optional[datetime]) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%d/%m/%Y %H:%M")


def format_date_br(value: Optional[date]) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%d/%m/%Y")


def isoformat(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def format_address(profile: Any) -> str:
    parts = [getattr(profile, key, None) for key in ADDRESS_PARTS]
    joined = ", ".join(str(p) for p in parts if p)
    return joined or "N/A"


def order_status_label(status: str) -> str:
    return ORDER_STATUS_LABELS.get(status, status)


def payment_status_label(status: str) -> str:
    return PAYMENT_STATUS_LABELS.get(status, status)


def format_order_number(order_id: int) -> str:
    return f"ORD-{order_id:05d}"
