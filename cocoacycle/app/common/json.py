from __future__ import annotations

from flask import current_app, jsonify

from cocoacycle.app.common.formatting import format_money


def ok(data=None, status=200):
    if data is None:
        return ("", status)
    return jsonify(data), status


def display_money(cents: int) -> str:
    return format_money(cents, current_app.config.get("CURRENCY_SYMBOL", "R$"))
