"""Routes for the currency blueprint."""

from __future__ import annotations

import math
from typing import Any

from flask import current_app, jsonify, request

from dlsarena.errors import ValidationError

from . import bp
from .models import CURRENCIES
from .services import (
    convert,
    format_amount,
    get_rate_cache,
    is_supported,
    normalize_code,
)


@bp.route("/", methods=["GET"])
def list_currencies() -> Any:
    """List the supported display currencies."""
    return jsonify(
        [
            {"code": c.code, "symbol": c.symbol, "name": c.name, "decimals": c.decimals}
            for c in CURRENCIES
        ]
    )


@bp.route("/rates", methods=["GET"])
def get_rates() -> Any:
    """Return the current rate table quoted per unit of ``base``."""
    base = normalize_code(
        request.args.get("base") or current_app.config["EXCHANGE_RATE_BASE"]
    )
    if not is_supported(base):
        raise ValidationError(f"Unsupported currency: {base}.", field="base")
    cache = get_rate_cache()
    rates = cache.get_rates(base)
    return jsonify({"base": base, "live": cache.is_live(base), "rates": rates})


@bp.route("/convert", methods=["GET"])
def convert_amount() -> Any:
    """Convert an amount and format it in the target currency."""
    try:
        amount = float(request.args["amount"])
    except (KeyError, ValueError):
        raise ValidationError("A numeric amount is required.", field="amount")
    if not math.isfinite(amount):
        raise ValidationError("The amount must be a finite number.", field="amount")

    source = normalize_code(
        request.args.get("from") or current_app.config["CANONICAL_CURRENCY"]
    )
    target = normalize_code(request.args.get("to"))
    for field, code in (("from", source), ("to", target)):
        if not is_supported(code):
            raise ValidationError(f"Unsupported currency: {code or '(none)'}.", field=field)

    result = convert(amount, source, target)
    return jsonify(
        {
            "amount": amount,
            "from": source,
            "to": target,
            "result": result,
            "formatted": format_amount(result, target),
        }
    )
