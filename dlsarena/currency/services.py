"""Currency conversion and display formatting."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from flask import current_app, has_app_context

from .models import (
    CURRENCIES,
    CURRENCIES_BY_CODE,
    CURRENCY_ALIASES,
    FALLBACK_BASE,
    FALLBACK_RATES,
    Currency,
)

if TYPE_CHECKING:
    from .rates import ExchangeRateCache

Number = int | float | Decimal

# fr-FR: narrow no-break space between thousands, comma before decimals.
_FR_SEPARATORS = str.maketrans({",": "\u202f", ".": ","})


def normalize_code(code: str | None) -> str:
    """Upper-case a currency code and map legacy aliases to the ISO code."""
    code = (code or "").strip().upper()
    return CURRENCY_ALIASES.get(code, code)


def is_supported(code: str | None) -> bool:
    """Return True if the code (or its alias) is a supported display currency."""
    return normalize_code(code) in CURRENCIES_BY_CODE


def currency_info(code: str | None) -> Currency:
    """Return display data for a code, defaulting to the first currency."""
    return CURRENCIES_BY_CODE.get(normalize_code(code), CURRENCIES[0])


def get_rate_cache() -> ExchangeRateCache | None:
    """Return the current app's exchange-rate cache, if there is one."""
    if not has_app_context():
        return None
    return current_app.extensions.get("exchange_rates")


def _convert_with(
    amount: Number, source: str, target: str, rates: Mapping[str, float]
) -> Number | None:
    rate_from = rates.get(source)
    rate_to = rates.get(target)
    if not rate_from or not rate_to:
        return None
    if isinstance(amount, Decimal):
        return amount / Decimal(str(rate_from)) * Decimal(str(rate_to))
    amount_in_base = amount / rate_from
    return amount_in_base * rate_to


def convert(
    amount: Number,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, float] | None = None,
    cache: ExchangeRateCache | None = None,
) -> Number:
    """Convert an amount using live rates, falling back to the fixed table.

    ``rates`` may be passed directly; otherwise they come from ``cache`` or
    the app's cache. This never raises: when no table knows both currencies
    the amount is returned unchanged.
    """
    source = normalize_code(from_currency)
    target = normalize_code(to_currency)
    if source == target:
        return amount

    if rates is None:
        cache = cache or get_rate_cache()
        rates = cache.get_rates(FALLBACK_BASE) if cache else FALLBACK_RATES

    converted = _convert_with(amount, source, target, rates)
    if converted is None and rates is not FALLBACK_RATES:
        logging.warning(f"Live rates missing {source} or {target}; using fallback table.")
        converted = _convert_with(amount, source, target, FALLBACK_RATES)
    if converted is None:
        logging.warning(f"Cannot convert {source} to {target}; amount left unchanged.")
        return amount
    return converted


def convert_sync(amount: Number, from_currency: str, to_currency: str) -> Number:
    """Convert with the fixed fallback table only. Performs no I/O."""
    return convert(amount, from_currency, to_currency, rates=FALLBACK_RATES)


def format_amount(amount: Number, currency: str | None) -> str:
    """Format an amount for display, e.g. ``1 000 FCFA`` or ``10,50 €``."""
    info = currency_info(currency)
    code = normalize_code(currency)
    decimals = CURRENCIES_BY_CODE[code].decimals if code in CURRENCIES_BY_CODE else 0

    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        value = Decimal(0)
    if not value.is_finite():
        logging.warning(f"Cannot format non-finite amount {amount} in {code or '(none)'}.")
        return f"{amount} {info.symbol}"
    quantum = Decimal(1).scaleb(-decimals)
    try:
        value = value.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logging.warning(f"Amount {amount} exceeds display precision; rounding on format.")
    if value == 0:
        value = abs(value)

    number = f"{value:,.{decimals}f}".translate(_FR_SEPARATORS)
    return f"{number} {info.symbol}"


def display_amount(amount: Number, preferred_currency: str | None, canonical: str) -> str:
    """Format a canonical amount in the user's preferred currency."""
    target = normalize_code(preferred_currency) or canonical
    if target not in CURRENCIES_BY_CODE:
        target = canonical
    return format_amount(convert_sync(amount, canonical, target), target)
