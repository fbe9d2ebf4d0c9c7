"""Currency blueprint."""

from flask import Blueprint

bp = Blueprint("currency", __name__, url_prefix="/currency")

from . import routes  # noqa: E402, F401
from .models import CURRENCIES, Currency  # noqa: E402
from .rates import ExchangeRateCache  # noqa: E402
from .services import (  # noqa: E402
    convert,
    convert_sync,
    format_amount,
    normalize_code,
)

__all__ = [
    "CURRENCIES",
    "Currency",
    "ExchangeRateCache",
    "convert",
    "convert_sync",
    "format_amount",
    "normalize_code",
    "routes",
]
