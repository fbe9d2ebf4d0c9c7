"""Currency reference data."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class Currency:
    """A supported display currency."""

    code: str
    symbol: str
    name: str
    decimals: int = 0


# XOF comes first: it is the display default for unknown codes.
CURRENCIES: tuple[Currency, ...] = (
    Currency("XOF", "FCFA", "Franc CFA BCEAO"),
    Currency("EUR", "€", "Euro", decimals=2),
    Currency("USD", "$", "US Dollar", decimals=2),
    Currency("MAD", "DH", "Moroccan Dirham"),
    Currency("NGN", "₦", "Nigerian Naira"),
    Currency("GHS", "GH₵", "Ghanaian Cedi"),
    Currency("ZAR", "R", "South African Rand"),
)

CURRENCIES_BY_CODE = MappingProxyType({c.code: c for c in CURRENCIES})
SUPPORTED_CODES = frozenset(CURRENCIES_BY_CODE)

# Legacy display labels stored on older user profiles.
CURRENCY_ALIASES = MappingProxyType({"FCFA": "XOF"})

# Units per 1 EUR. XOF is pegged to the euro.
FALLBACK_RATES = MappingProxyType(
    {
        "XOF": 655.957,
        "EUR": 1.0,
        "USD": 1.09,
        "MAD": 10.85,
        "NGN": 1655.47,
        "GHS": 15.21,
        "ZAR": 20.35,
    }
)
FALLBACK_BASE = "EUR"
