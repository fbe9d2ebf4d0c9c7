"""Exchange-rate table with remote refresh and a static fallback."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import requests

from dlsarena.core.constants import EXCHANGE_RATE_API_URL

from .models import CURRENCY_ALIASES, FALLBACK_BASE, FALLBACK_RATES, SUPPORTED_CODES


def _base_code(base: str) -> str:
    code = base.strip().upper()
    return CURRENCY_ALIASES.get(code, code)


def fallback_rates(base: str = FALLBACK_BASE) -> dict[str, float]:
    """Return the hardcoded table quoted per unit of ``base``."""
    base = _base_code(base)
    divisor = FALLBACK_RATES.get(base)
    if divisor is None:
        logging.warning(f"No fallback rate for base {base}; quoting per {FALLBACK_BASE}.")
        return dict(FALLBACK_RATES)
    return {code: rate / divisor for code, rate in FALLBACK_RATES.items()}


class ExchangeRateCache:
    """Caches live rate tables per base currency.

    A table is reused until ``ttl_seconds`` have passed since it was fetched.
    Fetch failures are never raised: callers get the fallback table and the
    next call tries the provider again. Each fetch is a single attempt.
    """

    def __init__(
        self,
        url_template: str = EXCHANGE_RATE_API_URL,
        ttl_seconds: float = 3600,
        timeout: float = 10,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.url_template = url_template
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self._session = session
        self._clock = clock
        self._entries: dict[str, tuple[float, dict[str, float]]] = {}
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Return the HTTP session, creating it on first use."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def get_rates(self, base: str = FALLBACK_BASE) -> dict[str, float]:
        """Return rates per unit of ``base``, live when possible."""
        base = _base_code(base)
        rates = self._fresh(base)
        if rates is not None:
            return rates

        # Only one thread fetches a given table; the others wait and reuse it.
        with self._lock:
            rates = self._fresh(base)
            if rates is not None:
                return rates
            return self._fetch_or_fallback(base)

    def refresh(self, base: str = FALLBACK_BASE) -> dict[str, float]:
        """Fetch ``base`` from the provider, ignoring any cached table."""
        base = _base_code(base)
        with self._lock:
            return self._fetch_or_fallback(base)

    def invalidate(self, base: str | None = None) -> None:
        """Drop one cached table, or all of them."""
        with self._lock:
            if base is None:
                self._entries.clear()
            else:
                self._entries.pop(_base_code(base), None)

    def is_live(self, base: str = FALLBACK_BASE) -> bool:
        """Return True if a fresh provider table is cached for ``base``."""
        return self._fresh(_base_code(base)) is not None

    def _fresh(self, base: str) -> dict[str, float] | None:
        entry = self._entries.get(base)
        if entry is None:
            return None
        fetched_at, rates = entry
        if self._clock() - fetched_at >= self.ttl_seconds:
            return None
        return dict(rates)

    def _fetch_or_fallback(self, base: str) -> dict[str, float]:
        try:
            rates = self._fetch(base)
        except (requests.RequestException, ValueError, TypeError) as e:
            logging.warning(f"Exchange rate fetch for {base} failed, using fallback: {e}")
            return fallback_rates(base)
        self._entries[base] = (self._clock(), rates)
        return dict(rates)

    def _fetch(self, base: str) -> dict[str, float]:
        url = self.url_template.format(base=base)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        payload: Any = response.json()

        if not isinstance(payload, dict) or payload.get("result") != "success":
            raise ValueError(f"Provider did not report success for {base}.")
        raw_rates = payload.get("rates")
        if not isinstance(raw_rates, dict):
            raise ValueError("Provider payload has no rates table.")

        rates: dict[str, float] = {}
        for code, value in raw_rates.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            if value > 0:
                rates[str(code).upper()] = float(value)

        missing = SUPPORTED_CODES - rates.keys()
        if missing:
            raise ValueError(f"Provider omitted rates for {', '.join(sorted(missing))}.")
        return rates
