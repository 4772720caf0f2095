"""Currency conversion rules and forex rate fetching utilities.

The supported pair is fixed: ``USD`` is the base currency and ``RUB`` the
quote currency. Every rate handled by fintrack without an explicit
descriptor is quoted as *RUB per 1 USD* (for example ``100``), so
converting USD to RUB multiplies by the rate and RUB to USD divides by it.
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
import json
import logging
from pathlib import Path
from typing import Any

from decimal import Decimal

import requests

from fintrack.exceptions import InvalidInputError
from fintrack.schema import CURRENCY_RUB, CURRENCY_USD, SUPPORTED_CURRENCIES

logger = logging.getLogger(__name__)

BASE_CURRENCY = CURRENCY_USD
QUOTE_CURRENCY = CURRENCY_RUB

CACHE_VERSION = 1
DEFAULT_CACHE_TTL_HOURS = 1
DEFAULT_TIMEOUT_SECONDS = 5


def _check_currency(code: str, field_name: str) -> str:
    if code not in SUPPORTED_CURRENCIES:
        raise InvalidInputError(field_name, f"unsupported currency {code!r}")
    return code


def _check_rate(rate: Decimal, field_name: str = "rate") -> Decimal:
    if not isinstance(rate, Decimal):
        try:
            rate = Decimal(str(rate))
        except Exception as exc:
            raise InvalidInputError(field_name, "must be a decimal") from exc
    if not rate.is_finite() or rate <= 0:
        raise InvalidInputError(field_name, "must be greater than zero")
    return rate


@dataclass(frozen=True)
class ConversionDescriptor:
    """Typed conversion: ``amount_in_to = amount_in_from * multiplier``."""

    from_currency: str
    to_currency: str
    multiplier: Decimal

    def __post_init__(self) -> None:
        _check_currency(self.from_currency, "from_currency")
        _check_currency(self.to_currency, "to_currency")
        object.__setattr__(self, "multiplier", _check_rate(self.multiplier, "multiplier"))
        if self.from_currency == self.to_currency and self.multiplier != 1:
            raise InvalidInputError("multiplier", "must be 1 for an identity conversion")

    def apply(self, amount: Decimal) -> Decimal:
        return amount * self.multiplier

    def inverse(self) -> "ConversionDescriptor":
        return ConversionDescriptor(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
            multiplier=Decimal(1) / self.multiplier,
        )


def conversion_for(from_currency: str, to_currency: str, pair_rate: Decimal) -> ConversionDescriptor:
    """Build the descriptor between two supported currencies.

    ``pair_rate`` is quoted as quote units per base unit (RUB per USD).
    """
    _check_currency(from_currency, "from_currency")
    _check_currency(to_currency, "to_currency")
    pair_rate = _check_rate(pair_rate, "fallback_rate")
    if from_currency == to_currency:
        return ConversionDescriptor(from_currency, to_currency, Decimal(1))
    if from_currency == BASE_CURRENCY:
        return ConversionDescriptor(from_currency, to_currency, pair_rate)
    return ConversionDescriptor(from_currency, to_currency, Decimal(1) / pair_rate)


def convert(amount: Decimal, from_currency: str, to_currency: str, pair_rate: Decimal) -> Decimal:
    """Convert an amount between the supported currencies."""
    return conversion_for(from_currency, to_currency, pair_rate).apply(amount)


@dataclass(frozen=True)
class ForexConfig:
    """Configuration for forex rate fetching."""

    cache_ttl_hours: int = DEFAULT_CACHE_TTL_HOURS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


class ForexRateManager:
    """Look up the live USD/RUB rate, keeping the last answer in a JSON file.

    A cached rate younger than ``cache_ttl_hours`` is used without a request.
    When the API cannot be reached the cached rate is used whatever its age.
    """

    EXCHANGE_RATE_API_URL = "https://api.exchangerate-api.com/v4/latest"

    def __init__(self, config: dict[str, Any], cache_path: str | Path) -> None:
        self.config = ForexConfig(
            cache_ttl_hours=int(config.get("cache_ttl_hours", DEFAULT_CACHE_TTL_HOURS)),
            timeout_seconds=int(config.get("timeout", DEFAULT_TIMEOUT_SECONDS)),
        )
        self.cache_path = Path(cache_path)
        self._cache: dict[str, Any] = self._read_cache()

    def get_pair_rate(self) -> Decimal | None:
        """Return RUB per 1 USD, or None when neither the API nor the cache has it."""
        cached = self._cached_rate()
        if cached is not None and self._cache_is_fresh():
            return cached

        try:
            rate = self._pair_rate_from(self._fetch_rates())
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Forex rate fetch failed, using cached rate: %s", exc)
            rate = None
        if rate is None:
            return cached

        fetched_at = _utc_now()
        self._cache = {
            "metadata": {"version": CACHE_VERSION, "last_update": fetched_at},
            "timestamp": fetched_at,
            "base": BASE_CURRENCY,
            "rates": {QUOTE_CURRENCY: str(rate)},
        }
        self._write_cache()
        logger.debug("Fetched %s/%s rate %s", BASE_CURRENCY, QUOTE_CURRENCY, rate)
        return rate

    def _fetch_rates(self) -> dict[str, Any]:
        """Return the API's rate table quoted against the base currency."""
        url = f"{self.EXCHANGE_RATE_API_URL}/{BASE_CURRENCY}"
        response = requests.get(url, timeout=self.config.timeout_seconds)
        response.raise_for_status()
        rates = response.json().get("rates")
        return rates if isinstance(rates, dict) else {}

    @staticmethod
    def _pair_rate_from(rates: dict[str, Any]) -> Decimal | None:
        if rates.get(QUOTE_CURRENCY) is None:
            return None
        return _check_rate(Decimal(str(rates[QUOTE_CURRENCY])), "rate")

    def _cached_rate(self) -> Decimal | None:
        rates = self._cache.get("rates")
        if not isinstance(rates, dict):
            return None
        try:
            return self._pair_rate_from(rates)
        except ValueError:
            logger.warning("Ignoring invalid cached rate %r", rates.get(QUOTE_CURRENCY))
            return None

    def _cache_is_fresh(self) -> bool:
        try:
            cached_at = dt.datetime.fromisoformat(self._cache["timestamp"])
        except (KeyError, TypeError, ValueError):
            return False
        if cached_at.tzinfo is None:
            cached_at = cached_at.replace(tzinfo=dt.timezone.utc)
        age = dt.datetime.now(dt.timezone.utc) - cached_at
        return age <= dt.timedelta(hours=self.config.cache_ttl_hours)

    def _read_cache(self) -> dict[str, Any]:
        if not self.cache_path.exists():
            return {}
        try:
            with self.cache_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable forex cache %s: %s", self.cache_path, exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _write_cache(self) -> None:
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        with self.cache_path.open("w", encoding="utf-8") as handle:
            json.dump(self._cache, handle)


def _utc_now() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
