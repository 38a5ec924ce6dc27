"""
rates.py — Exchange rate store

================================================================================
DESIGN PRINCIPLES
================================================================================

1. RATES ARE TEXT
   A rate is kept as the exact decimal string the caller gave ("0.92",
   "43500.00"). It only becomes an integer at conversion time
   (see converter.py). Floats are stored through their shortest repr.

2. LAST VALUE WINS
   One entry per ordered (from, to) pair. Setting a pair again replaces it.
   There is no history.

3. IDENTITY IS SYNTHESIZED
   get_rate("USD", "USD") always answers rate "1", source "(identity)".
   A (X, X) pair is never stored.

4. INVERSES ARE BEST EFFORT
   set_rate() creates the reverse pair as 1/rate (15 significant digits),
   labelled "(inverse)", unless a reverse pair already exists. An explicit
   reverse rate always wins and can be set at any time.

5. SERIALIZED ACCESS
   All reads and writes go through one lock, so a service can be shared by
   threads that update rates while others convert.

================================================================================
USAGE
================================================================================

    rates = ExchangeRateService()
    rates.set_rate("USD", "EUR", "0.92", source="ECB")
    rates.get_rate("EUR", "USD").rate        # "1.08695652173913"

    pair = rates.get_rate_pair("USD", "EUR")
    pair.discrepancy                         # Decimal("4E-16")

    rates.load_rates({"USD:GBP": "0.79", "GBP:USD": "1.27"}, source="daily")

================================================================================
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Context, Decimal
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .rounding import decimal_parts, to_decimal

logger = logging.getLogger(__name__)

# Significant digits of a synthesized inverse rate
INVERSE_PRECISION = 15

RateValue = Union[str, int, float, Decimal]


@dataclass(frozen=True)
class ExchangeRate:
    """
    One stored rate: 1 unit of from_currency = rate units of to_currency.
    """
    from_currency: str
    to_currency: str
    rate: str
    timestamp: datetime
    source: Optional[str] = None

    def as_decimal(self) -> Decimal:
        """The rate as an exact Decimal."""
        return Decimal(self.rate)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_currency,
            "to": self.to_currency,
            "rate": self.rate,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


@dataclass(frozen=True)
class RatePair:
    """
    Forward and reverse rate between two currencies.

    discrepancy = |1 - forward * reverse|, computed exactly. Zero means the
    two rates are perfect inverses.
    """
    forward: ExchangeRate
    reverse: ExchangeRate
    discrepancy: Decimal


def _rate_text(rate: RateValue) -> str:
    """Validate a rate and return the text to store."""
    try:
        value = to_decimal(rate)
    except (TypeError, ValueError):
        raise ValueError(f"Rate must be a finite decimal number, got: {rate!r}") from None
    if value <= 0:
        raise ValueError(f"Rate must be positive, got: {rate!r}")

    if isinstance(rate, str):
        return rate.strip()
    return format(value, "f")


def _parse_pair_key(key: str) -> Tuple[str, str]:
    parts = key.split(":") if isinstance(key, str) else []
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Rate key must look like 'FROM:TO', got: {key!r}")
    return parts[0], parts[1]


class ExchangeRateService:
    """
    Central store of exchange rates between currency codes.

    The store does not look currencies up in the registry: it only maps
    ordered code pairs to rates. MoneyConverter checks currencies when it
    converts.
    """

    def __init__(self) -> None:
        self._rates: Dict[Tuple[str, str], ExchangeRate] = {}
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def set_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate: RateValue,
        source: Optional[str] = None,
        auto_inverse: bool = True,
    ) -> None:
        """
        Store a rate, replacing any previous rate for the same pair.

        Args:
            from_currency: source currency code
            to_currency: target currency code
            rate: 1 unit of from_currency = rate units of to_currency
            source: optional label for audit trails ("ECB", "Coinbase")
            auto_inverse: also store 1/rate for (to, from) if that pair is
                not set yet

        Raises:
            ValueError: if rate is not a positive finite number, or if both
                currencies are the same
        """
        if from_currency == to_currency:
            raise ValueError(
                f"Cannot set a rate from {from_currency} to itself: identity is implicit"
            )
        text = _rate_text(rate)
        now = datetime.now(timezone.utc)

        with self._lock:
            self._rates[(from_currency, to_currency)] = ExchangeRate(
                from_currency=from_currency,
                to_currency=to_currency,
                rate=text,
                timestamp=now,
                source=source,
            )
            logger.debug(
                "Set rate %s -> %s = %s (source=%s)", from_currency, to_currency, text, source
            )

            if auto_inverse and (to_currency, from_currency) not in self._rates:
                inverse = Context(prec=INVERSE_PRECISION).divide(Decimal(1), Decimal(text))
                self._rates[(to_currency, from_currency)] = ExchangeRate(
                    from_currency=to_currency,
                    to_currency=from_currency,
                    rate=format(inverse, "f"),
                    timestamp=now,
                    source=f"{source} (inverse)" if source else "(inverse)",
                )
                logger.debug(
                    "Synthesized inverse rate %s -> %s = %s",
                    to_currency, from_currency, format(inverse, "f"),
                )

    def remove_rate(self, from_currency: str, to_currency: str) -> bool:
        """Remove a stored rate. Returns False if there was none."""
        with self._lock:
            removed = self._rates.pop((from_currency, to_currency), None) is not None
        if removed:
            logger.debug("Removed rate %s -> %s", from_currency, to_currency)
        return removed

    def clear(self) -> None:
        """Remove every stored rate."""
        with self._lock:
            self._rates.clear()

    def load_rates(self, rates: Mapping[str, RateValue], source: Optional[str] = None) -> None:
        """
        Bulk load rates from a {"FROM:TO": rate} mapping.

        Inverses are NOT synthesized, so a full table can be loaded without
        inferring pairs it does not contain. The whole mapping is validated
        before anything is stored.

        Example:
            service.load_rates({"USD:EUR": 0.92, "USD:GBP": "0.79"}, "daily-update")
        """
        entries: List[Tuple[str, str, RateValue]] = []
        for key, rate in rates.items():
            from_currency, to_currency = _parse_pair_key(key)
            if from_currency == to_currency:
                raise ValueError(f"Rate key {key!r} maps a currency to itself")
            _rate_text(rate)
            entries.append((from_currency, to_currency, rate))

        with self._lock:
            for from_currency, to_currency, rate in entries:
                self.set_rate(from_currency, to_currency, rate, source, auto_inverse=False)
        logger.debug("Loaded %d rates (source=%s)", len(entries), source)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        """
        The rate from one currency to another, or None if not set.

        Same currency always returns the identity rate "1".
        """
        if from_currency == to_currency:
            return ExchangeRate(
                from_currency=from_currency,
                to_currency=to_currency,
                rate="1",
                timestamp=datetime.now(timezone.utc),
                source="(identity)",
            )
        with self._lock:
            return self._rates.get((from_currency, to_currency))

    def has_rate(self, from_currency: str, to_currency: str) -> bool:
        if from_currency == to_currency:
            return True
        with self._lock:
            return (from_currency, to_currency) in self._rates

    def get_rate_pair(self, currency_a: str, currency_b: str) -> Optional[RatePair]:
        """
        Forward and reverse rates with their discrepancy.

        Useful to spot inconsistent feeds: with exact inverses the
        discrepancy is 0. Returns None if either direction is missing.
        """
        with self._lock:
            forward = self.get_rate(currency_a, currency_b)
            reverse = self.get_rate(currency_b, currency_a)

        if forward is None or reverse is None:
            return None

        # On integers: forward * reverse == product / 10**scale
        forward_numerator, forward_scale = decimal_parts(forward.rate)
        reverse_numerator, reverse_scale = decimal_parts(reverse.rate)
        product = forward_numerator * reverse_numerator
        scale = forward_scale + reverse_scale
        discrepancy = Decimal(f"{abs(10 ** scale - product)}E-{scale}")
        return RatePair(forward=forward, reverse=reverse, discrepancy=discrepancy)

    def get_rates_from(self, base: str) -> List[ExchangeRate]:
        """All stored rates from base, sorted by target currency."""
        with self._lock:
            rates = [r for r in self._rates.values() if r.from_currency == base]
        return sorted(rates, key=lambda r: r.to_currency)

    def get_all_rates(self) -> List[ExchangeRate]:
        """All stored rates, sorted by from_currency, then to_currency."""
        with self._lock:
            rates = list(self._rates.values())
        return sorted(rates, key=lambda r: (r.from_currency, r.to_currency))

    def __len__(self) -> int:
        with self._lock:
            return len(self._rates)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        with self._lock:
            return pair in self._rates

    def __iter__(self) -> Iterator[ExchangeRate]:
        return iter(self.get_all_rates())
