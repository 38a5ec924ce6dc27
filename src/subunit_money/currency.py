"""
currency.py — Currency registry

================================================================================
ROLE
================================================================================

Maps a currency code to the number of decimal places of its subunit system
(2 for most fiat, 0 for JPY, 8 for BTC, 18 for ETH, 30 for NANO).

Money consumes the registry only through get_currency(): a Money is never
created for a code that is not registered. The registry itself does no
arithmetic.

The default table ships with the package (currencymap.json) and is loaded
when subunit_money is imported. Custom codes can be added at runtime:

    register_currency("DOGE", 8)

================================================================================
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from importlib import resources
from typing import Any, Mapping

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY_MAP = "currencymap.json"


@dataclass(frozen=True, slots=True)
class CurrencyDefinition:
    """A registered currency: code plus decimal places of its minor unit."""
    code: str
    decimal_digits: int

    @property
    def multiplier(self) -> int:
        """Conversion factor major -> minor unit."""
        return 10 ** self.decimal_digits


_currencies: dict[str, CurrencyDefinition] = {}
_lock = threading.RLock()


def _validated(code: Any, decimal_digits: Any) -> CurrencyDefinition:
    if not isinstance(code, str) or not code:
        raise ValueError(f"Currency code must be a non-empty string, got: {code!r}")
    if isinstance(decimal_digits, bool) or not isinstance(decimal_digits, int):
        raise ValueError(
            f"decimal_digits for {code} must be an int, got: {decimal_digits!r}"
        )
    if decimal_digits < 0:
        raise ValueError(f"decimal_digits for {code} must be >= 0, got: {decimal_digits}")
    return CurrencyDefinition(code=code, decimal_digits=decimal_digits)


def register_currency(code: str, decimal_digits: int) -> None:
    """Register a new currency or replace an existing definition."""
    definition = _validated(code, decimal_digits)
    with _lock:
        _currencies[code] = definition
    logger.debug("Registered currency %s with %d decimal digit(s)", code, decimal_digits)


def get_currency(code: str) -> CurrencyDefinition | None:
    """Return the definition for code, or None if it is not registered."""
    with _lock:
        return _currencies.get(code)


def has_currency(code: str) -> bool:
    with _lock:
        return code in _currencies


def get_all_currencies() -> list[CurrencyDefinition]:
    """All registered currencies, sorted by code."""
    with _lock:
        return sorted(_currencies.values(), key=lambda c: c.code)


def load_currency_map(mapping: Mapping[str, Mapping[str, Any]]) -> None:
    """
    Register every currency of a legacy currency map.

    Format: {"USD": {"decimal_digits": 2, ...}, ...}. Keys other than
    decimal_digits (name, symbol, ...) are ignored.

    The whole map is validated first; an invalid entry leaves the registry
    untouched.
    """
    definitions = []
    for code, data in mapping.items():
        if not isinstance(data, Mapping) or "decimal_digits" not in data:
            raise ValueError(f"Currency map entry for {code!r} has no decimal_digits")
        definitions.append(_validated(code, data["decimal_digits"]))

    with _lock:
        for definition in definitions:
            _currencies[definition.code] = definition
    logger.debug("Loaded %d currencies from currency map", len(definitions))


def load_default_currencies() -> None:
    """Load the currency table bundled with the package."""
    text = resources.files(__package__).joinpath(DEFAULT_CURRENCY_MAP).read_text(
        encoding="utf-8"
    )
    load_currency_map(json.loads(text))


def clear_currencies() -> None:
    """Remove every registered currency. Mostly useful in tests."""
    with _lock:
        _currencies.clear()
