"""
subunit_money — Exact monetary values for Python

Amounts are stored as integer subunits (cents, satoshi, wei), never floats.
Arithmetic rounds half to even, allocation never loses a subunit, and
conversion between currencies is done on integers.

================================================================================
QUICK START
================================================================================

Basic usage:

    from subunit_money import Money

    price = Money.parse("USD", "19.99")
    tax = price.multiply(0.0825)              # 1.65 USD
    total = price + tax                       # 21.64 USD

    # Split without losing cents (sum ALWAYS equals the original)
    parts = Money.parse("USD", "100.00").allocate([1, 1, 1])
    # 33.34 USD, 33.33 USD, 33.33 USD

    # Storage
    total.to_dict()                           # {"currency": "USD", "amount": "21.64"}
    total.to_subunits()                       # 2164

Currency conversion:

    from subunit_money import ExchangeRateService, MoneyConverter

    rates = ExchangeRateService()
    rates.set_rate("USD", "EUR", "0.92", source="ECB")

    converter = MoneyConverter(rates)
    converter.convert(Money.parse("USD", "100.00"), "EUR")   # 92.00 EUR

Custom currencies:

    from subunit_money import register_currency

    register_currency("DOGE", 8)

================================================================================
"""

import logging

# Currency registry
from .currency import (
    CurrencyDefinition,
    register_currency,
    get_currency,
    has_currency,
    get_all_currencies,
    load_currency_map,
    load_default_currencies,
    clear_currencies,
)

# Core Money type
from .core import (
    Money,
    MoneyDict,
)

# Rounding primitive
from .rounding import rounded_divide

# Exchange rates and conversion
from .rates import (
    ExchangeRate,
    ExchangeRateService,
    RatePair,
)
from .converter import (
    MoneyConverter,
    RATE_PRECISION,
)

# Errors
from .errors import (
    MoneyError,
    AllocationError,
    AmountError,
    CurrencyMismatchError,
    CurrencyUnknownError,
    ExchangeRateError,
    SubunitError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

load_default_currencies()

__version__ = "1.0.0"

__all__ = [
    # Currency registry
    "CurrencyDefinition",
    "register_currency",
    "get_currency",
    "has_currency",
    "get_all_currencies",
    "load_currency_map",
    "load_default_currencies",
    "clear_currencies",
    # Core
    "Money",
    "MoneyDict",
    "rounded_divide",
    # Rates
    "ExchangeRate",
    "ExchangeRateService",
    "RatePair",
    "MoneyConverter",
    "RATE_PRECISION",
    # Errors
    "MoneyError",
    "AllocationError",
    "AmountError",
    "CurrencyMismatchError",
    "CurrencyUnknownError",
    "ExchangeRateError",
    "SubunitError",
]
