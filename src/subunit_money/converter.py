"""
converter.py — Cross-currency operations

================================================================================
CONVERSION ARITHMETIC
================================================================================

Conversion never multiplies floats. With p = rate_precision (15 by default):

    scaled_rate = round_half_even(rate * 10**p)
    product     = subunits * scaled_rate * 10**target_decimals
    divisor     = 10**p * 10**source_decimals
    result      = round_half_even(product / divisor)

Rounding the rate to p fractional digits is the only approximation: a rate
is market data, not an amount. A rate with at most p fractional digits
("0.92", "43500.00", "0.00001") is used exactly. Everything after that is
integer arithmetic and one call to rounded_divide().

    rates = ExchangeRateService()
    rates.set_rate("USD", "EUR", "0.92")
    converter = MoneyConverter(rates)
    converter.convert(Money.parse("USD", "100.00"), "EUR")   # 92.00 EUR

================================================================================
"""

from __future__ import annotations

import logging
from typing import Iterable

from .core import Money
from .currency import get_currency
from .errors import CurrencyUnknownError, ExchangeRateError
from .rates import ExchangeRateService
from .rounding import decimal_parts, rounded_divide

logger = logging.getLogger(__name__)

# Fractional digits kept from a rate before the integer computation
RATE_PRECISION = 15


class MoneyConverter:
    """
    Bridges Money and ExchangeRateService.

    Every cross-currency operation first converts its operands into one
    currency with convert(), then uses the same-currency Money operation.
    """

    def __init__(self, rate_service: ExchangeRateService, rate_precision: int = RATE_PRECISION):
        if isinstance(rate_precision, bool) or not isinstance(rate_precision, int) or rate_precision < 0:
            raise ValueError(f"rate_precision must be an int >= 0, got: {rate_precision!r}")
        self._rate_service = rate_service
        self._rate_precision = rate_precision

    @property
    def rate_service(self) -> ExchangeRateService:
        return self._rate_service

    @property
    def rate_precision(self) -> int:
        return self._rate_precision

    def convert(self, money: Money, target_currency: str) -> Money:
        """
        Convert money into target_currency.

        Returns money itself when the currency is already target_currency.

        Raises:
            CurrencyUnknownError: target_currency is not registered
            ExchangeRateError: no rate from money.currency to target_currency
        """
        if money.currency == target_currency:
            return money

        target = get_currency(target_currency)
        if target is None:
            raise CurrencyUnknownError(target_currency)

        rate = self._rate_service.get_rate(money.currency, target_currency)
        if rate is None:
            raise ExchangeRateError(money.currency, target_currency)

        precision = self._rate_precision
        rate_numerator, rate_scale = decimal_parts(rate.rate)
        scaled_rate = rounded_divide(rate_numerator * 10 ** precision, 10 ** rate_scale)

        product = money.to_subunits() * scaled_rate * 10 ** target.decimal_digits
        divisor = 10 ** precision * 10 ** money.decimals
        converted = Money.from_subunits(rounded_divide(product, divisor), target_currency)

        logger.debug(
            "Converted %s to %s at rate %s (source=%s)", money, converted, rate.rate, rate.source
        )
        return converted

    def add(self, a: Money, b: Money, result_currency: str) -> Money:
        """Sum of a and b, both converted into result_currency."""
        return self.convert(a, result_currency).add(self.convert(b, result_currency))

    def subtract(self, a: Money, b: Money, result_currency: str) -> Money:
        """a - b, both converted into result_currency."""
        return self.convert(a, result_currency).subtract(self.convert(b, result_currency))

    def sum(self, amounts: Iterable[Money], target_currency: str) -> Money:
        """
        Total of amounts in any currencies, expressed in target_currency.

        Each amount is converted (and rounded) on its own before adding.
        """
        total = Money.zero(target_currency)
        for amount in amounts:
            total = total.add(self.convert(amount, target_currency))
        return total

    def percentage_of(self, part: Money, whole: Money) -> float:
        """
        What percentage part is of whole (25.0 for 25%).

        part is converted into whole's currency first. The result is a
        ratio, not an amount, so it is computed on the float views.

        Raises:
            ZeroDivisionError: if whole is zero
        """
        converted = self.convert(part, whole.currency)
        return converted.to_float() / whole.to_float() * 100

    def compare(self, a: Money, b: Money) -> int:
        """
        -1, 0 or 1, comparing a with b converted into a's currency.
        """
        return Money.compare(a, self.convert(b, a.currency))
