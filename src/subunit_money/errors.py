"""
errors.py — Error kinds raised by the money engine

Every error derives from MoneyError and from the builtin exception a Python
caller would naturally catch for that situation:

    CurrencyUnknownError   LookupError   currency not registered
    AmountError            ValueError    amount does not match the grammar
    SubunitError           ValueError    too many fractional digits
    CurrencyMismatchError  TypeError     operands in different currencies
    ExchangeRateError      LookupError   no rate between two currencies
    AllocationError        ValueError    invalid allocation proportions

All of them are raised synchronously at the violated contract. Nothing is
retried or downgraded to a default.
"""

from __future__ import annotations

from typing import Any


class MoneyError(Exception):
    """Base class for every error raised by subunit_money."""


class CurrencyUnknownError(MoneyError, LookupError):
    """
    Raised when a currency code has no registered definition.

    Example:
        Money.parse("FAKE", "10")  # CurrencyUnknownError
    """

    def __init__(self, currency: str):
        super().__init__(
            f"Unknown currency '{currency}'. Register it first with register_currency()."
        )
        self.currency = currency


class AmountError(MoneyError, ValueError):
    """
    Raised when an amount cannot be read as a plain decimal number.

    Example:
        Money.parse("USD", "abc")  # AmountError
    """

    def __init__(self, amount: Any):
        super().__init__(f"Invalid amount: {amount!r}")
        self.amount = amount


class SubunitError(MoneyError, ValueError):
    """
    Raised when an amount has more decimal places than its currency allows.

    Example:
        Money.parse("USD", "1.234")  # SubunitError, USD has 2 decimals
    """

    def __init__(self, currency: str, max_decimals: int):
        super().__init__(f"{currency} only supports {max_decimals} decimal place(s)")
        self.currency = currency
        self.max_decimals = max_decimals


class CurrencyMismatchError(MoneyError, TypeError):
    """
    Raised when an operation needs identical currencies and gets two.

    Example:
        Money.parse("USD", "10") + Money.parse("EUR", "5")  # CurrencyMismatchError
    """

    def __init__(self, from_currency: str, to_currency: str):
        super().__init__(
            f"Cannot operate on {from_currency} and {to_currency}: currencies must match"
        )
        self.from_currency = from_currency
        self.to_currency = to_currency


class ExchangeRateError(MoneyError, LookupError):
    """Raised when no exchange rate exists between two currencies."""

    def __init__(self, from_currency: str, to_currency: str):
        super().__init__(
            f"No exchange rate available from {from_currency} to {to_currency}"
        )
        self.from_currency = from_currency
        self.to_currency = to_currency


class AllocationError(MoneyError, ValueError):
    """Raised for empty, negative, non-finite or all-zero allocation proportions."""
