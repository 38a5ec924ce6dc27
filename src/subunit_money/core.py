"""
core.py — Money, an immutable amount of one currency

================================================================================
DESIGN PRINCIPLES
================================================================================

1. INTERNAL REPRESENTATION
   An arbitrary-precision int of subunits (cents for USD, satoshi for BTC,
   wei for ETH). Never a float. Python ints have no upper bound, so 18 and
   30 decimal currencies work without special cases.

2. STRING CONTRACT
   Amounts enter and leave as plain decimal strings ("19.99", "-0.05",
   "1000"). The string is always derived from (currency, subunits), never
   stored, so it round-trips through JSON or a database byte for byte.

3. TYPE SAFETY
   Operations between different currencies raise CurrencyMismatchError.
   An amount with more decimals than the currency allows raises
   SubunitError: nothing is silently truncated.

4. IMMUTABILITY
   Frozen dataclass. Every operation returns a new instance, so a Money can
   be shared between threads without locking.

5. ONE ROUNDING RULE
   multiply() rounds half to even right after each multiplication
   (see rounding.py). Rounding per line, not at the end of a chain, is what
   keeps per-line totals and the aggregate total in agreement.

6. CONSERVATION
   allocate() and distribute() return parts whose sum is exactly the
   original amount, for every input.

================================================================================
USAGE
================================================================================

    price = Money.parse("USD", "19.99")
    tax = price.multiply(0.0825)          # 1.65 USD
    total = price + tax                   # 21.64 USD

    a, b, c = Money.parse("USD", "100").allocate([1, 1, 1])
    # 33.34 USD, 33.33 USD, 33.33 USD

    Money.from_subunits(1999, "USD").to_dict()
    # {"currency": "USD", "amount": "19.99"}

================================================================================
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, ClassVar, Sequence, TypedDict

from .currency import get_currency
from .errors import (
    AllocationError,
    AmountError,
    CurrencyMismatchError,
    CurrencyUnknownError,
    SubunitError,
)
from .rounding import Number, decimal_parts, rounded_divide


_AMOUNT_PATTERN = re.compile(r"(-)?([0-9]+)(?:\.([0-9]+))?")


class MoneyDict(TypedDict):
    """Serialized form of a Money. amount is the formatted decimal string."""
    currency: str
    amount: str


def _plain_decimal(amount: Any) -> str:
    """
    Turn the supported amount types into a plain decimal string.

    Numbers use their shortest exact representation, without exponent:
    0.1 -> "0.1", 1e-05 -> "0.00001", Decimal("1E+2") -> "100".
    """
    if isinstance(amount, str):
        return amount
    if isinstance(amount, bool):
        raise AmountError(amount)
    if isinstance(amount, int):
        return str(amount)
    if isinstance(amount, float):
        if not math.isfinite(amount):
            raise AmountError(amount)
        return format(Decimal(repr(amount)), "f")
    if isinstance(amount, Decimal):
        if not amount.is_finite():
            raise AmountError(amount)
        return format(amount, "f")
    raise AmountError(amount)


def _format_subunits(subunits: int, decimals: int) -> str:
    sign = "-" if subunits < 0 else ""
    magnitude = abs(subunits)

    if decimals == 0:
        return f"{sign}{magnitude}"

    whole, fraction = divmod(magnitude, 10 ** decimals)
    return f"{sign}{whole}.{fraction:0{decimals}d}"


def _scaled_half_up(numerator: int, scale: int, factor: int) -> int:
    """round(numerator / 10**scale * factor), ties away from zero, numerator >= 0."""
    denominator = 10 ** scale
    return (2 * numerator * factor + denominator) // (2 * denominator)


@dataclass(frozen=True, slots=True, eq=False)
class Money:
    """
    Immutable monetary amount.

    INVARIANTS:
    1. _subunits is always an int (never fractional, never float)
    2. _currency is registered in the currency registry at creation time
    3. operations between different currencies raise CurrencyMismatchError
    4. sum(allocate(p)) == self for every valid p
    5. derived values keep the decimal digits of self, even if the
       currency is registered again with different digits

    CONSTRUCTION:
        Money.parse("USD", "19.99")       # from a decimal string or number
        Money.from_subunits(1999, "USD")  # from an integer column
        Money.zero("USD")

    SERIALIZATION:
        to_dict() -> {"currency": "USD", "amount": "19.99"}
        NEVER serialize the amount as a float.
    """
    _subunits: int
    _currency: str
    _decimals: int = field(init=False, repr=False)

    # Upper bound on allocation parts
    MAX_ALLOCATION_PARTS: ClassVar[int] = 10_000
    # Proportions are compared at micro resolution
    ALLOCATION_SCALE: ClassVar[int] = 10 ** 6

    def __post_init__(self) -> None:
        if isinstance(self._subunits, bool) or not isinstance(self._subunits, int):
            raise TypeError(
                f"subunits must be an int, got {type(self._subunits).__name__}"
            )
        definition = get_currency(self._currency)
        if definition is None:
            raise CurrencyUnknownError(self._currency)
        object.__setattr__(self, "_decimals", definition.decimal_digits)

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def parse(cls, currency: str, amount: str | Number) -> Money:
        """
        Build a Money from a decimal string or a number.

        Accepted format: optional "-", digits, optional "." followed by
        digits. The fraction may not have more digits than the currency.

        Raises:
            CurrencyUnknownError: currency is not registered
            AmountError: amount does not match the format
            SubunitError: amount has too many decimal places
        """
        definition = get_currency(currency)
        if definition is None:
            raise CurrencyUnknownError(currency)

        text = _plain_decimal(amount)
        match = _AMOUNT_PATTERN.fullmatch(text)
        if match is None:
            raise AmountError(amount)

        sign, whole, fraction = match.groups()
        fraction = fraction or ""
        decimals = definition.decimal_digits

        if len(fraction) > decimals:
            raise SubunitError(currency, decimals)

        subunits = int(whole + fraction.ljust(decimals, "0"))
        return cls(-subunits if sign else subunits, currency)

    @classmethod
    def from_subunits(cls, subunits: int, currency: str) -> Money:
        """
        Build a Money from native subunits (cents, satoshi, wei).
        No conversion, full precision. Use it to load integer columns.
        """
        return cls(subunits, currency)

    @classmethod
    def zero(cls, currency: str) -> Money:
        """Zero in a given currency. Handy as the start value for sum()."""
        return cls(0, currency)

    @classmethod
    def from_dict(cls, data: MoneyDict) -> Money:
        """
        Deserialize from {"currency": str, "amount": str}.
        The amount goes through parse(), with all its checks.
        """
        return cls.parse(data["currency"], data["amount"])

    # -------------------------------------------------------------------------
    # Properties and output
    # -------------------------------------------------------------------------

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def decimals(self) -> int:
        """Decimal places of the currency, as registered at creation time."""
        return self._decimals

    @property
    def amount(self) -> str:
        """
        The amount as a fixed precision decimal string.

            Money.parse("USD", 19.9).amount   -> "19.90"
            Money.parse("JPY", 1000).amount   -> "1000"
        """
        return _format_subunits(self._subunits, self._decimals)

    def to_subunits(self) -> int:
        """Value in subunits. For storage as an integer column."""
        return self._subunits

    def to_decimal(self) -> Decimal:
        """Exact Decimal view of the amount."""
        return Decimal(self.amount)

    def to_float(self) -> float:
        """
        The amount as a float.

        WARNING: may lose precision. Use only for ratios and display,
        never to compute another amount.
        """
        return self._subunits / 10 ** self._decimals

    def to_dict(self) -> MoneyDict:
        """
        Serialize for persistence/API.

        Format: {"currency": str, "amount": str}
        """
        return {"currency": self._currency, "amount": self.amount}

    def is_zero(self) -> bool:
        return self._subunits == 0

    def is_positive(self) -> bool:
        return self._subunits > 0

    def is_negative(self) -> bool:
        return self._subunits < 0

    def __str__(self) -> str:
        return f"{self.amount} {self._currency}"

    def __repr__(self) -> str:
        return f"Money({self._currency!r}, {self.amount!r})"

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def _check_same_currency(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise TypeError(
                f"Operation not allowed between Money and {type(other).__name__}. "
                f"Use Money.parse() to build an amount."
            )
        if self._currency != other._currency:
            raise CurrencyMismatchError(self._currency, other._currency)
        if self._decimals != other._decimals:
            # Same code registered twice with different decimal digits
            raise CurrencyMismatchError(
                f"{self._currency} ({self._decimals} decimals)",
                f"{other._currency} ({other._decimals} decimals)",
            )

    def _with_subunits(self, subunits: int) -> Money:
        # Same currency definition as self, even if the registry changed since
        money = object.__new__(Money)
        object.__setattr__(money, "_subunits", subunits)
        object.__setattr__(money, "_currency", self._currency)
        object.__setattr__(money, "_decimals", self._decimals)
        return money

    def add(self, other: Money) -> Money:
        """
        Sum of two amounts of the same currency. Never rounds.

        Raises:
            CurrencyMismatchError: if the currencies differ
        """
        self._check_same_currency(other)
        return self._with_subunits(self._subunits + other._subunits)

    def subtract(self, other: Money) -> Money:
        """
        Difference of two amounts of the same currency. Never rounds.

        Raises:
            CurrencyMismatchError: if the currencies differ
        """
        self._check_same_currency(other)
        return self._with_subunits(self._subunits - other._subunits)

    def multiply(self, factor: Number) -> Money:
        """
        Multiply by a finite int, float or Decimal.

        The factor is read as an exact decimal (0.0825 is 825 / 10**4), the
        product is computed on integers and rounded half to even to a whole
        number of subunits in one step.

            Money.parse("USD", "19.99").multiply(0.0825)   -> 1.65 USD

        Raises:
            TypeError: if factor is not a finite number
        """
        if isinstance(factor, bool) or not isinstance(factor, (int, float, Decimal)):
            raise TypeError(
                f"Factor must be a finite number, got {type(factor).__name__}"
            )
        try:
            numerator, scale = decimal_parts(factor)
        except ValueError:
            raise TypeError(f"Factor must be a finite number, got: {factor!r}") from None

        product = self._subunits * numerator
        return self._with_subunits(rounded_divide(product, 10 ** scale))

    def __add__(self, other: Money) -> Money:
        return self.add(other)

    def __sub__(self, other: Money) -> Money:
        return self.subtract(other)

    def __mul__(self, factor: Number) -> Money:
        return self.multiply(factor)

    def __rmul__(self, factor: Number) -> Money:
        return self.multiply(factor)

    def __neg__(self) -> Money:
        return self._with_subunits(-self._subunits)

    def __abs__(self) -> Money:
        return self._with_subunits(abs(self._subunits))

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    def allocate(self, proportions: Sequence[Number]) -> list[Money]:
        """
        Split the amount proportionally without losing or creating subunits.

        ALGORITHM:
        1. Scale each proportion and their total by 10**6, rounding to ints
        2. Base share = |amount| * weight // total_weight (truncation)
        3. The remainder (amount minus the sum of base shares, positive or
           negative) is handed out one subunit at a time, round robin from
           index 0
        4. The sign of the amount is applied to every share

        INVARIANT: sum(result) == self (always)

            Money.parse("USD", "100").allocate([1, 1, 1])
            -> [33.34 USD, 33.33 USD, 33.33 USD]

        Raises:
            AllocationError: empty, non-numeric, non-finite, negative or
                all-zero proportions, or too many parts
        """
        if isinstance(proportions, (str, bytes)) or not isinstance(proportions, Sequence):
            raise AllocationError("Proportions must be a non-empty sequence")
        if len(proportions) == 0:
            raise AllocationError("Proportions must be a non-empty sequence")
        if len(proportions) > self.MAX_ALLOCATION_PARTS:
            raise AllocationError(
                f"Proportions exceed the limit of {self.MAX_ALLOCATION_PARTS} parts"
            )

        parts = []
        for p in proportions:
            if isinstance(p, bool) or not isinstance(p, (int, float, Decimal)):
                raise AllocationError(
                    "All proportions must be non-negative finite numbers"
                )
            try:
                numerator, scale = decimal_parts(p)
            except ValueError:
                raise AllocationError(
                    "All proportions must be non-negative finite numbers"
                ) from None
            if numerator < 0:
                raise AllocationError(
                    "All proportions must be non-negative finite numbers"
                )
            parts.append((numerator, scale))

        # Exact sum of the proportions on a common scale
        total_scale = max(scale for _, scale in parts)
        total_numerator = sum(n * 10 ** (total_scale - s) for n, s in parts)

        weights = [_scaled_half_up(n, s, self.ALLOCATION_SCALE) for n, s in parts]
        total_weight = _scaled_half_up(total_numerator, total_scale, self.ALLOCATION_SCALE)
        if total_weight <= 0:
            raise AllocationError("Sum of proportions must be positive")

        magnitude = abs(self._subunits)
        shares = [magnitude * w // total_weight for w in weights]

        # Round robin, one subunit per slot, starting at 0
        remainder = magnitude - sum(shares)
        if remainder:
            step = 1 if remainder > 0 else -1
            rounds, extra = divmod(abs(remainder), len(shares))
            for i in range(len(shares)):
                shares[i] += step * (rounds + (1 if i < extra else 0))

        sign = -1 if self._subunits < 0 else 1
        return [self._with_subunits(sign * share) for share in shares]

    def distribute(self, n: int) -> list[Money]:
        """
        Split the amount into n equal parts, the first parts taking the
        leftover subunits.

        INVARIANT: sum(distribute(n)) == self

        Raises:
            AllocationError: if n is not an int in 1..MAX_ALLOCATION_PARTS
        """
        if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
            raise AllocationError(f"n must be a positive int, got: {n!r}")
        if n > self.MAX_ALLOCATION_PARTS:
            raise AllocationError(
                f"n exceeds the limit of {self.MAX_ALLOCATION_PARTS} parts"
            )
        return self.allocate([1] * n)

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def equal_to(self, other: Money) -> bool:
        """
        True if both amounts are equal.

        Unlike ==, this raises CurrencyMismatchError for different currencies.
        """
        self._check_same_currency(other)
        return self._subunits == other._subunits

    def greater_than(self, other: Money) -> bool:
        self._check_same_currency(other)
        return self._subunits > other._subunits

    def less_than(self, other: Money) -> bool:
        self._check_same_currency(other)
        return self._subunits < other._subunits

    def greater_than_or_equal(self, other: Money) -> bool:
        self._check_same_currency(other)
        return self._subunits >= other._subunits

    def less_than_or_equal(self, other: Money) -> bool:
        self._check_same_currency(other)
        return self._subunits <= other._subunits

    @staticmethod
    def compare(a: Money, b: Money) -> int:
        """
        -1, 0 or 1. Use with functools.cmp_to_key.

        Raises:
            CurrencyMismatchError: if the currencies differ
        """
        a._check_same_currency(b)
        return (a._subunits > b._subunits) - (a._subunits < b._subunits)

    def __eq__(self, other: object) -> bool:
        # Structural: 10 USD != 10 EUR, and no exception
        if isinstance(other, Money):
            return (
                self._subunits == other._subunits
                and self._currency == other._currency
                and self._decimals == other._decimals
            )
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._subunits, self._currency, self._decimals))

    def __lt__(self, other: Money) -> bool:
        return self.less_than(other)

    def __le__(self, other: Money) -> bool:
        return self.less_than_or_equal(other)

    def __gt__(self, other: Money) -> bool:
        return self.greater_than(other)

    def __ge__(self, other: Money) -> bool:
        return self.greater_than_or_equal(other)
