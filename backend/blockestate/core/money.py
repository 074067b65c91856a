"""Money — conversion between decimal prices and ledger minor units.

Invariants:
    - Minor units are ints; 1 unit of currency = 10**18 minor units
    - Conversion is exact: a Decimal with more than 18 fractional digits is rejected,
      never rounded
    - No float ever enters or leaves this module
"""

from decimal import Decimal, localcontext

MINOR_UNIT_DECIMALS = 18


def to_minor_units(amount: Decimal) -> int:
    """Decimal currency amount -> integer minor units. Raises ValueError if inexact."""
    if not isinstance(amount, Decimal):
        raise TypeError(f"amount must be Decimal, got {type(amount).__name__}")
    if not amount.is_finite():
        raise ValueError("amount must be finite")
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = amount.scaleb(MINOR_UNIT_DECIMALS)
        minor = scaled.to_integral_value()
        if minor != scaled:
            raise ValueError(
                f"amount {amount} has more than {MINOR_UNIT_DECIMALS} decimal places",
            )
    return int(minor)


def from_minor_units(minor: int | str) -> Decimal:
    """Integer minor units (int or decimal string from JSON) -> Decimal amount."""
    with localcontext() as ctx:
        ctx.prec = 100
        amount = Decimal(int(minor)).scaleb(-MINOR_UNIT_DECIMALS).normalize()
        # normalize() turns 1000 into 1E+3
        if amount.as_tuple().exponent > 0:
            amount = amount.quantize(Decimal(1))
    return amount
