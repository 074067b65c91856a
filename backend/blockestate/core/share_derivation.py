"""Share Derivation — simulated fractionalization and share purchases for a confirmed asset.

Invariants:
    - Output is always tagged simulated=True; references are locally generated,
      never ledger-confirmed
    - price_per_share is exact Decimal division of the asset price
    - Raises ShareDerivationError when the split is not representable
      (non-positive share count, or per-share price below one minor unit)
    - A purchase is priced from the same split: total_cost = shares * price_per_share,
      and 1 <= shares <= total_shares (ValidationError otherwise)

Design Decisions:
    - Hex generator injected: tests pin the simulated references
"""

import secrets
from decimal import Decimal, localcontext
from typing import Callable

from blockestate.core.domain_types import SimulatedPurchase, SimulatedShares
from blockestate.core.errors import ShareDerivationError, ValidationError
from blockestate.core.money import to_minor_units


def price_per_share(price: Decimal, total_shares: int) -> Decimal:
    if total_shares <= 0:
        raise ShareDerivationError(f"total_shares must be positive, got {total_shares}")
    price_minor = to_minor_units(price)
    if price_minor < total_shares:
        raise ShareDerivationError(
            f"price {price} too small to split into {total_shares} shares",
        )
    with localcontext() as ctx:
        ctx.prec = 100
        return _plain(price / Decimal(total_shares))


def derive_shares(
    price: Decimal,
    total_shares: int,
    token_hex: Callable[[int], str] = secrets.token_hex,
) -> SimulatedShares:
    """Split price into total_shares and return the simulated fractionalization."""
    per_share = price_per_share(price, total_shares)
    return SimulatedShares(
        total_shares=total_shares,
        price_per_share=per_share,
        reference_tx_hash="0x" + token_hex(32),
        fraction_contract="0x" + token_hex(20),
    )


def simulate_purchase(
    asset_id: int,
    price: Decimal,
    total_shares: int,
    shares: int,
    buyer: str,
    token_hex: Callable[[int], str] = secrets.token_hex,
) -> SimulatedPurchase:
    """Price a purchase of `shares` out of total_shares; nothing is submitted."""
    if not buyer.strip():
        raise ValidationError("buyer must not be empty", "buyer")
    if not 1 <= shares <= total_shares:
        raise ValidationError(
            f"shares must be between 1 and {total_shares}, got {shares}", "shares",
        )
    per_share = price_per_share(price, total_shares)
    with localcontext() as ctx:
        ctx.prec = 100
        total_cost = _plain(per_share * shares)
    return SimulatedPurchase(
        asset_id=asset_id,
        buyer=buyer,
        shares=shares,
        price_per_share=per_share,
        total_cost=total_cost,
        reference_tx_hash="0x" + token_hex(32),
    )


def _plain(amount: Decimal) -> Decimal:
    amount = amount.normalize()
    # normalize() turns 100 into 1E+2
    if amount.as_tuple().exponent > 0:
        amount = amount.quantize(Decimal(1))
    return amount
