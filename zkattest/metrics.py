"""
zkattest Metric Calculator

Pure loan metrics over unsigned 32-bit inputs.

Rules:
- Intermediates are exact (Python integers are wider than any input product)
- Final 32-bit results saturate at U32_MAX, never wrap
- Zero divisors resolve to a defined value (0), never raise
- Identical inputs always produce identical outputs

utxo_total is the exception to saturation: a UTXO sum that exceeds 64 bits
is an error, because silently clamping a balance would misstate holdings.
"""

from typing import Iterable, Tuple

from .errors import ArithmeticOverflow
from .models import U32_MAX, U64_MAX


def saturate_u32(value: int) -> int:
    """Clamp a non-negative integer into the u32 range."""
    return value if value <= U32_MAX else U32_MAX


def collateral_ratio(collateral: int, debt: int, price: int) -> Tuple[int, int]:
    """
    Compute the collateral ratio (ICR, percent) and the collateral's USD value.

    Zero debt yields a ratio of 0, not infinity.

    Returns:
        Tuple of (ratio, collateral_value_usd)
    """
    collateral_value = collateral * price
    collateral_value_usd = saturate_u32(collateral_value)

    if debt == 0:
        return 0, collateral_value_usd

    ratio = saturate_u32((collateral_value * 100) // debt)
    return ratio, collateral_value_usd


def liquidation_threshold(collateral: int, price: int, minimum_ratio: int) -> int:
    """Collateral value scaled by the minimum ratio; 0 when minimum_ratio is 0."""
    if minimum_ratio == 0:
        return 0

    return saturate_u32((collateral * price * 100) // minimum_ratio)


def loan_to_value(debt: int, collateral: int, price: int) -> int:
    """Integer loan-to-value percentage; 0 when there is no collateral value."""
    if collateral == 0 or price == 0:
        return 0

    return saturate_u32((debt * 100) // (collateral * price))


def utxo_total(amounts: Iterable[int]) -> int:
    """
    Sum UTXO amounts with checked u64 addition.

    Raises:
        ArithmeticOverflow: if the running total leaves the u64 range
    """
    total = 0
    for index, amount in enumerate(amounts):
        total += amount
        if total > U64_MAX:
            raise ArithmeticOverflow(
                "UTXO total overflows u64",
                field=f"utxos[{index}].amount",
                required=f"total <= {U64_MAX}",
                observed=str(total)
            )
    return total
