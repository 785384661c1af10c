"""Conversions between human token amounts and integer base units."""

from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation
from typing import Any, Optional

MAX_UINT256 = 2**256 - 1

# Holds any uint256 (78 digits) exactly, unlike the default 28-digit context
WIDE_CONTEXT = Context(prec=80)


def to_base_units(amount: Decimal, decimals: int) -> Optional[int]:
    """Scale a human amount to base units, rounding down.

    Returns None when the amount is not positive or rounds to zero. Raises
    ValueError when the result does not fit in a uint256.
    """
    if not amount.is_finite() or amount <= 0:
        return None
    if amount.adjusted() + decimals >= 78:
        raise ValueError(f"Amount {amount} does not fit in a uint256")
    # scaleb only moves the exponent, so a context as wide as the coefficient keeps it exact
    exact = Context(prec=max(len(amount.as_tuple().digits), WIDE_CONTEXT.prec))
    scaled = int(amount.scaleb(decimals, context=exact))
    if scaled > MAX_UINT256:
        raise ValueError(f"Amount {amount} does not fit in a uint256")
    if scaled <= 0:
        return None
    return scaled


def from_base_units(raw: Any, decimals: int) -> Optional[Decimal]:
    try:
        return Decimal(str(raw)).scaleb(-decimals, context=WIDE_CONTEXT)
    except (InvalidOperation, ValueError, TypeError):
        return None


def decimal_to_str(value: Optional[Decimal], places: Optional[int] = None) -> str:
    if value is None:
        return '—'
    if places is not None:
        value = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN, context=WIDE_CONTEXT)
    text = format(value.normalize(context=WIDE_CONTEXT), 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text or '0'
