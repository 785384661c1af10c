"""
Predicate Models

A predicate is a small recursive tree of price and time conditions that an
on-chain order-matching contract evaluates before filling a conditional order.
Leaves compare an oracle feed against a threshold or the block time against a
timestamp; And/Or nodes combine two subtrees.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from eth_utils import is_address, to_checksum_address

from ..amounts import MAX_UINT256, WIDE_CONTEXT

# Oracle answers are fixed point with 8 decimals.
PRICE_DECIMALS = 8
PRICE_QUANTUM = Decimal(1).scaleb(-PRICE_DECIMALS)
# Deepest And/Or nesting a predicate may have; decoders reject anything deeper.
MAX_DEPTH = 16


def _to_threshold(value: Union[Decimal, int, float, str]) -> Decimal:
    try:
        threshold = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid price threshold: {value!r}") from exc
    if not threshold.is_finite() or threshold < 0:
        raise ValueError(f"Price threshold must be a non-negative number, got {value!r}")
    if threshold and threshold.adjusted() + PRICE_DECIMALS >= 78:
        raise ValueError("Price threshold does not fit in a uint256")
    threshold = threshold.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP, context=WIDE_CONTEXT)
    if _scale(threshold) > MAX_UINT256:
        raise ValueError("Price threshold does not fit in a uint256")
    return threshold


def _scale(threshold: Decimal) -> int:
    return int(threshold.scaleb(PRICE_DECIMALS, context=WIDE_CONTEXT))


@dataclass(frozen=True)
class PriceCondition:
    """Shared shape of the three price comparisons."""

    feed: str
    threshold: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.feed, str) or not is_address(self.feed):
            raise ValueError(f"Invalid price feed address: {self.feed!r}")
        object.__setattr__(self, "feed", to_checksum_address(self.feed))
        object.__setattr__(self, "threshold", _to_threshold(self.threshold))

    @property
    def scaled_threshold(self) -> int:
        """Threshold as the integer the oracle reports (price * 10^8)."""
        return _scale(self.threshold)


@dataclass(frozen=True)
class PriceAbove(PriceCondition):
    """True once the feed price reaches the threshold."""


@dataclass(frozen=True)
class PriceBelow(PriceCondition):
    """True once the feed price falls to the threshold."""


@dataclass(frozen=True)
class PriceEquals(PriceCondition):
    """True while the feed price sits at the threshold."""


@dataclass(frozen=True)
class TimeAfter:
    timestamp: int

    def __post_init__(self) -> None:
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, int):
            raise ValueError(f"Timestamp must be an integer, got {self.timestamp!r}")
        if not 0 <= self.timestamp <= MAX_UINT256:
            raise ValueError(f"Timestamp out of range: {self.timestamp}")


@dataclass(frozen=True)
class Composite:
    """Binary node; ``depth`` counts the And/Or levels from here to the deepest leaf."""

    left: "Predicate"
    right: "Predicate"
    depth: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for child in (self.left, self.right):
            if not isinstance(child, PREDICATE_TYPES):
                raise TypeError(f"Not a predicate: {child!r}")
        depth = 1 + max(nesting_depth(self.left), nesting_depth(self.right))
        if depth > MAX_DEPTH:
            raise ValueError(f"Predicate nested deeper than {MAX_DEPTH} levels")
        object.__setattr__(self, "depth", depth)


@dataclass(frozen=True)
class And(Composite):
    pass


@dataclass(frozen=True)
class Or(Composite):
    pass


Predicate = Union[PriceAbove, PriceBelow, PriceEquals, TimeAfter, And, Or]

PREDICATE_TYPES = (PriceAbove, PriceBelow, PriceEquals, TimeAfter, And, Or)


def nesting_depth(predicate: Predicate) -> int:
    return predicate.depth if isinstance(predicate, Composite) else 0


def describe(predicate: Predicate) -> str:
    """Human-readable rendering, e.g. ``price(0x5f4e…) <= 1500``."""
    if isinstance(predicate, PriceCondition):
        op = {PriceAbove: ">=", PriceBelow: "<=", PriceEquals: "="}[type(predicate)]
        return f"price({predicate.feed[:6]}…) {op} {predicate.threshold.normalize():f}"
    if isinstance(predicate, TimeAfter):
        return f"time >= {predicate.timestamp}"
    if isinstance(predicate, And):
        return f"({describe(predicate.left)} AND {describe(predicate.right)})"
    if isinstance(predicate, Or):
        return f"({describe(predicate.left)} OR {describe(predicate.right)})"
    raise TypeError(f"Not a predicate: {predicate!r}")
