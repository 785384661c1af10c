"""Domain-level helpers for building, checking and evaluating predicates."""

from __future__ import annotations

import time
from decimal import Decimal
from typing import List, Mapping, Optional, Union

from ..errors import UnsupportedPairError, UpstreamUnavailableError, ErrorContext
from ..normalizer import chain_name, normalize_token
from ..registry import FEED_SYMBOL_ALIASES, PRICE_FEEDS
from .models import (
    And,
    Or,
    Predicate,
    PriceAbove,
    PriceBelow,
    PriceCondition,
    PriceEquals,
    TimeAfter,
)

Number = Union[Decimal, int, float, str]

# Oracle readings within this distance count as "equal"
EQUALS_TOLERANCE = Decimal("0.01")

PREDICATE_GAS: Mapping[type, int] = {
    PriceAbove: 150_000,
    PriceBelow: 150_000,
    PriceEquals: 150_000,
    TimeAfter: 50_000,
    And: 200_000,
    Or: 200_000,
}
DEFAULT_PREDICATE_GAS = 300_000


class PriceFeedNotFound(UnsupportedPairError):
    """No oracle feed is configured for a symbol on a network."""

    def __init__(self, symbol: str, chain_id: int):
        super().__init__(
            f"No price feed for {symbol} on {chain_name(chain_id)}",
            ErrorContext(chain_id=chain_id, details={"symbol": symbol}),
        )
        self.symbol = symbol
        self.chain_id = chain_id


def price_feed_address(symbol: str, chain_id: int) -> str:
    """Oracle address for ``symbol``/USD on ``chain_id``.

    Raises:
        PriceFeedNotFound: when the network has no feed for the symbol.
    """
    canonical = normalize_token(symbol)
    feed_symbol = FEED_SYMBOL_ALIASES.get(canonical, canonical)
    feed = PRICE_FEEDS.get((feed_symbol, chain_id))
    if not feed:
        raise PriceFeedNotFound(canonical, chain_id)
    return str(feed["address"])


def stop_loss(symbol: str, stop_price: Number, chain_id: int) -> PriceBelow:
    """Sell when the price drops to ``stop_price``."""
    return PriceBelow(feed=price_feed_address(symbol, chain_id), threshold=stop_price)


def take_profit(symbol: str, target_price: Number, chain_id: int) -> PriceAbove:
    """Sell when the price rises to ``target_price``."""
    return PriceAbove(feed=price_feed_address(symbol, chain_id), threshold=target_price)


def buy_limit(symbol: str, limit_price: Number, chain_id: int) -> PriceBelow:
    """Buy when the price drops to ``limit_price``."""
    return PriceBelow(feed=price_feed_address(symbol, chain_id), threshold=limit_price)


def time_boxed(price_predicate: Predicate, expiry: int) -> Or:
    """Combine a price condition with an expiry timestamp."""
    return Or(left=price_predicate, right=TimeAfter(timestamp=expiry))


def price_condition(symbol: str, comparator: str, price: Number, chain_id: int) -> Predicate:
    """Translate a textual comparator into the matching predicate variant.

    The order contract only offers inclusive comparisons, so ``>`` and ``<``
    map onto the same variants as ``>=`` and ``<=``.
    """
    feed = price_feed_address(symbol, chain_id)
    if comparator in (">=", ">"):
        return PriceAbove(feed=feed, threshold=price)
    if comparator in ("<=", "<"):
        return PriceBelow(feed=feed, threshold=price)
    if comparator in ("=", "=="):
        return PriceEquals(feed=feed, threshold=price)
    raise ValueError(f"Unsupported comparator: {comparator!r}")


def predicate_for_order(draft, expiry: Optional[int] = None) -> Predicate:
    """Build the trigger predicate for a conditional order draft."""
    predicate = price_condition(
        draft.token,
        draft.trigger_comparator,
        draft.trigger_price,
        draft.chain_id,
    )
    if expiry is not None:
        return time_boxed(predicate, expiry)
    return predicate


def estimate_predicate_gas(predicate: Predicate) -> int:
    return PREDICATE_GAS.get(type(predicate), DEFAULT_PREDICATE_GAS)


def validate_predicate(predicate: Predicate, now: Optional[int] = None) -> List[str]:
    """Return a list of problems; empty when the predicate is usable."""
    current = int(time.time()) if now is None else now
    issues: List[str] = []

    if isinstance(predicate, PriceCondition):
        if predicate.threshold <= 0:
            issues.append(f"Price threshold must be positive for {type(predicate).__name__}")
    elif isinstance(predicate, TimeAfter):
        if predicate.timestamp <= current:
            issues.append("Timestamp must be in the future")
    elif isinstance(predicate, (And, Or)):
        issues.extend(validate_predicate(predicate.left, current))
        issues.extend(validate_predicate(predicate.right, current))
    return issues


def evaluate(
    predicate: Predicate,
    prices: Mapping[str, Decimal],
    now: Optional[int] = None,
) -> bool:
    """Check a predicate against oracle readings supplied by the caller.

    Args:
        predicate: Tree to evaluate
        prices: Latest feed answers keyed by feed address (any casing)
        now: Unix time to compare TimeAfter against (default: wall clock)
    """
    current = int(time.time()) if now is None else now

    if isinstance(predicate, PriceCondition):
        readings = {address.lower(): value for address, value in prices.items()}
        reading = readings.get(predicate.feed.lower())
        if reading is None:
            raise UpstreamUnavailableError(f"No oracle reading for feed {predicate.feed}")
        price = Decimal(str(reading))
        if isinstance(predicate, PriceAbove):
            return price >= predicate.threshold
        if isinstance(predicate, PriceBelow):
            return price <= predicate.threshold
        return abs(price - predicate.threshold) < EQUALS_TOLERANCE
    if isinstance(predicate, TimeAfter):
        return current >= predicate.timestamp
    if isinstance(predicate, And):
        return evaluate(predicate.left, prices, current) and evaluate(predicate.right, prices, current)
    if isinstance(predicate, Or):
        return evaluate(predicate.left, prices, current) or evaluate(predicate.right, prices, current)
    raise TypeError(f"Not a predicate: {predicate!r}")
