"""
Predicate Builder Module

Encodes price/time trigger conditions for conditional orders.
"""

from .builders import (
    PriceFeedNotFound,
    buy_limit,
    estimate_predicate_gas,
    evaluate,
    predicate_for_order,
    price_condition,
    price_feed_address,
    stop_loss,
    take_profit,
    time_boxed,
    validate_predicate,
)
from .codec import DecodeError, decode, decode_or_raise, encode, encode_to_hex
from .models import (
    MAX_DEPTH,
    And,
    Or,
    Predicate,
    PriceAbove,
    PriceBelow,
    PriceEquals,
    TimeAfter,
    describe,
    nesting_depth,
)

__all__ = [
    # Models
    "Predicate",
    "PriceAbove",
    "PriceBelow",
    "PriceEquals",
    "TimeAfter",
    "And",
    "Or",
    "describe",
    "nesting_depth",
    "MAX_DEPTH",
    # Codec
    "encode",
    "encode_to_hex",
    "decode",
    "decode_or_raise",
    "DecodeError",
    # Builders
    "PriceFeedNotFound",
    "price_feed_address",
    "price_condition",
    "predicate_for_order",
    "stop_loss",
    "take_profit",
    "buy_limit",
    "time_boxed",
    "estimate_predicate_gas",
    "validate_predicate",
    "evaluate",
]
