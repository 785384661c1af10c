"""
Keyword fallback.

Last stage of parsing, used when no template matched and the completion
service was unavailable. It looks at vocabulary to guess the intent and only
produces a tradable draft when a lenient scan finds every required field.
"""

import re
from decimal import Decimal
from typing import List, Optional, Set

from pydantic import ValidationError

from ..normalizer import normalize_token
from ..registry import FEED_SYMBOL_ALIASES, PRICE_FEEDS, TOKEN_ALIASES, TOKEN_REGISTRY
from .models import (
    CONDITIONAL_ORDER,
    SWAP,
    ConditionalOrderDraft,
    Draft,
    SwapDraft,
    TrendingDraft,
    UnknownDraft,
)
from .patterns import SLIPPAGE_LEVELS, extract_modifiers

SWAP_WORDS = {"swap", "trade", "exchange", "convert", "buy", "sell", "get", "to"}
CONDITIONAL_WORDS = {"if", "when", "stop", "loss", "profit", "price", "hits", "reaches"}
TRENDING_WORDS = {"trending", "hot", "popular", "moving", "gainers", "losers"}

_UPWARD_WORDS = {"above", "over", "profit", "rises", "exceeds", ">", ">="}
_DOWNWARD_WORDS = {"below", "under", "stop", "loss", "drops", "falls", "dips", "<", "<="}

_WORD = re.compile(r"[a-z][a-z0-9.\-]*|\d+(?:,\d{3})*(?:\.\d+)?|[<>]=?")
_NUMBER = re.compile(r"^\d+(?:,\d{3})*(?:\.\d+)?$")


def _known_symbols() -> Set[str]:
    symbols: Set[str] = set(TOKEN_ALIASES.values())
    for tokens in TOKEN_REGISTRY.values():
        symbols.update(tokens.keys())
    symbols.update(symbol for symbol, _chain in PRICE_FEEDS)
    symbols.update(FEED_SYMBOL_ALIASES)
    return symbols


KNOWN_SYMBOLS = frozenset(_known_symbols())


def _tokens_in(words: List[str]) -> List[tuple]:
    """(index, symbol) for every word that names a known token."""
    found = []
    for index, word in enumerate(words):
        if word in SLIPPAGE_LEVELS:
            continue
        symbol = normalize_token(word)
        if symbol in KNOWN_SYMBOLS:
            found.append((index, symbol))
    return found


def _numbers_in(words: List[str]) -> List[tuple]:
    return [(index, word.replace(",", "")) for index, word in enumerate(words) if _NUMBER.match(word)]


def _lenient_swap(words: List[str], chain_id: int, slippage: Optional[float]) -> Optional[Draft]:
    tokens = _tokens_in(words)
    numbers = _numbers_in(words)
    distinct = []
    for index, symbol in tokens:
        if symbol not in [s for _, s in distinct]:
            distinct.append((index, symbol))
    if len(distinct) < 2 or not numbers:
        return None

    (src_index, source), (dst_index, dest) = distinct[0], distinct[1]
    amount_index, amount = numbers[0]
    buying = "buy" in words or "get" in words
    if buying and amount_index < src_index:
        # "buy 5 usdc ... eth": the first token named is what is being bought
        source, dest = dest, source
        reverse = True
    else:
        # The amount belongs to whichever token follows it
        reverse = src_index < amount_index < dst_index
    try:
        return SwapDraft(
            source_token=source,
            dest_token=dest,
            amount=amount,
            reverse=reverse,
            chain_id=chain_id,
            slippage_percent=slippage,
        )
    except ValidationError:
        return None


def _lenient_conditional(words: List[str], chain_id: int, slippage: Optional[float]) -> Optional[Draft]:
    tokens = _tokens_in(words)
    numbers = _numbers_in(words)
    if not tokens or len(numbers) < 2:
        return None

    action = "buy" if "buy" in words and "sell" not in words else "sell"
    if _UPWARD_WORDS.intersection(words):
        comparator = ">="
    elif _DOWNWARD_WORDS.intersection(words):
        comparator = "<="
    else:
        comparator = ">=" if action == "sell" else "<="

    try:
        return ConditionalOrderDraft(
            action=action,
            token=tokens[0][1],
            amount=numbers[0][1],
            trigger_comparator=comparator,
            trigger_price=Decimal(numbers[-1][1]),
            chain_id=chain_id,
            slippage_percent=slippage,
        )
    except ValidationError:
        return None


def keyword_fallback(text: str, default_chain_id: int) -> Draft:
    """Guess the intent from vocabulary alone."""
    extracted = extract_modifiers(text, default_chain_id)
    words = _WORD.findall(extracted.text)
    vocabulary = set(words)
    chain_id = extracted.chain_id

    if vocabulary & TRENDING_WORDS:
        return TrendingDraft(chain_id=chain_id)

    has_trade_words = bool(vocabulary & SWAP_WORDS)
    if has_trade_words and vocabulary & CONDITIONAL_WORDS:
        draft = _lenient_conditional(words, chain_id, extracted.slippage_percent)
        if draft is not None:
            return draft
        return UnknownDraft(
            chain_id=chain_id,
            suspected_mode=CONDITIONAL_ORDER,
            reason="Looks like a conditional order, but the token, amount or trigger price is missing",
        )

    if has_trade_words:
        draft = _lenient_swap(words, chain_id, extracted.slippage_percent)
        if draft is not None:
            return draft
        return UnknownDraft(
            chain_id=chain_id,
            suspected_mode=SWAP,
            reason="Looks like a swap, but both tokens and an amount are needed",
        )

    return UnknownDraft(chain_id=chain_id, reason="No trading intent recognised")


__all__ = [
    "SWAP_WORDS",
    "CONDITIONAL_WORDS",
    "TRENDING_WORDS",
    "KNOWN_SYMBOLS",
    "keyword_fallback",
]
