"""
Deterministic intent templates.

Commands are lowercased and whitespace-collapsed, slippage and network phrases
are pulled out first, and what remains is matched against an ordered list of
templates. The first template that matches wins.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional, Pattern, Tuple

from pydantic import ValidationError

from ..normalizer import normalize_token, resolve_chain
from ..registry import CHAIN_ALIAS_TO_ID
from .models import ConditionalOrderDraft, Draft, SwapDraft, TrendingDraft

AMOUNT = r"(?:\d+(?:,\d{3})*(?:\.\d+)?|\.\d+)"
TOKEN = r"\$?[a-z][a-z0-9.\-]*"

SLIPPAGE_LEVELS = {"low": 0.5, "medium": 1.5, "high": 3.0}

_PREAMBLE = re.compile(
    r"^(?:(?:please|pls|hey|ok|okay)[\s,]+|(?:can|could|would)\s+you\s+|"
    r"i\s+(?:want|would\s+like|wanna|need)\s+to\s+|i'd\s+like\s+to\s+|let'?s\s+)+"
)
_FILLER = re.compile(r"\b(?:some|my|of|tokens?|coins?)\b\s*")

_SLIPPAGE_PATTERNS: List[Pattern[str]] = [
    re.compile(
        r"\b(?:with\s+)?(?:a\s+)?(?:max(?:imum)?\s+)?slippage(?:\s+(?:of|at|to|tolerance))?"
        r"\s*[=:]?\s*(?P<value>\d+(?:\.\d+)?)\s*%"
    ),
    re.compile(r"\b(?:with\s+|at\s+)?(?P<value>\d+(?:\.\d+)?)\s*%\s*(?:max\s+)?slippage\b"),
    re.compile(r"\b(?:with\s+|using\s+)?(?:a\s+)?(?P<level>low|medium|high)\s+slippage\b"),
]

_CHAIN_NAMES = sorted(CHAIN_ALIAS_TO_ID.keys(), key=len, reverse=True)
_KNOWN_CHAIN = re.compile(
    r"\s*\b(?:on|via)\s+(?:the\s+)?(?P<chain>"
    + "|".join(re.escape(name) for name in _CHAIN_NAMES)
    + r")(?:\s+(?:network|chain|mainnet))?\b"
)
_TRAILING_CHAIN = re.compile(r"\s+on\s+(?:the\s+)?(?P<chain>[a-z][a-z0-9\-]*)(?:\s+(?:network|chain))?$")

# Trigger phrase -> comparator. None means "depends on the order side".
_COMPARATOR_WORDS = {
    ">=": ">=", "=>": ">=", "<=": "<=", "=<": "<=",
    ">": ">", "<": "<", "=": "=", "==": "=",
    "above": ">=", "over": ">=", "greater than": ">", "more than": ">",
    "higher than": ">", "at least": ">=", "rises above": ">=", "rises to": ">=",
    "goes above": ">=", "goes up to": ">=", "climbs to": ">=", "exceeds": ">",
    "below": "<=", "under": "<=", "less than": "<", "lower than": "<",
    "at most": "<=", "drops below": "<=", "drops to": "<=", "falls below": "<=",
    "falls to": "<=", "dips below": "<=", "dips to": "<=", "goes below": "<=",
    "equals": "=", "is exactly": "=",
    "hits": None, "reaches": None, "touches": None, "is at": None, "at": None,
}
_COMPARATOR = "|".join(
    re.escape(word) for word in sorted(_COMPARATOR_WORDS, key=len, reverse=True)
)

_TRIGGER = re.compile(
    rf"^(?:the\s+)?(?:price\s+of\s+{TOKEN}\s+|{TOKEN}\s+price\s+|{TOKEN}\s+)?(?:price\s+)?"
    rf"(?:is\s+|goes\s+|gets\s+)?(?P<cmp>{_COMPARATOR})\s*\$?\s*(?P<price>{AMOUNT})"
    r"(?:\s*(?:usd|usdc|dollars?|bucks))?$"
)


@dataclass
class Extracted:
    """Command text with network and slippage phrases removed."""

    text: str
    chain_id: int
    slippage_percent: Optional[float] = None


def clean_text(text: str) -> str:
    cleaned = re.sub(r"\s+", " ", (text or "").strip().lower())
    cleaned = re.sub(r"[.!?]+$", "", cleaned).strip()
    return cleaned


def extract_modifiers(text: str, default_chain_id: int) -> Extracted:
    """Strip slippage and "on CHAIN" phrases, returning what they resolved to."""
    remaining = clean_text(text)
    slippage: Optional[float] = None

    for pattern in _SLIPPAGE_PATTERNS:
        match = pattern.search(remaining)
        if not match:
            continue
        if match.groupdict().get("level"):
            slippage = SLIPPAGE_LEVELS[match.group("level")]
        else:
            slippage = float(match.group("value"))
        remaining = (remaining[:match.start()] + " " + remaining[match.end():]).strip()
        break

    chain_id = default_chain_id
    match = _KNOWN_CHAIN.search(remaining)
    if match:
        chain_id = CHAIN_ALIAS_TO_ID[match.group("chain")]
        remaining = remaining[:match.start()] + remaining[match.end():]
    else:
        match = _TRAILING_CHAIN.search(remaining)
        if match:
            chain_id = resolve_chain(match.group("chain"), default_chain_id)
            remaining = remaining[:match.start()]

    remaining = re.sub(r"\s+", " ", remaining).strip(" ,")
    return Extracted(text=remaining, chain_id=chain_id, slippage_percent=slippage)


def parse_trigger(phrase: str, action: str) -> Optional[Tuple[str, Decimal]]:
    """Read "price >= 15" / "eth drops below 1800" into (comparator, price)."""
    match = _TRIGGER.match(phrase.strip())
    if not match:
        return None
    comparator = _COMPARATOR_WORDS[match.group("cmp")]
    if comparator is None:
        # Selling on a hit is a take-profit, buying on a hit is a limit buy
        comparator = ">=" if action == "sell" else "<="
    return comparator, Decimal(match.group("price").replace(",", ""))


def _amount(raw: str) -> str:
    return raw.replace(",", "")


# --- templates -------------------------------------------------------------

Builder = Callable[[re.Match, Extracted], Optional[Draft]]

_SWAP_VERBS = r"(?:swap|convert|trade|exchange|change|turn)"


def _conditional(match: re.Match, ctx: Extracted) -> Optional[Draft]:
    action = match.group("action")
    trigger = parse_trigger(match.group("trigger"), action)
    if trigger is None:
        return None
    comparator, price = trigger
    quote = match.group("quote")
    return ConditionalOrderDraft(
        action=action,
        token=normalize_token(match.group("token")),
        amount=_amount(match.group("amount")),
        trigger_comparator=comparator,
        trigger_price=price,
        quote_token=normalize_token(quote) if quote else "USDC",
        chain_id=ctx.chain_id,
        slippage_percent=ctx.slippage_percent,
    )


def _protective(match: re.Match, ctx: Extracted) -> Optional[Draft]:
    kind = match.group("kind").replace(" ", "").replace("-", "")
    return ConditionalOrderDraft(
        action="sell",
        token=normalize_token(match.group("token")),
        amount=_amount(match.group("amount")),
        trigger_comparator="<=" if kind == "stoploss" else ">=",
        trigger_price=Decimal(_amount(match.group("price"))),
        chain_id=ctx.chain_id,
        slippage_percent=ctx.slippage_percent,
    )


def _limit_buy(match: re.Match, ctx: Extracted) -> Optional[Draft]:
    return ConditionalOrderDraft(
        action="buy",
        token=normalize_token(match.group("token")),
        amount=_amount(match.group("amount")),
        trigger_comparator="<=",
        trigger_price=Decimal(_amount(match.group("price"))),
        chain_id=ctx.chain_id,
        slippage_percent=ctx.slippage_percent,
    )


def _swap(reverse: bool) -> Builder:
    def build(match: re.Match, ctx: Extracted) -> Optional[Draft]:
        source = normalize_token(match.group("src"))
        dest = normalize_token(match.group("dst"))
        if not source or not dest:
            return None
        return SwapDraft(
            source_token=source,
            dest_token=dest,
            amount=_amount(match.group("amount")),
            reverse=reverse,
            chain_id=ctx.chain_id,
            slippage_percent=ctx.slippage_percent,
        )
    return build


def _trending(match: re.Match, ctx: Extracted) -> Optional[Draft]:
    return TrendingDraft(chain_id=ctx.chain_id)


TEMPLATES: List[Tuple[str, Pattern[str], Builder]] = [
    (
        "conditional",
        re.compile(
            rf"^(?P<action>buy|sell)\s+(?P<amount>{AMOUNT})\s+(?P<token>{TOKEN})"
            rf"(?:\s+(?:for|with|into|to)\s+(?P<quote>{TOKEN}))?"
            r"\s+(?:if|when|once|as\s+soon\s+as)\s+(?P<trigger>.+)$"
        ),
        _conditional,
    ),
    (
        "protective",
        re.compile(
            r"^(?:set\s+(?:up\s+)?(?:a\s+)?)?(?P<kind>stop[\s-]?loss|take[\s-]?profit)\s+(?:on|for)\s+"
            rf"(?P<amount>{AMOUNT})\s+(?P<token>{TOKEN})\s+(?:at|@)\s*\$?(?P<price>{AMOUNT})$"
        ),
        _protective,
    ),
    (
        "limit-buy",
        re.compile(
            rf"^(?:limit\s+buy|buy\s+limit(?:\s+order)?)\s+(?P<amount>{AMOUNT})\s+(?P<token>{TOKEN})"
            rf"\s+(?:at|@)\s*\$?(?P<price>{AMOUNT})$"
        ),
        _limit_buy,
    ),
    (
        "swap-to-amount",
        re.compile(
            rf"^{_SWAP_VERBS}\s+(?P<src>{TOKEN})\s+(?:to|for|into)\s+(?P<amount>{AMOUNT})\s+(?P<dst>{TOKEN})$"
        ),
        _swap(reverse=True),
    ),
    (
        "swap",
        re.compile(
            rf"^{_SWAP_VERBS}\s+(?P<amount>{AMOUNT})\s+(?P<src>{TOKEN})\s+(?:to|for|into)\s+(?P<dst>{TOKEN})$"
        ),
        _swap(reverse=False),
    ),
    (
        "buy-with",
        re.compile(
            rf"^(?:buy|get)\s+(?P<amount>{AMOUNT})\s+(?P<dst>{TOKEN})\s+(?:with|using|for)\s+(?P<src>{TOKEN})$"
        ),
        _swap(reverse=True),
    ),
    (
        "buy-spending",
        re.compile(
            rf"^(?:buy|get)\s+(?P<dst>{TOKEN})\s+(?:with|using)\s+(?P<amount>{AMOUNT})\s+(?P<src>{TOKEN})$"
        ),
        _swap(reverse=False),
    ),
    (
        "sell-for",
        re.compile(
            rf"^sell\s+(?P<amount>{AMOUNT})\s+(?P<src>{TOKEN})\s+(?:for|to|into)\s+(?P<dst>{TOKEN})$"
        ),
        _swap(reverse=False),
    ),
    (
        "bare-pair",
        re.compile(
            rf"^(?P<amount>{AMOUNT})\s+(?P<src>{TOKEN})\s+(?:to|for|into|->|=>)\s+(?P<dst>{TOKEN})$"
        ),
        _swap(reverse=False),
    ),
    (
        "trending",
        re.compile(
            r"^(?:(?:show|list|get|find|give)\s+(?:me\s+)?|what(?:'s|\s+is|\s+are)\s+)?(?:the\s+)?(?:top\s+)?"
            r"(?:trending(?:\s+(?:tokens?|coins?))?|(?:hot|popular|top)\s+(?:tokens?|coins?))"
            r"(?:\s+(?:right\s+now|now|today))?$"
        ),
        _trending,
    ),
]


def match_template(text: str, default_chain_id: int) -> Optional[Draft]:
    """Run the ordered templates; None when nothing matches."""
    extracted = extract_modifiers(text, default_chain_id)
    candidate = _PREAMBLE.sub("", extracted.text)

    for variant in (candidate, _FILLER.sub("", candidate).strip()):
        for _name, pattern, build in TEMPLATES:
            match = pattern.match(variant)
            if not match:
                continue
            try:
                draft = build(match, extracted)
            except ValidationError:
                # e.g. a zero amount; let later templates or stages try
                continue
            if draft is not None:
                return draft
    return None


__all__ = [
    "AMOUNT",
    "TOKEN",
    "SLIPPAGE_LEVELS",
    "TEMPLATES",
    "Extracted",
    "clean_text",
    "extract_modifiers",
    "match_template",
    "parse_trigger",
]
