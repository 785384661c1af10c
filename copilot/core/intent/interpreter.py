"""
AI interpretation stage.

The parser talks to the text-completion service only through the narrow
``IntentInterpreter`` protocol so tests can substitute a fake. The production
interpreter forces exactly one tool call whose input is the flat draft shape
below, then converts the payload into a Draft.
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from ...providers.llm import LLMMessage, LLMProvider, LLMProviderError, get_llm_provider
from ...providers.llm.base import ToolDefinition, ToolParameter, ToolParameterType
from ..normalizer import normalize_token, resolve_chain
from .models import (
    CONDITIONAL_ORDER,
    SWAP,
    TRENDING,
    ConditionalOrderDraft,
    Draft,
    SwapDraft,
    TrendingDraft,
    UnknownDraft,
)

logger = logging.getLogger(__name__)


class InterpreterUnavailable(Exception):
    """The completion service could not produce a usable draft."""


DRAFT_TOOL = ToolDefinition(
    name="record_trading_intent",
    description="Record the structured trading intent expressed by the user's command.",
    parameters=[
        ToolParameter(
            name="mode",
            type=ToolParameterType.STRING,
            description="swap: exchange one token for another. conditional_order: buy/sell once a price "
                        "condition holds. trending: market data request. unknown: no trading intent.",
            enum=[SWAP, CONDITIONAL_ORDER, TRENDING, "unknown"],
        ),
        ToolParameter(name="source_token", type=ToolParameterType.STRING, required=False, nullable=True,
                      description="Swap: token being spent, uppercase symbol"),
        ToolParameter(name="dest_token", type=ToolParameterType.STRING, required=False, nullable=True,
                      description="Swap: token being received, uppercase symbol"),
        ToolParameter(name="amount", type=ToolParameterType.STRING, required=False, nullable=True,
                      description="Decimal amount as written by the user"),
        ToolParameter(name="reverse", type=ToolParameterType.BOOLEAN, required=False, nullable=True,
                      description="Swap: true when amount is the desired amount of dest_token"),
        ToolParameter(name="action", type=ToolParameterType.STRING, required=False, nullable=True,
                      enum=["buy", "sell"], description="Conditional order side"),
        ToolParameter(name="token", type=ToolParameterType.STRING, required=False, nullable=True,
                      description="Conditional order: the token being bought or sold"),
        ToolParameter(name="trigger_comparator", type=ToolParameterType.STRING, required=False, nullable=True,
                      enum=[">=", "<=", ">", "<", "="], description="Conditional order: price comparison"),
        ToolParameter(name="trigger_price", type=ToolParameterType.NUMBER, required=False, nullable=True,
                      description="Conditional order: USD trigger price"),
        ToolParameter(name="chain", type=ToolParameterType.STRING, required=False, nullable=True,
                      description="Network name or chain id if the user named one"),
        ToolParameter(name="slippage_percent", type=ToolParameterType.NUMBER, required=False, nullable=True,
                      description="Slippage tolerance in percent if the user gave one"),
    ],
)

SYSTEM_PROMPT = """You convert crypto trading commands into structured data by calling record_trading_intent exactly once.

Direction and amount:
- "swap 1 ETH to USDC": spend 1 ETH (amount=1, source_token=ETH, dest_token=USDC, reverse=false)
- "swap ETH to 1 USDC": receive 1 USDC (amount=1, source_token=ETH, dest_token=USDC, reverse=true)
- "get 5 USDC with ETH": receive 5 USDC (reverse=true)
- "convert 2 ETH to USDC": spend 2 ETH (reverse=false)
reverse is true only when the amount refers to the token being received.

Token symbols are uppercase tickers: ethereum/eth -> ETH, bitcoin/btc -> BTC, usd-coin -> USDC, tether -> USDT.

Conditional orders ("sell if", "buy when", "stop loss", "take profit"):
- "sell 100 UNI if price >= 15" -> action=sell, token=UNI, amount=100, trigger_comparator=">=", trigger_price=15
- "sell my 50 uni tokens if price hits 20 dollars" -> trigger_comparator=">=", trigger_price=20

Trending requests ("trending", "what tokens are hot right now") -> mode=trending.
Leave fields null when the user did not say them. Use mode=unknown when there is no trading intent."""


class IntentInterpreter(Protocol):
    async def interpret(self, text: str, schema: ToolDefinition, *, default_chain_id: int) -> Draft:
        """Turn free text into a Draft or raise InterpreterUnavailable."""
        ...


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def draft_from_payload(payload: Dict[str, Any], default_chain_id: int) -> Draft:
    """Convert the flat tool payload into a Draft.

    Incomplete swap or conditional payloads become ``UnknownDraft`` with the
    suspected mode set rather than raising.
    """
    mode = str(payload.get("mode") or "unknown").lower()
    chain_id = resolve_chain(payload.get("chain"), default_chain_id)
    slippage = payload.get("slippage_percent")

    try:
        if mode == SWAP:
            source = normalize_token(payload.get("source_token"))
            dest = normalize_token(payload.get("dest_token"))
            if not source or not dest or not payload.get("amount"):
                return UnknownDraft(chain_id=chain_id, suspected_mode=SWAP,
                                    reason="Swap is missing a token or an amount")
            return SwapDraft(
                source_token=source,
                dest_token=dest,
                amount=payload["amount"],
                reverse=bool(payload.get("reverse") or False),
                chain_id=chain_id,
                slippage_percent=slippage,
            )
        if mode in (CONDITIONAL_ORDER, "stop"):
            token = normalize_token(payload.get("token"))
            price = _as_decimal(payload.get("trigger_price"))
            action = str(payload.get("action") or "").lower()
            if not token or price is None or not payload.get("amount") or not action:
                return UnknownDraft(chain_id=chain_id, suspected_mode=CONDITIONAL_ORDER,
                                    reason="Conditional order is missing a token, amount, side or price")
            return ConditionalOrderDraft(
                action=action,
                token=token,
                amount=payload["amount"],
                trigger_comparator=payload.get("trigger_comparator") or (">=" if action == "sell" else "<="),
                trigger_price=price,
                chain_id=chain_id,
                slippage_percent=slippage,
            )
        if mode == TRENDING:
            return TrendingDraft(chain_id=chain_id)
    except ValidationError as exc:
        logger.info("Discarding malformed interpreter payload: %s", exc.errors()[:3])
        suspected = CONDITIONAL_ORDER if mode in (CONDITIONAL_ORDER, "stop") else SWAP
        return UnknownDraft(chain_id=chain_id, suspected_mode=suspected,
                            reason="The command could not be read completely")

    return UnknownDraft(chain_id=chain_id, reason="No trading intent recognised")


class LLMIntentInterpreter:
    """Interpreter backed by the configured text-completion provider."""

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        *,
        timeout_s: float = 12.0,
        max_tokens: int = 1024,
        temperature: float = 0.1,
    ):
        self._provider = provider
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature

    def _get_provider(self) -> LLMProvider:
        if self._provider is None:
            try:
                self._provider = get_llm_provider()
            except ValueError as exc:
                raise InterpreterUnavailable(str(exc)) from exc
        return self._provider

    async def interpret(self, text: str, schema: ToolDefinition, *, default_chain_id: int) -> Draft:
        provider = self._get_provider()
        messages = [
            LLMMessage(role="system", content=SYSTEM_PROMPT),
            LLMMessage(role="user", content=text),
        ]
        try:
            response = await asyncio.wait_for(
                provider.generate_response(
                    messages,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                    tools=[schema],
                    force_tool=schema.name,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Intent completion timed out after %.1fs", self.timeout_s)
            raise InterpreterUnavailable("completion timed out") from exc
        except LLMProviderError as exc:
            logger.warning("Intent completion failed: %s", exc)
            raise InterpreterUnavailable(str(exc)) from exc

        call = response.first_tool_call(schema.name)
        if call is None:
            raise InterpreterUnavailable("completion did not return structured output")
        return draft_from_payload(call.arguments, default_chain_id)


__all__ = [
    "DRAFT_TOOL",
    "SYSTEM_PROMPT",
    "IntentInterpreter",
    "InterpreterUnavailable",
    "LLMIntentInterpreter",
    "draft_from_payload",
]
