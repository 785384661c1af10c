"""
Tests for the Intent Parser

Covers stage ordering (templates, interpreter, keyword fallback), follow-up
context from recent history and the keyword fallback on its own.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from copilot.core.intent import (
    DRAFT_TOOL,
    ConditionalOrderDraft,
    HistoryMessage,
    IntentParser,
    InterpreterUnavailable,
    SwapDraft,
    TrendingDraft,
    UnknownDraft,
    build_contextual_command,
)
from copilot.core.intent.fallback import keyword_fallback

BASE = 8453


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def interpreter() -> MagicMock:
    """Interpreter stub; tests set the return value or side effect."""
    stub = MagicMock()
    stub.interpret = AsyncMock()
    return stub


@pytest.fixture
def parser(interpreter: MagicMock) -> IntentParser:
    return IntentParser(interpreter=interpreter)


# =============================================================================
# Stage ordering
# =============================================================================

class TestIntentParser:

    @pytest.mark.asyncio
    async def test_template_match_skips_interpreter(self, parser: IntentParser, interpreter: MagicMock):
        draft = await parser.parse("swap 1 ETH to USDC", default_chain_id=BASE)

        assert isinstance(draft, SwapDraft)
        assert draft.chain_id == BASE
        interpreter.interpret.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_interpreter_used_when_no_template_matches(self, parser: IntentParser, interpreter: MagicMock):
        interpreter.interpret.return_value = SwapDraft(
            source_token="weth",
            dest_token="usd coin",
            amount="3",
            chain_id=BASE,
        )

        draft = await parser.parse("dump 3 of my wrapped eth into stables", default_chain_id=BASE)

        interpreter.interpret.assert_awaited_once()
        args, kwargs = interpreter.interpret.call_args
        assert args[1] is DRAFT_TOOL
        assert kwargs["default_chain_id"] == BASE
        # Interpreter output is re-normalized
        assert (draft.source_token, draft.dest_token) == ("WETH", "USDC")

    @pytest.mark.asyncio
    async def test_unavailable_interpreter_falls_back_to_keywords(self, parser: IntentParser, interpreter: MagicMock):
        interpreter.interpret.side_effect = InterpreterUnavailable("completion timed out")

        draft = await parser.parse("trade eth usdc 5", default_chain_id=BASE)

        assert isinstance(draft, SwapDraft)
        assert (draft.source_token, draft.dest_token, draft.amount, draft.reverse) == ("ETH", "USDC", "5", False)

    @pytest.mark.asyncio
    async def test_without_interpreter(self):
        parser = IntentParser()
        draft = await parser.parse("sell uni if the price goes way up", default_chain_id=BASE)

        assert isinstance(draft, UnknownDraft)
        assert draft.suspected_mode == "conditional_order"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "?!"])
    async def test_empty_command(self, parser: IntentParser, interpreter: MagicMock, text: str):
        draft = await parser.parse(text, default_chain_id=BASE)

        assert isinstance(draft, UnknownDraft)
        assert draft.reason == "Empty command"
        interpreter.interpret.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_parse_never_raises_for_noise(self):
        draft = await IntentParser().parse("what's the weather", default_chain_id=1)

        assert isinstance(draft, UnknownDraft)
        assert draft.suspected_mode is None
        assert draft.chain_id == 1

    @pytest.mark.asyncio
    async def test_follow_up_uses_history(self):
        history = [
            HistoryMessage(role="user", content="swap 1 eth to usdc"),
            HistoryMessage(role="assistant", content="Connect your wallet to continue."),
        ]

        draft = await IntentParser().parse("yes do it", default_chain_id=BASE, history=history)

        assert isinstance(draft, SwapDraft)
        assert (draft.source_token, draft.dest_token, draft.amount) == ("ETH", "USDC", "1")


# =============================================================================
# Follow-up context
# =============================================================================

class TestContextualCommand:

    def test_no_history(self):
        assert build_contextual_command("yes", None) == "yes"

    def test_long_text_is_left_alone(self):
        history = [HistoryMessage(content="swap 1 eth to usdc")]
        text = "actually swap 2 eth to dai instead"
        assert build_contextual_command(text, history) == text

    def test_text_without_continuation_words(self):
        history = [HistoryMessage(content="swap 1 eth to usdc")]
        assert build_contextual_command("show trending", history) == "show trending"

    def test_only_recent_user_messages(self):
        history = [
            {"role": "user", "content": "hello"},
            {"role": "user", "content": "swap 1 eth"},
            {"role": "assistant", "content": "To which token?"},
            {"role": "user", "content": "to usdc"},
        ]
        assert build_contextual_command("ok do it", history) == "swap 1 eth to usdc ok do it"


# =============================================================================
# Keyword fallback
# =============================================================================

class TestKeywordFallback:

    def test_trending_vocabulary(self):
        assert keyword_fallback("anything popular on arbitrum?", BASE) == TrendingDraft(chain_id=42161)

    def test_buy_amount_before_tokens_is_exact_output(self):
        draft = keyword_fallback("could you get me 5 usdc, paying in eth", BASE)

        assert isinstance(draft, SwapDraft)
        assert (draft.source_token, draft.dest_token, draft.amount) == ("ETH", "USDC", "5")
        assert draft.reverse is True

    def test_amount_between_tokens_is_exact_output(self):
        draft = keyword_fallback("swap eth and receive 100 usdc", BASE)
        assert draft.reverse is True
        assert draft.amount == "100"

    def test_lenient_conditional(self):
        draft = keyword_fallback("sell 10 uni when it rises above 12", BASE)

        assert isinstance(draft, ConditionalOrderDraft)
        assert (draft.action, draft.token, draft.amount) == ("sell", "UNI", "10")
        assert draft.trigger_comparator == ">="
        assert str(draft.trigger_price) == "12"

    def test_swap_missing_fields(self):
        draft = keyword_fallback("swap eth please", BASE)
        assert draft == UnknownDraft(
            chain_id=BASE,
            suspected_mode="swap",
            reason="Looks like a swap, but both tokens and an amount are needed",
        )

    def test_no_intent(self):
        draft = keyword_fallback("good morning", BASE)
        assert isinstance(draft, UnknownDraft)
        assert draft.suspected_mode is None
