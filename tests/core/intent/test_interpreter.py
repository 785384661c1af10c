"""Tests for the completion-backed interpreter and payload conversion."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from copilot.config import settings
from copilot.core.intent import (
    DRAFT_TOOL,
    ConditionalOrderDraft,
    InterpreterUnavailable,
    LLMIntentInterpreter,
    SwapDraft,
    TrendingDraft,
    UnknownDraft,
    draft_from_payload,
)
from copilot.providers.llm import LLMProviderAPIError, LLMResponse, ToolCall

BASE = 8453


def tool_response(arguments: dict) -> LLMResponse:
    return LLMResponse(
        tool_calls=[ToolCall(id="toolu_1", name=DRAFT_TOOL.name, arguments=arguments)],
        finish_reason="tool_use",
    )


@pytest.fixture
def provider() -> MagicMock:
    stub = MagicMock()
    stub.generate_response = AsyncMock()
    return stub


# =============================================================================
# Payload conversion
# =============================================================================

class TestDraftFromPayload:

    def test_swap_payload(self):
        draft = draft_from_payload(
            {"mode": "swap", "source_token": "eth", "dest_token": "usdc", "amount": "1", "reverse": True,
             "chain": "arbitrum", "slippage_percent": 0.5},
            BASE,
        )
        assert draft == SwapDraft(
            source_token="ETH",
            dest_token="USDC",
            amount="1",
            reverse=True,
            chain_id=42161,
            slippage_percent=0.5,
        )

    def test_numeric_amount_is_kept_as_decimal_string(self):
        draft = draft_from_payload(
            {"mode": "swap", "source_token": "ETH", "dest_token": "USDC", "amount": 0.25},
            BASE,
        )
        assert draft.amount == "0.25"
        assert draft.chain_id == BASE

    def test_incomplete_swap(self):
        draft = draft_from_payload({"mode": "swap", "source_token": "ETH", "amount": "1"}, BASE)
        assert isinstance(draft, UnknownDraft)
        assert draft.suspected_mode == "swap"

    def test_malformed_amount(self):
        draft = draft_from_payload(
            {"mode": "swap", "source_token": "ETH", "dest_token": "USDC", "amount": "-1"},
            BASE,
        )
        assert isinstance(draft, UnknownDraft)
        assert draft.suspected_mode == "swap"

    def test_conditional_payload(self):
        draft = draft_from_payload(
            {"mode": "conditional_order", "action": "sell", "token": "uni", "amount": "100",
             "trigger_comparator": ">=", "trigger_price": 15},
            BASE,
        )
        assert isinstance(draft, ConditionalOrderDraft)
        assert (draft.token, draft.trigger_comparator, draft.trigger_price) == ("UNI", ">=", Decimal("15"))

    def test_conditional_comparator_defaults_by_side(self):
        draft = draft_from_payload(
            {"mode": "conditional_order", "action": "buy", "token": "ETH", "amount": "1", "trigger_price": "1800"},
            BASE,
        )
        assert draft.trigger_comparator == "<="

    def test_comparator_default_ignores_side_case(self):
        draft = draft_from_payload(
            {"mode": "conditional_order", "action": "SELL", "token": "ETH", "amount": "1", "trigger_price": "4000"},
            BASE,
        )
        assert (draft.action, draft.trigger_comparator) == ("sell", ">=")

    def test_stop_alias_without_side(self):
        draft = draft_from_payload({"mode": "stop", "token": "ETH", "amount": "1", "trigger_price": 1500}, BASE)
        assert isinstance(draft, UnknownDraft)
        assert draft.suspected_mode == "conditional_order"

    def test_trending_and_unknown(self):
        assert draft_from_payload({"mode": "trending", "chain": "base"}, 1) == TrendingDraft(chain_id=BASE)
        assert isinstance(draft_from_payload({"mode": "chitchat"}, BASE), UnknownDraft)


# =============================================================================
# LLM interpreter
# =============================================================================

class TestLLMIntentInterpreter:

    @pytest.mark.asyncio
    async def test_forces_the_draft_tool(self, provider: MagicMock):
        provider.generate_response.return_value = tool_response(
            {"mode": "swap", "source_token": "ETH", "dest_token": "USDC", "amount": "2"}
        )
        interpreter = LLMIntentInterpreter(provider, timeout_s=5, temperature=0.0)

        draft = await interpreter.interpret("flip 2 eth into usdc", DRAFT_TOOL, default_chain_id=BASE)

        assert isinstance(draft, SwapDraft)
        kwargs = provider.generate_response.call_args.kwargs
        assert kwargs["force_tool"] == DRAFT_TOOL.name
        assert kwargs["tools"] == [DRAFT_TOOL]
        assert kwargs["temperature"] == 0.0
        messages = provider.generate_response.call_args.args[0]
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[1].content == "flip 2 eth into usdc"

    @pytest.mark.asyncio
    async def test_missing_tool_call(self, provider: MagicMock):
        provider.generate_response.return_value = LLMResponse(content="Sure! You want to swap.")
        interpreter = LLMIntentInterpreter(provider)

        with pytest.raises(InterpreterUnavailable):
            await interpreter.interpret("flip 2 eth", DRAFT_TOOL, default_chain_id=BASE)

    @pytest.mark.asyncio
    async def test_provider_error(self, provider: MagicMock):
        provider.generate_response.side_effect = LLMProviderAPIError("API error: overloaded")
        interpreter = LLMIntentInterpreter(provider)

        with pytest.raises(InterpreterUnavailable):
            await interpreter.interpret("flip 2 eth", DRAFT_TOOL, default_chain_id=BASE)
        assert provider.generate_response.await_count == 1

    @pytest.mark.asyncio
    async def test_timeout(self, provider: MagicMock):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        provider.generate_response.side_effect = slow
        interpreter = LLMIntentInterpreter(provider, timeout_s=0.01)

        with pytest.raises(InterpreterUnavailable):
            await interpreter.interpret("flip 2 eth", DRAFT_TOOL, default_chain_id=BASE)

    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "anthropic_api_key", "")
        interpreter = LLMIntentInterpreter()

        with pytest.raises(InterpreterUnavailable):
            await interpreter.interpret("flip 2 eth", DRAFT_TOOL, default_chain_id=BASE)


class TestDraftTool:

    def test_anthropic_schema(self):
        schema = DRAFT_TOOL.to_anthropic_format()

        assert schema["name"] == "record_trading_intent"
        assert schema["input_schema"]["required"] == ["mode"]
        reverse = schema["input_schema"]["properties"]["reverse"]
        assert reverse["type"] == ["boolean", "null"]
        assert None in schema["input_schema"]["properties"]["action"]["enum"]
