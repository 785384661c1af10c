"""
Tests for the deterministic intent templates.

Each case is a command a user might type and the draft the template stage
should produce without any help from the completion service.
"""

from decimal import Decimal

import pytest

from copilot.core.intent import ConditionalOrderDraft, SwapDraft, TrendingDraft
from copilot.core.intent.patterns import TEMPLATES, extract_modifiers, match_template, parse_trigger

BASE = 8453


def parse(text: str, default_chain_id: int = BASE):
    return match_template(text, default_chain_id)


# =============================================================================
# Modifiers
# =============================================================================

class TestExtractModifiers:

    def test_chain_phrase_is_removed(self):
        extracted = extract_modifiers("Swap 1 ETH to USDC on Arbitrum", BASE)
        assert extracted.chain_id == 42161
        assert extracted.text == "swap 1 eth to usdc"

    def test_unknown_trailing_chain_falls_back_to_default(self):
        extracted = extract_modifiers("swap 1 eth to usdc on mars", BASE)
        assert extracted.chain_id == BASE
        assert extracted.text == "swap 1 eth to usdc"

    @pytest.mark.parametrize("text, expected", [
        ("swap 1 eth to usdc with 2% slippage", 2.0),
        ("swap 1 eth to usdc slippage 0.5%", 0.5),
        ("swap 1 eth to usdc with max slippage of 1.5%", 1.5),
        ("swap 1 eth to usdc with high slippage", 3.0),
        ("swap 1 eth to usdc using low slippage", 0.5),
    ])
    def test_slippage_phrases(self, text, expected):
        extracted = extract_modifiers(text, BASE)
        assert extracted.slippage_percent == expected
        assert extracted.text == "swap 1 eth to usdc"

    def test_no_modifiers(self):
        extracted = extract_modifiers("  swap 1 ETH to USDC!  ", BASE)
        assert extracted.chain_id == BASE
        assert extracted.slippage_percent is None
        assert extracted.text == "swap 1 eth to usdc"


class TestParseTrigger:

    @pytest.mark.parametrize("phrase, action, expected", [
        ("price >= 15", "sell", (">=", Decimal("15"))),
        ("price drops to 2000", "buy", ("<=", Decimal("2000"))),
        ("eth goes above $3,500", "sell", (">=", Decimal("3500"))),
        ("the price of uni is below 4.5 usd", "sell", ("<=", Decimal("4.5"))),
        ("price hits 20 dollars", "sell", (">=", Decimal("20"))),
        ("price hits 1800", "buy", ("<=", Decimal("1800"))),
    ])
    def test_trigger_phrases(self, phrase, action, expected):
        assert parse_trigger(phrase, action) == expected

    def test_unreadable_trigger(self):
        assert parse_trigger("it feels right", "sell") is None


# =============================================================================
# Swaps
# =============================================================================

class TestSwapTemplates:

    def test_exact_input_swap(self):
        draft = parse("swap 1 ETH to USDC")
        assert draft == SwapDraft(source_token="ETH", dest_token="USDC", amount="1", chain_id=BASE)
        assert draft.reverse is False

    def test_exact_output_swap(self):
        draft = parse("swap ETH to 5 USDC")
        assert isinstance(draft, SwapDraft)
        assert (draft.source_token, draft.dest_token, draft.amount) == ("ETH", "USDC", "5")
        assert draft.reverse is True

    def test_chain_and_slippage_carry_through(self):
        draft = parse("exchange 0.5 WETH for DAI on ethereum with 2% slippage")
        assert isinstance(draft, SwapDraft)
        assert draft.chain_id == 1
        assert draft.slippage_percent == 2.0
        assert (draft.source_token, draft.dest_token, draft.amount) == ("WETH", "DAI", "0.5")

    def test_thousands_separator(self):
        draft = parse("convert 1,000 usdc into eth")
        assert draft.amount == "1000"

    def test_aliases_are_normalized(self):
        draft = parse("trade 2 ethereum for tether")
        assert (draft.source_token, draft.dest_token) == ("ETH", "USDT")

    def test_buy_amount_with_token_is_exact_output(self):
        draft = parse("buy 100 usdc with eth")
        assert isinstance(draft, SwapDraft)
        assert (draft.source_token, draft.dest_token, draft.amount) == ("ETH", "USDC", "100")
        assert draft.reverse is True

    def test_buy_spending_amount_is_exact_input(self):
        draft = parse("buy eth with 100 usdc")
        assert (draft.source_token, draft.dest_token, draft.amount) == ("USDC", "ETH", "100")
        assert draft.reverse is False

    def test_sell_for(self):
        draft = parse("sell 2 eth for usdc")
        assert isinstance(draft, SwapDraft)
        assert (draft.source_token, draft.dest_token, draft.reverse) == ("ETH", "USDC", False)

    def test_bare_pair(self):
        draft = parse("1 eth -> usdc")
        assert (draft.source_token, draft.dest_token, draft.amount) == ("ETH", "USDC", "1")

    def test_preamble_and_filler(self):
        draft = parse("Please swap some of my ETH to 100 USDC")
        assert isinstance(draft, SwapDraft)
        assert draft.reverse is True
        assert draft.amount == "100"

    def test_zero_amount_does_not_match(self):
        assert parse("swap 0 eth to usdc") is None


# =============================================================================
# Conditional orders
# =============================================================================

class TestConditionalTemplates:

    def test_sell_if_price_at_least(self):
        draft = parse("sell 100 UNI if price >= 15")
        assert draft == ConditionalOrderDraft(
            action="sell",
            token="UNI",
            amount="100",
            trigger_comparator=">=",
            trigger_price=Decimal("15"),
            chain_id=BASE,
        )
        assert draft.quote_token == "USDC"

    def test_buy_when_price_drops(self):
        draft = parse("buy 1 eth when price drops to 2000")
        assert isinstance(draft, ConditionalOrderDraft)
        assert (draft.action, draft.trigger_comparator, draft.trigger_price) == ("buy", "<=", Decimal("2000"))

    def test_hits_depends_on_side(self):
        sell = parse("sell 50 uni when price hits 20")
        buy = parse("buy 2 eth when eth hits 1800")
        assert sell.trigger_comparator == ">="
        assert buy.trigger_comparator == "<="

    def test_quote_token(self):
        draft = parse("sell 1 eth for dai if price >= 4000")
        assert draft.quote_token == "DAI"

    def test_stop_loss(self):
        draft = parse("set a stop loss on 2 eth at $1500")
        assert isinstance(draft, ConditionalOrderDraft)
        assert (draft.action, draft.trigger_comparator, draft.trigger_price) == ("sell", "<=", Decimal("1500"))

    def test_take_profit(self):
        draft = parse("take-profit on 1.5 eth at 4000")
        assert (draft.action, draft.trigger_comparator) == ("sell", ">=")

    def test_limit_buy(self):
        draft = parse("limit buy 1 eth at 1800 on ethereum")
        assert (draft.action, draft.trigger_comparator, draft.chain_id) == ("buy", "<=", 1)


# =============================================================================
# Trending
# =============================================================================

class TestTrendingTemplate:

    @pytest.mark.parametrize("text", [
        "trending",
        "show trending tokens",
        "what's trending right now",
        "list the hot coins",
    ])
    def test_trending_phrases(self, text):
        assert isinstance(parse(text), TrendingDraft)

    def test_trending_on_chain(self):
        assert parse("show me trending tokens on polygon") == TrendingDraft(chain_id=137)

    def test_unrelated_text(self):
        assert parse("what is the weather like") is None


# =============================================================================
# Every template
# =============================================================================

EXAMPLES = {
    "conditional": "sell 100 uni if price >= 15",
    "protective": "set a stop loss on 2 eth at $1500",
    "limit-buy": "limit buy 1 eth at 1800",
    "swap-to-amount": "swap eth to 5 usdc",
    "swap": "swap 1 eth to usdc",
    "buy-with": "buy 100 usdc with eth",
    "buy-spending": "buy eth with 100 usdc",
    "sell-for": "sell 2 eth for usdc",
    "bare-pair": "1 eth -> usdc",
    "trending": "show trending tokens",
}


def first_matching_template(text: str):
    cleaned = extract_modifiers(text, BASE).text
    return next((name for name, pattern, _ in TEMPLATES if pattern.match(cleaned)), None)


def mixed_case(text: str) -> str:
    return "".join(c.upper() if i % 2 else c for i, c in enumerate(text))


def padded(text: str) -> str:
    return "  " + "   ".join(text.split()) + " \t"


class TestEveryTemplate:

    def test_each_template_has_an_example(self):
        assert set(EXAMPLES) == {name for name, _, _ in TEMPLATES}

    @pytest.mark.parametrize("name", [name for name, _, _ in TEMPLATES])
    def test_example_is_claimed_by_its_template(self, name):
        assert first_matching_template(EXAMPLES[name]) == name
        assert parse(EXAMPLES[name]) is not None

    @pytest.mark.parametrize("name", [name for name, _, _ in TEMPLATES])
    @pytest.mark.parametrize("variant", [str.upper, mixed_case, padded], ids=["upper", "mixed", "padded"])
    def test_case_and_spacing_do_not_change_the_draft(self, name, variant):
        text = EXAMPLES[name]
        assert parse(variant(text)) == parse(text)
