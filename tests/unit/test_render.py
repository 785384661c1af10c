from decimal import Decimal
from types import SimpleNamespace

import pytest

from copilot.core.errors import ExecutionErrorKind, ValidationErrorKind, remediation_for
from copilot.core.execution import TradeState, TradeStatusSummary
from copilot.core.intent import ConditionalOrderDraft, SwapDraft, TrendingDraft, UnknownDraft
from copilot.core.render import (
    CANCEL_TEXT,
    CONFIRM_TEXT,
    GREETING_TEXT,
    quick_reply,
    render_draft,
    render_status,
    render_validation,
    response_text,
)
from copilot.core.validation import ValidationResult


@pytest.fixture
def swap_draft() -> SwapDraft:
    return SwapDraft(source_token="ETH", dest_token="USDC", amount="1", chain_id=8453)


@pytest.fixture
def valid_result() -> ValidationResult:
    return ValidationResult(
        is_valid=True,
        input_token="ETH",
        output_token="USDC",
        required_input_amount=Decimal("0.033333333333333334"),
        expected_output_amount=Decimal("100"),
        estimated_gas_cost=Decimal("0.000018"),
        slippage_percent=1.0,
        is_estimate=True,
        warnings=["Gas estimate unavailable; showing a conservative fallback cost"],
    )


@pytest.mark.parametrize("text, expected", [
    ("hi", GREETING_TEXT),
    ("Hello!", GREETING_TEXT),
    ("yes", CONFIRM_TEXT),
    ("do it", CONFIRM_TEXT),
    ("cancel", CANCEL_TEXT),
    ("swap 1 eth to usdc", None),
])
def test_quick_reply(text, expected):
    assert quick_reply(text) == expected


def test_render_drafts(swap_draft):
    assert render_draft(swap_draft) == "Swap 1 ETH for USDC on Base"
    reverse = swap_draft.model_copy(update={"reverse": True, "amount": "100"})
    assert render_draft(reverse) == "Swap ETH for 100 USDC on Base"
    order = ConditionalOrderDraft(
        action="sell", token="UNI", amount="100",
        trigger_comparator=">=", trigger_price=Decimal("15"), chain_id=1,
    )
    assert render_draft(order) == "Sell 100 UNI when price >= $15 on Ethereum"


def test_render_validation_marks_estimates(valid_result):
    text = render_validation(valid_result, 8453)

    assert "~0.03333333 ETH" in text
    assert "~100 USDC" in text
    assert "0.000018 ETH" in text
    assert "⚠️ Gas estimate unavailable" in text


def test_render_failed_validation():
    failed = ValidationResult.failure(ValidationErrorKind.UNSUPPORTED_PAIR, "PEPE is not supported on Base")

    text = render_validation(failed, 8453)

    assert text.startswith("**Error:** PEPE is not supported on Base")
    assert failed.remediation in text


def test_response_text_asks_for_wallet(swap_draft):
    text = response_text(swap_draft, None, wallet_connected=False)
    assert "Connect your wallet" in text


def test_response_text_ready(swap_draft, valid_result):
    text = response_text(swap_draft, valid_result, wallet_connected=True)
    assert text.startswith("**Trade ready for execution**")
    assert "Would you like me to execute this trade?" in text


def test_response_text_other_modes():
    assert "Base" in response_text(TrendingDraft(chain_id=8453))
    unknown = response_text(UnknownDraft(chain_id=8453, reason="No trading intent recognised"))
    assert unknown.startswith("No trading intent recognised.")
    assert "swap 1 ETH to USDC" in unknown


def test_response_text_rejects_unrecognised_drafts():
    with pytest.raises(ValueError, match="bogus"):
        response_text(SimpleNamespace(mode="bogus", chain_id=8453))


def test_render_status_failure():
    summary = TradeStatusSummary(
        state=TradeState.FAILED,
        status_line="Trade failed: User rejected the request",
        tx_id=None,
        error_detail="User rejected the request",
        error_kind=ExecutionErrorKind.WALLET_REJECTED,
        remediation=remediation_for(ExecutionErrorKind.WALLET_REJECTED),
        history=[],
    )

    text = render_status(summary)

    assert text.startswith("**Status:** failed: Trade failed")
    assert "(wallet-rejected)" in text
    assert summary.remediation in text
