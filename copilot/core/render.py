"""Plain-text/markdown rendering of drafts, validations and trade status."""

from typing import List, Optional

from .amounts import decimal_to_str
from .execution.models import TradeStatusSummary
from .intent.models import ConditionalOrderDraft, Draft, SwapDraft, TrendingDraft, UnknownDraft
from .normalizer import chain_name, native_symbol
from .validation.models import ValidationResult

GREETINGS = {"hi", "hello", "hey", "howdy", "gm"}
CONFIRMATIONS = {"yes", "ok", "sure", "execute", "confirm", "do it"}
CANCELLATIONS = {"no", "cancel", "stop", "nevermind", "never mind"}

EXAMPLES = (
    "**Swaps:**\n"
    '• "swap 1 ETH to USDC"\n'
    '• "exchange 0.5 WETH for DAI"\n'
    '• "swap ETH to 100 USDC on arbitrum"\n\n'
    "**Conditional orders:**\n"
    '• "sell 100 UNI if price >= 15"\n'
    '• "buy 1 ETH when price drops to 2000"\n\n'
    "**Market data:**\n"
    '• "show trending tokens on base"'
)

GREETING_TEXT = f"Hello! I'm your trading assistant.\n\nI can help you with:\n\n{EXAMPLES}\n\nWhat would you like to trade today?"

CONFIRM_TEXT = (
    "I understand you want to proceed, but I need a bit more context. "
    "Tell me the trade again, for example \"swap 1 ETH to USDC\"."
)

CANCEL_TEXT = "No problem, nothing was executed. What else can I help you with?"


def quick_reply(text: str) -> Optional[str]:
    """Canned responses for greetings and bare yes/no messages."""
    lowered = " ".join((text or "").lower().split()).strip(" .!?")
    if lowered in GREETINGS:
        return GREETING_TEXT
    if lowered in CONFIRMATIONS:
        return CONFIRM_TEXT
    if lowered in CANCELLATIONS:
        return CANCEL_TEXT
    return None


def render_draft(draft: Draft) -> str:
    where = chain_name(draft.chain_id)
    if isinstance(draft, SwapDraft):
        if draft.reverse:
            line = f"Swap {draft.source_token} for {draft.amount} {draft.dest_token}"
        else:
            line = f"Swap {draft.amount} {draft.source_token} for {draft.dest_token}"
        return f"{line} on {where}"
    if isinstance(draft, ConditionalOrderDraft):
        side = "Sell" if draft.action == "sell" else "Buy"
        return (
            f"{side} {draft.amount} {draft.token} when price {draft.trigger_comparator} "
            f"${decimal_to_str(draft.trigger_price)} on {where}"
        )
    if isinstance(draft, TrendingDraft):
        return f"Trending tokens on {where}"
    return "Unrecognised command"


def render_validation(validation: ValidationResult, chain_id: int) -> str:
    if not validation.is_valid:
        lines = [f"**Error:** {validation.error_message}"]
        if validation.remediation:
            lines.append(validation.remediation)
        return "\n".join(lines)

    approx = "~" if validation.is_estimate else ""
    lines: List[str] = [
        f"• **You pay:** {approx}{decimal_to_str(validation.required_input_amount, 8)} {validation.input_token}",
        f"• **You receive:** {approx}{decimal_to_str(validation.expected_output_amount, 8)} {validation.output_token}",
        f"• **Chain:** {chain_name(chain_id)}",
        f"• **Estimated gas:** {decimal_to_str(validation.estimated_gas_cost, 8)} {native_symbol(chain_id)}",
        f"• **Slippage:** {_format_percent(validation.slippage_percent)}%",
    ]
    for warning in validation.warnings:
        lines.append(f"⚠️ {warning}")
    return "\n".join(lines)


def _format_percent(value: Optional[float]) -> str:
    if value is None:
        return "—"
    return f"{value:g}"


def render_status(summary: TradeStatusSummary) -> str:
    lines = [f"**Status:** {summary.state.value}: {summary.status_line}"]
    if summary.tx_id:
        lines.append(f"**Transaction:** {summary.tx_id}")
    if summary.error_kind:
        lines.append(f"**Problem:** {summary.error_detail} ({summary.error_kind.value})")
    if summary.remediation:
        lines.append(summary.remediation)
    return "\n".join(lines)


def response_text(
    draft: Draft,
    validation: Optional[ValidationResult] = None,
    wallet_connected: bool = False,
) -> str:
    """Chat reply for a parsed command."""
    where = chain_name(draft.chain_id)

    if isinstance(draft, SwapDraft):
        headline = render_draft(draft)
        if validation is None:
            if not wallet_connected:
                return (
                    f"I found a swap request: **{headline}**.\n\n"
                    "Connect your wallet so I can validate the trade and prepare it for execution."
                )
            return f"I found a swap request: **{headline}**."
        if validation.is_valid:
            return (
                f"**Trade ready for execution**\n\n{headline}\n\n"
                f"{render_validation(validation, draft.chain_id)}\n\n"
                "Would you like me to execute this trade?"
            )
        return f"**Trade validation failed**\n\n{render_validation(validation, draft.chain_id)}"

    if isinstance(draft, ConditionalOrderDraft):
        text = (
            f"**Conditional order configured**\n\n"
            f"• **Action:** {draft.action}\n"
            f"• **Amount:** {draft.amount} {draft.token}\n"
            f"• **Trigger:** price {draft.trigger_comparator} ${decimal_to_str(draft.trigger_price)}\n"
            f"• **Chain:** {where}"
        )
        if validation is not None and not validation.is_valid:
            return f"{text}\n\n{render_validation(validation, draft.chain_id)}"
        if validation is not None:
            text += f"\n• **Condition:** `{validation.quote.get('condition', '')}`"
        if wallet_connected:
            return text + "\n\nThe order can be encoded, but submitting conditional orders is not available yet."
        return text + "\n\nConnect your wallet to place this order."

    if isinstance(draft, TrendingDraft):
        return f"Fetching the trending tokens on **{where}**. Open the Trending tab to browse them."

    if not isinstance(draft, UnknownDraft):
        raise ValueError(f"Cannot render a {draft.mode} draft")
    prefix = f"{draft.reason}.\n\n" if draft.reason else ""
    return f"{prefix}I couldn't turn that into a trade. Try something like:\n\n{EXAMPLES}"
