"""
Draft Validator

Checks a parsed draft against the token registry and live quotes and returns a
``ValidationResult``. Every expected failure (missing fields, unknown tokens,
missing credentials, upstream errors) is reported as a tagged result rather
than raised. A validation makes at most one external call.
"""

import logging
from decimal import ROUND_UP, Decimal
from typing import Any, Dict, Optional, Protocol, Tuple

from ...providers.oneinch import OneInchQuote
from ..amounts import WIDE_CONTEXT, decimal_to_str, from_base_units, to_base_units
from ..errors import (
    MissingFieldError,
    UnsupportedPairError,
    UpstreamUnavailableError,
    ValidationErrorKind,
    ValidationFailure,
)
from ..intent.models import ConditionalOrderDraft, Draft, SwapDraft, TrendingDraft
from ..normalizer import chain_name
from ..predicates import (
    describe,
    encode_to_hex,
    estimate_predicate_gas,
    predicate_for_order,
    validate_predicate,
)
from ..registry import get_token, supported_symbols
from .models import ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_SWAP_GAS = 300_000
GWEI = Decimal("1e-9")


class QuoteSource(Protocol):
    async def get_quote(self, chain_id: int, src: str, dst: str, amount: int) -> OneInchQuote:
        ...


class DraftValidator:
    """Validate drafts and produce quotes.

    Args:
        quotes: Exact-input quote collaborator
        gas_price_gwei: Gas price used to turn gas units into a native cost
        fallback_gas_cost: Native cost reported when the quote has no gas estimate
        reverse_probe_amount: Source amount used to sample the rate for exact-output drafts
        reverse_probe_max_ratio: Solved/probe size ratio that triggers a price-impact warning
    """

    def __init__(
        self,
        quotes: QuoteSource,
        *,
        gas_price_gwei: Decimal = Decimal("0.1"),
        fallback_gas_cost: Decimal = Decimal("0.003"),
        reverse_probe_amount: Decimal = Decimal("1"),
        reverse_probe_max_ratio: Decimal = Decimal("50"),
    ):
        self.quotes = quotes
        self.gas_price_gwei = Decimal(gas_price_gwei)
        self.fallback_gas_cost = Decimal(fallback_gas_cost)
        self.reverse_probe_amount = Decimal(reverse_probe_amount)
        self.reverse_probe_max_ratio = Decimal(reverse_probe_max_ratio)

    async def validate(self, draft: Draft, *, default_slippage_percent: float) -> ValidationResult:
        try:
            if isinstance(draft, SwapDraft):
                return await self._validate_swap(draft, default_slippage_percent)
            if isinstance(draft, ConditionalOrderDraft):
                return self._validate_conditional(draft, default_slippage_percent)
        except ValidationFailure as exc:
            logger.info("Draft failed validation (%s): %s", exc.kind.value, exc.message)
            return ValidationResult.from_error(exc)

        if isinstance(draft, TrendingDraft):
            message = "Trending lookups are not trades and cannot be validated"
        else:
            message = getattr(draft, "reason", "") or "The command did not describe a trade"
        return ValidationResult.failure(ValidationErrorKind.MISSING_FIELD, message)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _token(self, symbol: str, chain_id: int) -> Dict[str, Any]:
        meta = get_token(chain_id, symbol)
        if meta is None:
            raise UnsupportedPairError(
                f"{symbol} is not supported on {chain_name(chain_id)}. "
                f"Supported tokens: {supported_symbols(chain_id)}"
            )
        return meta

    def _pair(self, source: str, dest: str, chain_id: int) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        if source == dest:
            raise UnsupportedPairError(f"Cannot swap {source} for itself")
        return self._token(source, chain_id), self._token(dest, chain_id)

    def _gas(self, gas_units: Optional[int], warnings: list) -> Tuple[int, Decimal]:
        if gas_units and gas_units > 0:
            return gas_units, gas_units * self.gas_price_gwei * GWEI
        warnings.append("Gas estimate unavailable; showing a conservative fallback cost")
        return DEFAULT_SWAP_GAS, self.fallback_gas_cost

    def _base_units(self, amount: Decimal, token: Dict[str, Any]) -> int:
        try:
            units = to_base_units(amount, int(token["decimals"]))
        except ValueError as exc:
            raise MissingFieldError(
                f"Amount {decimal_to_str(amount)} {token['symbol']} is too large to trade"
            ) from exc
        if units is None:
            raise MissingFieldError(
                f"Amount {decimal_to_str(amount)} {token['symbol']} is too small to trade"
            )
        return units

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    async def _validate_swap(self, draft: SwapDraft, default_slippage_percent: float) -> ValidationResult:
        source, dest = self._pair(draft.source_token, draft.dest_token, draft.chain_id)
        slippage = draft.slippage_percent if draft.slippage_percent is not None else default_slippage_percent
        warnings: list = []

        if draft.reverse:
            required_input, expected_output, quote = await self._solve_exact_output(draft, source, dest, warnings)
        else:
            amount_in = self._base_units(draft.amount_decimal, source)
            quote = await self.quotes.get_quote(draft.chain_id, source["address"], dest["address"], amount_in)
            required_input = draft.amount_decimal
            expected_output = from_base_units(quote.dst_amount, int(dest["decimals"]))
            if not expected_output or expected_output <= 0:
                raise UpstreamUnavailableError("Quote returned no output for this trade")

        gas_units, gas_cost = self._gas(quote.gas, warnings)

        return ValidationResult(
            is_valid=True,
            input_token=source["symbol"],
            output_token=dest["symbol"],
            required_input_amount=required_input,
            expected_output_amount=expected_output,
            estimated_gas_cost=gas_cost,
            gas_units=gas_units,
            slippage_percent=slippage,
            is_estimate=draft.reverse,
            warnings=warnings,
            quote={
                "srcAmount": str(quote.src_amount),
                "dstAmount": str(quote.dst_amount),
                "src": quote.src,
                "dst": quote.dst,
                "gas": quote.gas,
            },
        )

    async def _solve_exact_output(
        self,
        draft: SwapDraft,
        source: Dict[str, Any],
        dest: Dict[str, Any],
        warnings: list,
    ) -> Tuple[Decimal, Decimal, OneInchQuote]:
        """Estimate the input needed for ``draft.amount`` of output.

        Quotes a probe amount of the source token and scales linearly by the
        sampled input-per-output rate. The result ignores price impact, so
        large deviations from the probe size are flagged.
        """
        probe_units = self._base_units(self.reverse_probe_amount, source)
        quote = await self.quotes.get_quote(draft.chain_id, source["address"], dest["address"], probe_units)

        probe_in = from_base_units(probe_units, int(source["decimals"]))
        probe_out = from_base_units(quote.dst_amount, int(dest["decimals"]))
        if not probe_out or probe_out <= 0:
            raise UpstreamUnavailableError("Quote returned no output; cannot estimate the required input")

        rate = probe_in / probe_out
        desired_output = draft.amount_decimal
        input_quantum = Decimal(1).scaleb(-int(source["decimals"]))
        required_input = (desired_output * rate).quantize(input_quantum, rounding=ROUND_UP, context=WIDE_CONTEXT)

        ratio = max(required_input / probe_in, probe_in / required_input) if required_input > 0 else Decimal(0)
        if ratio > self.reverse_probe_max_ratio:
            warnings.append(
                f"Estimated from a {decimal_to_str(probe_in)} {source['symbol']} sample; "
                f"price impact at this size may make the actual rate worse"
            )
        return required_input, desired_output, quote

    # ------------------------------------------------------------------
    # Conditional orders
    # ------------------------------------------------------------------

    def _validate_conditional(self, draft: ConditionalOrderDraft, default_slippage_percent: float) -> ValidationResult:
        token, quote_token = self._pair(draft.token, draft.quote_token, draft.chain_id)
        try:
            predicate = predicate_for_order(draft)
        except ValueError as exc:
            raise MissingFieldError(f"Trigger price cannot be encoded: {exc}") from exc
        issues = validate_predicate(predicate)
        if issues:
            raise MissingFieldError("; ".join(issues))

        notional = draft.amount_decimal * draft.trigger_price
        if draft.action == "sell":
            input_token, output_token = token, quote_token
            required_input, expected_output = draft.amount_decimal, notional
        else:
            input_token, output_token = quote_token, token
            required_input, expected_output = notional, draft.amount_decimal

        gas_units = estimate_predicate_gas(predicate)
        slippage = draft.slippage_percent if draft.slippage_percent is not None else default_slippage_percent

        return ValidationResult(
            is_valid=True,
            input_token=input_token["symbol"],
            output_token=output_token["symbol"],
            required_input_amount=required_input,
            expected_output_amount=expected_output,
            estimated_gas_cost=gas_units * self.gas_price_gwei * GWEI,
            gas_units=gas_units,
            slippage_percent=slippage,
            is_estimate=True,
            warnings=["Amounts are notional at the trigger price"],
            quote={
                "predicate": encode_to_hex(predicate),
                "condition": describe(predicate),
            },
        )


_draft_validator: Optional[DraftValidator] = None


def get_draft_validator() -> DraftValidator:
    """Get the singleton validator wired to the 1inch provider."""
    global _draft_validator
    if _draft_validator is None:
        from ...config import settings
        from ...providers.oneinch import get_oneinch_provider

        _draft_validator = DraftValidator(
            get_oneinch_provider(),
            gas_price_gwei=settings.gas_price_gwei,
            fallback_gas_cost=settings.fallback_gas_cost_native,
            reverse_probe_amount=settings.reverse_probe_amount,
            reverse_probe_max_ratio=settings.reverse_probe_max_ratio,
        )
    return _draft_validator


__all__ = ["DraftValidator", "QuoteSource", "get_draft_validator"]
