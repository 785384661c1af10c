"""Execution backend that builds swap calldata through the 1inch router."""

import logging
from typing import Optional

from eth_utils import is_address, to_checksum_address

from ...providers.base import SwapAggregatorProvider
from ...providers.oneinch import get_oneinch_provider
from ..amounts import from_base_units, to_base_units
from ..errors import ErrorContext, ExecutionErrorKind, ExecutionFailure
from ..intent.models import SwapDraft
from ..registry import get_token
from ..validation.models import ValidationResult
from .models import PreparedTransaction

logger = logging.getLogger(__name__)


class OneInchExecutionBackend:
    """Prepare exact-input swaps for a wallet.

    Exact-output drafts are executed as exact-input trades of the solved
    input amount; the slippage bound protects the received amount.
    """

    def __init__(self, provider: Optional[SwapAggregatorProvider] = None, default_slippage_percent: float = 1.0):
        self.provider = provider or get_oneinch_provider()
        self.default_slippage_percent = default_slippage_percent

    async def prepare(self, draft, validation: ValidationResult, wallet_address: str) -> PreparedTransaction:
        if not isinstance(draft, SwapDraft):
            raise ExecutionFailure(
                f"{draft.mode} drafts cannot be executed as swaps",
                ExecutionErrorKind.NOT_IMPLEMENTED,
            )
        if not wallet_address or not is_address(wallet_address):
            raise ExecutionFailure(
                f"Invalid wallet address: {wallet_address!r}",
                ExecutionErrorKind.PREPARATION_FAILED,
            )

        source = get_token(draft.chain_id, draft.source_token)
        dest = get_token(draft.chain_id, draft.dest_token)
        if source is None or dest is None:
            raise ExecutionFailure(
                f"Unsupported token pair: {draft.source_token}/{draft.dest_token}",
                ExecutionErrorKind.PREPARATION_FAILED,
                ErrorContext(chain_id=draft.chain_id),
            )

        amount = validation.required_input_amount
        try:
            amount_in = to_base_units(amount, int(source["decimals"])) if amount is not None else None
        except ValueError as exc:
            raise ExecutionFailure(str(exc), ExecutionErrorKind.PREPARATION_FAILED) from exc
        if amount_in is None:
            raise ExecutionFailure("Trade amount is missing or too small", ExecutionErrorKind.PREPARATION_FAILED)

        slippage = validation.slippage_percent
        if slippage is None:
            slippage = self.default_slippage_percent

        swap = await self.provider.build_swap(
            draft.chain_id,
            source["address"],
            dest["address"],
            amount_in,
            to_checksum_address(wallet_address),
            slippage,
        )
        logger.info(
            "Prepared %s -> %s swap on chain %s for %s",
            draft.source_token,
            draft.dest_token,
            draft.chain_id,
            wallet_address,
        )
        return PreparedTransaction(
            to=swap.to,
            data=swap.data,
            value=swap.value,
            chain_id=draft.chain_id,
            gas_limit=swap.gas or validation.gas_units,
            input_amount=from_base_units(swap.src_amount, int(source["decimals"])),
            output_amount=from_base_units(swap.dst_amount, int(dest["decimals"])) if swap.dst_amount else None,
        )


_execution_backend: Optional[OneInchExecutionBackend] = None


def get_execution_backend() -> OneInchExecutionBackend:
    """Get the singleton execution backend."""
    global _execution_backend
    if _execution_backend is None:
        from ...config import settings

        _execution_backend = OneInchExecutionBackend(
            get_oneinch_provider(),
            default_slippage_percent=settings.default_slippage_percent,
        )
    return _execution_backend
