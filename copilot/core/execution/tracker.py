"""
Execution Tracker

Drives one validated draft through

    pending -> preparing -> awaiting_confirmation -> submitted -> succeeded | failed

Every external call is wrapped in a timeout; failures are recorded as a
``failed`` state with an error kind and remediation hint, never retried.
Terminal states reject every further transition.
"""

import asyncio
import logging
from typing import Dict, Optional, Set

from ..amounts import decimal_to_str
from ..errors import (
    CopilotError,
    ExecutionErrorKind,
    ExecutionFailure,
    WalletRejectedError,
    classify_upstream_message,
    remediation_for,
)
from ..intent.models import ConditionalOrderDraft, Draft, SwapDraft, is_tradable
from ..normalizer import chain_name
from ..validation.models import ValidationResult
from .models import (
    ExecutionBackend,
    InvalidTransitionError,
    PreparedTransaction,
    ReceiptSource,
    StatusTransition,
    TradeState,
    TradeStatus,
    TradeStatusSummary,
    WalletSigner,
)


class ExecutionTracker:
    """State machine for a single trade."""

    TRANSITIONS: Dict[TradeState, Set[TradeState]] = {
        TradeState.PENDING: {TradeState.PREPARING, TradeState.FAILED},
        TradeState.PREPARING: {TradeState.AWAITING_CONFIRMATION, TradeState.FAILED},
        TradeState.AWAITING_CONFIRMATION: {TradeState.SUBMITTED, TradeState.FAILED},
        TradeState.SUBMITTED: {TradeState.SUCCEEDED, TradeState.FAILED},
        TradeState.SUCCEEDED: set(),
        TradeState.FAILED: set(),
    }

    def __init__(
        self,
        draft: Draft,
        validation: ValidationResult,
        *,
        backend: ExecutionBackend,
        timeout_s: float = 120.0,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            draft: A swap or conditional order draft
            validation: Result of validating ``draft``; must be valid
            backend: Builds the transaction payload
            timeout_s: Limit applied to each collaborator call
        """
        if not is_tradable(draft):
            raise ValueError(f"Cannot execute a {draft.mode} draft")
        if not validation.is_valid:
            raise ValueError("Cannot execute a draft that failed validation")

        self.draft = draft
        self.validation = validation
        self.backend = backend
        self.timeout_s = timeout_s
        self.logger = logger or logging.getLogger(__name__)
        self.status = TradeStatus(state=TradeState.PENDING, status_line=self._pending_line())

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def current_state(self) -> TradeState:
        return self.status.state

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def can_transition_to(self, to_state: TradeState) -> bool:
        return to_state in self.TRANSITIONS.get(self.current_state, set())

    def _ensure_can_transition(self, to_state: TradeState) -> None:
        if not self.can_transition_to(to_state):
            allowed = sorted(s.value for s in self.TRANSITIONS.get(self.current_state, set()))
            raise InvalidTransitionError(
                from_state=self.current_state,
                to_state=to_state,
                message=f"Invalid transition from {self.current_state.value} to {to_state.value}. "
                        f"Allowed: {allowed}",
            )

    def _transition(
        self,
        to_state: TradeState,
        status_line: str,
        reason: Optional[str] = None,
        error_kind: Optional[ExecutionErrorKind] = None,
    ) -> TradeStatus:
        self._ensure_can_transition(to_state)
        from_state = self.current_state
        self.status.history.append(StatusTransition(
            from_state=from_state,
            to_state=to_state,
            reason=reason,
            error_kind=error_kind,
        ))
        self.status.state = to_state
        self.status.status_line = status_line
        self.logger.info(
            "Trade state transition: %s -> %s%s",
            from_state.value,
            to_state.value,
            f" ({reason})" if reason else "",
        )
        return self.status

    def _pending_line(self) -> str:
        draft = self.draft
        where = chain_name(draft.chain_id)
        if isinstance(draft, SwapDraft):
            amount_in = decimal_to_str(self.validation.required_input_amount)
            return f"Ready to swap {amount_in} {draft.source_token} for {draft.dest_token} on {where}"
        return (
            f"Ready to {draft.action} {draft.amount} {draft.token} when price "
            f"{draft.trigger_comparator} {decimal_to_str(draft.trigger_price)} on {where}"
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def fail(
        self,
        message: str,
        kind: ExecutionErrorKind = ExecutionErrorKind.UPSTREAM_FAILED,
    ) -> TradeStatus:
        """Move to ``failed``. Raises InvalidTransitionError from a terminal state."""
        self._ensure_can_transition(TradeState.FAILED)
        self.status.error_detail = message
        self.status.error_kind = kind
        self.status.remediation = remediation_for(kind)
        self.logger.warning("Trade failed (%s): %s", kind.value, message)
        return self._transition(TradeState.FAILED, f"Trade failed: {message}", reason=message, error_kind=kind)

    def _fail_from_error(self, error: Exception, default: ExecutionErrorKind) -> TradeStatus:
        if isinstance(error, ExecutionFailure):
            return self.fail(error.message, error.kind)
        if isinstance(error, CopilotError):
            message = error.message
            detail = error.context.upstream_detail or message
        else:
            self.logger.error("Unexpected %s from collaborator: %s", type(error).__name__, error, exc_info=error)
            message = detail = str(error) or type(error).__name__
        kind = classify_upstream_message(detail)
        if kind is ExecutionErrorKind.UPSTREAM_FAILED:
            kind = default
        return self.fail(message, kind)

    async def confirm(self, wallet_address: str) -> TradeStatus:
        """Prepare the transaction for ``wallet_address``.

        pending -> preparing -> awaiting_confirmation, or failed.
        """
        if isinstance(self.draft, ConditionalOrderDraft):
            return self.fail(
                "Conditional orders cannot be submitted yet",
                ExecutionErrorKind.NOT_IMPLEMENTED,
            )

        self._transition(TradeState.PREPARING, "Preparing transaction", reason="user confirmed")
        try:
            payload: PreparedTransaction = await asyncio.wait_for(
                self.backend.prepare(self.draft, self.validation, wallet_address),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            return self.fail(
                f"Transaction preparation timed out after {self.timeout_s:g}s",
                ExecutionErrorKind.UPSTREAM_FAILED,
            )
        except Exception as exc:
            return self._fail_from_error(exc, ExecutionErrorKind.UPSTREAM_FAILED)

        self.status.payload = payload
        return self._transition(
            TradeState.AWAITING_CONFIRMATION,
            "Confirm the transaction in your wallet",
            reason="transaction prepared",
        )

    async def submit(self, signer: WalletSigner) -> TradeStatus:
        """Hand the prepared transaction to the wallet.

        awaiting_confirmation -> submitted, or failed.
        """
        self._ensure_can_transition(TradeState.SUBMITTED)
        if self.status.payload is None:
            raise InvalidTransitionError(
                from_state=self.current_state,
                to_state=TradeState.SUBMITTED,
                message="No prepared transaction to submit",
            )

        try:
            tx_id = await asyncio.wait_for(
                signer.send_transaction(self.status.payload),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            return self.fail("The wallet did not respond in time", ExecutionErrorKind.WALLET_REJECTED)
        except WalletRejectedError as exc:
            return self.fail(exc.message, ExecutionErrorKind.WALLET_REJECTED)
        except Exception as exc:
            return self._fail_from_error(exc, ExecutionErrorKind.UPSTREAM_FAILED)

        self.status.tx_id = tx_id
        return self._transition(TradeState.SUBMITTED, f"Transaction submitted: {tx_id}", reason="wallet signed")

    async def resolve(self, receipts: ReceiptSource) -> TradeStatus:
        """Wait for the receipt. submitted -> succeeded | failed."""
        self._ensure_can_transition(TradeState.SUCCEEDED)
        if self.status.tx_id is None:
            raise InvalidTransitionError(
                from_state=self.current_state,
                to_state=TradeState.SUCCEEDED,
                message="No submitted transaction to resolve",
            )

        try:
            receipt = await asyncio.wait_for(
                receipts.wait_for_receipt(self.status.tx_id, self.draft.chain_id),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            return self.fail(
                f"Transaction {self.status.tx_id} was not confirmed in time",
                ExecutionErrorKind.UPSTREAM_FAILED,
            )
        except Exception as exc:
            return self._fail_from_error(exc, ExecutionErrorKind.UPSTREAM_FAILED)

        if not receipt.success:
            return self.fail(f"Transaction {receipt.tx_hash} reverted", ExecutionErrorKind.UPSTREAM_FAILED)
        return self._transition(TradeState.SUCCEEDED, "Trade completed", reason="receipt confirmed")

    def summary(self) -> TradeStatusSummary:
        return TradeStatusSummary(
            state=self.status.state,
            status_line=self.status.status_line,
            tx_id=self.status.tx_id,
            error_detail=self.status.error_detail,
            error_kind=self.status.error_kind,
            remediation=self.status.remediation,
            history=list(self.status.history),
        )
