"""
Tests for the Execution Tracker

Tests for the trade state machine, collaborator failures and terminal states.
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from copilot.core.errors import (
    ConfigurationMissingError,
    ErrorContext,
    ExecutionErrorKind,
    ExecutionFailure,
    UpstreamUnavailableError,
    WalletRejectedError,
)
from copilot.core.execution import (
    ExecutionTracker,
    InvalidTransitionError,
    PreparedTransaction,
    Receipt,
    TradeState,
)
from copilot.core.intent import ConditionalOrderDraft, SwapDraft, TrendingDraft
from copilot.core.validation import ValidationResult

WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
TX_HASH = "0x" + "ab" * 32


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def draft() -> SwapDraft:
    return SwapDraft(source_token="ETH", dest_token="USDC", amount="1", chain_id=8453)


@pytest.fixture
def validation() -> ValidationResult:
    return ValidationResult(
        is_valid=True,
        input_token="ETH",
        output_token="USDC",
        required_input_amount=Decimal("1"),
        expected_output_amount=Decimal("3000"),
        estimated_gas_cost=Decimal("0.000018"),
        gas_units=180_000,
        slippage_percent=1.0,
    )


@pytest.fixture
def payload() -> PreparedTransaction:
    return PreparedTransaction(
        to="0x111111125421cA6dc452d289314280a0f8842A65",
        data="0x12aa3caf",
        value="1000000000000000000",
        chain_id=8453,
        gas_limit=180_000,
    )


@pytest.fixture
def backend(payload: PreparedTransaction) -> MagicMock:
    stub = MagicMock()
    stub.prepare = AsyncMock(return_value=payload)
    return stub


@pytest.fixture
def signer() -> MagicMock:
    stub = MagicMock()
    stub.send_transaction = AsyncMock(return_value=TX_HASH)
    return stub


@pytest.fixture
def receipts() -> MagicMock:
    stub = MagicMock()
    stub.wait_for_receipt = AsyncMock(return_value=Receipt(tx_hash=TX_HASH, success=True, block_number=123))
    return stub


@pytest.fixture
def tracker(draft, validation, backend) -> ExecutionTracker:
    return ExecutionTracker(draft, validation, backend=backend, timeout_s=1.0)


# =============================================================================
# Construction
# =============================================================================

class TestTrackerConstruction:

    def test_starts_pending(self, tracker: ExecutionTracker):
        assert tracker.current_state == TradeState.PENDING
        assert tracker.is_terminal is False
        assert tracker.status.status_line == "Ready to swap 1 ETH for USDC on Base"

    def test_rejects_non_trade_drafts(self, validation, backend):
        with pytest.raises(ValueError):
            ExecutionTracker(TrendingDraft(chain_id=8453), validation, backend=backend)

    def test_rejects_failed_validation(self, draft, backend):
        failed = ValidationResult(is_valid=False, error_message="nope")
        with pytest.raises(ValueError):
            ExecutionTracker(draft, failed, backend=backend)


# =============================================================================
# Happy path
# =============================================================================

class TestHappyPath:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, tracker, backend, signer, receipts, payload, draft, validation):
        status = await tracker.confirm(WALLET)
        assert status.state == TradeState.AWAITING_CONFIRMATION
        assert status.payload is payload
        backend.prepare.assert_awaited_once_with(draft, validation, WALLET)

        status = await tracker.submit(signer)
        assert status.state == TradeState.SUBMITTED
        assert status.tx_id == TX_HASH
        signer.send_transaction.assert_awaited_once_with(payload)

        status = await tracker.resolve(receipts)
        assert status.state == TradeState.SUCCEEDED
        assert tracker.is_terminal is True
        receipts.wait_for_receipt.assert_awaited_once_with(TX_HASH, 8453)

        states = [(t.from_state, t.to_state) for t in status.history]
        assert states == [
            (TradeState.PENDING, TradeState.PREPARING),
            (TradeState.PREPARING, TradeState.AWAITING_CONFIRMATION),
            (TradeState.AWAITING_CONFIRMATION, TradeState.SUBMITTED),
            (TradeState.SUBMITTED, TradeState.SUCCEEDED),
        ]

    @pytest.mark.asyncio
    async def test_summary_is_camel_case(self, tracker, signer):
        await tracker.confirm(WALLET)
        await tracker.submit(signer)

        summary = tracker.summary().to_dict()

        assert summary["state"] == "submitted"
        assert summary["txId"] == TX_HASH
        assert summary["errorKind"] is None
        assert summary["history"][0]["fromState"] == "pending"
        assert summary["history"][0]["toState"] == "preparing"


# =============================================================================
# Failures
# =============================================================================

class TestFailures:

    @pytest.mark.asyncio
    async def test_wallet_rejection(self, tracker, signer):
        signer.send_transaction.side_effect = WalletRejectedError("User rejected the request")
        await tracker.confirm(WALLET)

        status = await tracker.submit(signer)

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.WALLET_REJECTED
        assert status.remediation
        assert status.tx_id is None

    @pytest.mark.asyncio
    async def test_wallet_timeout(self, draft, validation, backend, signer):
        async def never_signs(transaction):
            await asyncio.sleep(1)

        signer.send_transaction.side_effect = never_signs
        tracker = ExecutionTracker(draft, validation, backend=backend, timeout_s=0.01)
        await tracker.confirm(WALLET)

        status = await tracker.submit(signer)

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.WALLET_REJECTED

    @pytest.mark.asyncio
    async def test_preparation_failure(self, tracker, backend):
        backend.prepare.side_effect = ExecutionFailure(
            "Invalid wallet address: 'abc'", ExecutionErrorKind.PREPARATION_FAILED
        )

        status = await tracker.confirm("abc")

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.PREPARATION_FAILED
        assert status.error_detail == "Invalid wallet address: 'abc'"

    @pytest.mark.asyncio
    async def test_upstream_balance_error_is_classified(self, tracker, backend):
        backend.prepare.side_effect = UpstreamUnavailableError(
            "1inch swap failed with HTTP 400",
            ErrorContext(provider="1inch", status_code=400, upstream_detail="Not enough ETH balance"),
        )

        status = await tracker.confirm(WALLET)

        assert status.error_kind == ExecutionErrorKind.PREPARATION_FAILED

    @pytest.mark.asyncio
    async def test_missing_configuration_is_upstream_failure(self, tracker, backend):
        backend.prepare.side_effect = ConfigurationMissingError("1inch API key is not configured")

        status = await tracker.confirm(WALLET)

        assert status.error_kind == ExecutionErrorKind.UPSTREAM_FAILED

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, tracker, signer, receipts):
        receipts.wait_for_receipt.return_value = Receipt(tx_hash=TX_HASH, success=False)
        await tracker.confirm(WALLET)
        await tracker.submit(signer)

        status = await tracker.resolve(receipts)

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.UPSTREAM_FAILED
        assert status.tx_id == TX_HASH

    @pytest.mark.asyncio
    async def test_conditional_orders_are_not_submitted(self, validation, backend):
        draft = ConditionalOrderDraft(
            action="sell", token="ETH", amount="1",
            trigger_comparator=">=", trigger_price=Decimal("4000"), chain_id=8453,
        )
        tracker = ExecutionTracker(draft, validation, backend=backend)

        status = await tracker.confirm(WALLET)

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.NOT_IMPLEMENTED
        backend.prepare.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_preparation_error_fails_the_trade(self, tracker, backend):
        backend.prepare.side_effect = RuntimeError("connection reset")

        status = await tracker.confirm(WALLET)

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.UPSTREAM_FAILED
        assert status.error_detail == "connection reset"
        assert status.remediation

    @pytest.mark.asyncio
    async def test_unexpected_wallet_error_is_classified(self, tracker, signer):
        signer.send_transaction.side_effect = RuntimeError("MetaMask: User rejected the request")
        await tracker.confirm(WALLET)

        status = await tracker.submit(signer)

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.WALLET_REJECTED

    @pytest.mark.asyncio
    async def test_unexpected_receipt_error_fails_the_trade(self, tracker, signer, receipts):
        receipts.wait_for_receipt.side_effect = KeyError("blockNumber")
        await tracker.confirm(WALLET)
        await tracker.submit(signer)

        status = await tracker.resolve(receipts)

        assert status.state == TradeState.FAILED
        assert status.error_kind == ExecutionErrorKind.UPSTREAM_FAILED
        assert tracker.is_terminal is True


# =============================================================================
# Transition rules
# =============================================================================

class TestTransitions:

    @pytest.mark.asyncio
    async def test_submit_before_confirm(self, tracker, signer):
        with pytest.raises(InvalidTransitionError):
            await tracker.submit(signer)
        signer.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_terminal_states_are_final(self, tracker, signer, receipts):
        await tracker.confirm(WALLET)
        await tracker.submit(signer)
        await tracker.resolve(receipts)

        with pytest.raises(InvalidTransitionError):
            tracker.fail("too late")
        with pytest.raises(InvalidTransitionError):
            await tracker.confirm(WALLET)

    @pytest.mark.asyncio
    async def test_resolve_before_submit(self, tracker, receipts):
        await tracker.confirm(WALLET)

        with pytest.raises(InvalidTransitionError):
            await tracker.resolve(receipts)
        receipts.wait_for_receipt.assert_not_awaited()

    def test_failed_is_terminal(self, tracker):
        tracker.fail("cancelled by user", ExecutionErrorKind.WALLET_REJECTED)

        assert tracker.is_terminal is True
        assert tracker.can_transition_to(TradeState.PREPARING) is False
        with pytest.raises(InvalidTransitionError):
            tracker.fail("again")
