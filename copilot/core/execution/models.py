"""
Execution Models

Trade states, transition records and the collaborator protocols the tracker
drives: a backend that prepares router calldata, a wallet that signs and
broadcasts it, and a receipt source that reports the outcome.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from ..errors import ExecutionErrorKind


class TradeState(str, Enum):
    """Lifecycle of a single trade."""

    PENDING = "pending"
    PREPARING = "preparing"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTED = "submitted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATES = frozenset({TradeState.SUCCEEDED, TradeState.FAILED})


@dataclass
class StatusTransition:
    """Record of a state change."""

    from_state: TradeState
    to_state: TradeState
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None
    error_kind: Optional[ExecutionErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromState": self.from_state.value,
            "toState": self.to_state.value,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
            "errorKind": self.error_kind.value if self.error_kind else None,
        }


@dataclass
class PreparedTransaction:
    """Unsigned transaction handed to the user's wallet."""

    to: str
    data: str
    value: str
    chain_id: int
    gas_limit: Optional[int] = None
    input_amount: Optional[Decimal] = None
    output_amount: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "gasLimit": str(self.gas_limit) if self.gas_limit is not None else None,
        }


@dataclass
class Receipt:
    tx_hash: str
    success: bool
    block_number: Optional[int] = None


class ExecutionBackend(Protocol):
    async def prepare(self, draft: Any, validation: Any, wallet_address: str) -> PreparedTransaction:
        """Build the transaction for a validated draft."""
        ...


class WalletSigner(Protocol):
    async def send_transaction(self, transaction: PreparedTransaction) -> str:
        """Ask the wallet to sign and broadcast; returns the transaction hash."""
        ...


class ReceiptSource(Protocol):
    async def wait_for_receipt(self, tx_hash: str, chain_id: int) -> Receipt:
        ...


@dataclass
class TradeStatus:
    """Current state of a trade plus what is known about it so far."""

    state: TradeState = TradeState.PENDING
    status_line: str = ""
    tx_id: Optional[str] = None
    payload: Optional[PreparedTransaction] = None
    error_detail: Optional[str] = None
    error_kind: Optional[ExecutionErrorKind] = None
    remediation: Optional[str] = None
    history: List[StatusTransition] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass
class TradeStatusSummary:
    """Serialisable view of a trade for API responses and the CLI."""

    state: TradeState
    status_line: str
    tx_id: Optional[str]
    error_detail: Optional[str]
    error_kind: Optional[ExecutionErrorKind]
    remediation: Optional[str]
    history: List[StatusTransition]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "statusLine": self.status_line,
            "txId": self.tx_id,
            "errorDetail": self.error_detail,
            "errorKind": self.error_kind.value if self.error_kind else None,
            "remediation": self.remediation,
            "history": [t.to_dict() for t in self.history],
        }


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        from_state: TradeState,
        to_state: TradeState,
        message: Optional[str] = None,
    ):
        self.from_state = from_state
        self.to_state = to_state
        self.message = message or f"Cannot transition from {from_state.value} to {to_state.value}"
        super().__init__(self.message)
