"""
Trade Execution Module

Tracks validated drafts through preparation, wallet confirmation and
settlement.
"""

from .backends import OneInchExecutionBackend, get_execution_backend
from .models import (
    ExecutionBackend,
    InvalidTransitionError,
    PreparedTransaction,
    Receipt,
    ReceiptSource,
    StatusTransition,
    TERMINAL_STATES,
    TradeState,
    TradeStatus,
    TradeStatusSummary,
    WalletSigner,
)
from .tracker import ExecutionTracker

__all__ = [
    # Tracker
    "ExecutionTracker",
    "OneInchExecutionBackend",
    "get_execution_backend",
    # Models
    "TradeState",
    "TradeStatus",
    "TradeStatusSummary",
    "StatusTransition",
    "PreparedTransaction",
    "Receipt",
    "TERMINAL_STATES",
    "InvalidTransitionError",
    # Collaborators
    "ExecutionBackend",
    "WalletSigner",
    "ReceiptSource",
]
